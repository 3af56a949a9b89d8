"""Tests for ending-soon windows and display ordering."""

from decimal import Decimal

import pytest

from hexstats.services.analysis.active_set import to_active
from hexstats.services.analysis.ending_soon import (
    ENDING_SOON_WINDOWS,
    EndingSoonSortKey,
    SortDirection,
    estimated_apy,
    sort_stakes,
    summarize,
    summarize_windows,
    usd_value,
)

HEX = 100_000_000
CURRENT_DAY = 1000


@pytest.fixture
def active(make_start):
    """Stakes ending 0, 5, 7, 8, 30, 60 and 91 days from now, plus one overdue."""
    stakes = []
    for stake_id, days_left in enumerate([0, 5, 7, 8, 30, 60, 91, -3], start=1):
        start = make_start(
            stake_id,
            staked_hex=100 * stake_id,
            start_day=CURRENT_DAY - 100,
            staked_days=100 + days_left,
        )
        stakes.append(to_active(start, CURRENT_DAY))
    return stakes


class TestSummarize:
    """Windowed counts and totals."""

    def test_seven_day_window_is_inclusive(self, active):
        summary = summarize(active, CURRENT_DAY, 7)

        assert summary.count == 3
        assert [s.stake_id for s in summary.stakes] == [1, 2, 3]
        assert summary.total_hearts == 600 * HEX
        assert summary.total_hex == Decimal(600)

    def test_overdue_stakes_excluded(self, active):
        summary = summarize(active, CURRENT_DAY, 90)
        assert 8 not in [s.stake_id for s in summary.stakes]
        assert summary.count == 6

    def test_usd_total(self, active):
        summary = summarize(active, CURRENT_DAY, 7, price_usd=Decimal("0.01"))
        assert summary.total_usd == Decimal("6")

    def test_zero_price_gives_zero_usd(self, active):
        assert summarize(active, CURRENT_DAY, 30).total_usd == 0

    def test_windows_nest(self, active):
        summaries = summarize_windows(active, CURRENT_DAY)

        assert set(summaries) == set(ENDING_SOON_WINDOWS)
        assert summaries[7].count <= summaries[30].count <= summaries[90].count
        assert [summaries[w].count for w in ENDING_SOON_WINDOWS] == [3, 5, 6]

    def test_empty_input(self):
        summary = summarize([], CURRENT_DAY, 30)
        assert summary.count == 0
        assert summary.total_hearts == 0
        assert summary.stakes == []


class TestEstimatedApy:
    """Display APY heuristic."""

    def test_zero_before_first_day_served(self, make_start):
        stake = to_active(make_start(1, start_day=100), current_day=100)
        assert estimated_apy(stake) == 0

    def test_zero_without_t_shares(self, make_start):
        stake = to_active(make_start(1, start_day=0, stake_t_shares=Decimal("0")), current_day=10)
        assert estimated_apy(stake) == 0

    def test_zero_without_principal(self, make_start):
        stake = to_active(make_start(1, start_day=0, staked_hearts=0), current_day=10)
        assert estimated_apy(stake) == 0

    def test_annualized_by_stake_length(self, make_start):
        stake = to_active(
            make_start(1, start_day=0, staked_days=365, staked_hearts=1000, stake_t_shares=Decimal("10")),
            current_day=10,
        )
        assert estimated_apy(stake) == Decimal("1")


class TestSortStakes:
    """Display ordering."""

    def test_default_is_end_day_ascending(self, active):
        ordered = sort_stakes(active)
        assert [s.days_left for s in ordered] == [-3, 0, 5, 7, 8, 30, 60, 91]

    def test_descending_by_staked_hearts(self, active):
        ordered = sort_stakes(active, EndingSoonSortKey.STAKED_HEARTS, SortDirection.DESC)
        assert [s.stake_id for s in ordered][:3] == [8, 7, 6]

    def test_usd_value_uses_price(self, active):
        ordered = sort_stakes(active, EndingSoonSortKey.USD_VALUE, SortDirection.DESC, Decimal("0.5"))
        assert ordered[0].stake_id == 8
        assert usd_value(ordered[0], Decimal("0.5")) == Decimal(400)

    def test_sort_is_stable(self, make_start):
        stakes = [to_active(make_start(i, staked_days=100), current_day=10) for i in (3, 1, 2)]
        ordered = sort_stakes(stakes, EndingSoonSortKey.END_DAY, SortDirection.ASC)
        assert [s.stake_id for s in ordered] == [3, 1, 2]

    def test_progress_ordering(self, make_start):
        near_done = to_active(make_start(1, start_day=0, staked_days=10), current_day=9)
        just_started = to_active(make_start(2, start_day=0, staked_days=100), current_day=9)

        ordered = sort_stakes([just_started, near_done], EndingSoonSortKey.PROGRESS, SortDirection.DESC)

        assert [s.stake_id for s in ordered] == [1, 2]

    def test_accepts_string_keys(self, active):
        ordered = sort_stakes(active, "stake_id", "desc")
        assert ordered[0].stake_id == 8
