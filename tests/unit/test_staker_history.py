"""Tests for per-address staking history and the network overview."""

from decimal import Decimal

from hexstats.services.analysis.active_set import to_active
from hexstats.services.analysis.overview import build_overview
from hexstats.services.analysis.staker_history import (
    build_staker_history,
    late_ending_days,
    realized_apy,
)
from hexstats.services.data.records import GlobalInfo, Network

HEX = 100_000_000
ADDRESS = "0x" + "B" * 40


class TestStakerHistory:
    """Combining an address's starts and ends."""

    def test_active_and_ended_stakes(self, make_start, make_end):
        starts = [
            make_start(1, staked_hex=1000, start_day=0, staked_days=100),
            make_start(2, staked_hex=3000, start_day=50, staked_days=300),
        ]
        ends = [make_end(1, payout=200 * HEX, penalty=0, served_days=110)]

        history = build_staker_history(ADDRESS, starts, ends, current_day=150)

        assert history.staker_addr == ADDRESS.lower()
        assert (history.total_stakes, history.active_stakes, history.ended_stakes) == (2, 1, 1)
        assert history.total_staked_hearts == 4000 * HEX
        assert history.total_payouts == 200 * HEX
        assert history.average_stake_length == Decimal(200)

        ended, active = history.stakes
        assert ended.is_active is False
        assert ended.late_ending_days == 10
        assert active.is_active is True
        assert active.days_served == 100
        assert active.days_left == 200

    def test_no_stakes(self):
        history = build_staker_history(ADDRESS, [], [], current_day=10)

        assert history.total_stakes == 0
        assert history.average_stake_length == 0
        assert history.stakes == []

    def test_realized_apy(self, make_start, make_end):
        start = make_start(1, staked_hex=1000, staked_days=365)
        end = make_end(1, payout=120 * HEX, penalty=20 * HEX, served_days=365)

        assert realized_apy(start, end) == Decimal(10)

    def test_realized_apy_without_service(self, make_start, make_end):
        assert realized_apy(make_start(1), make_end(1, served_days=0)) == 0

    def test_early_end_is_not_late(self, make_start, make_end):
        assert late_ending_days(make_start(1, staked_days=100), make_end(1, served_days=40)) == 0


class TestBuildOverview:
    """Overview totals and top stakes."""

    def test_totals_and_top_stakes(self, make_start):
        active = [
            to_active(make_start(i, staked_hex=i * 100, staked_days=i * 10), current_day=5)
            for i in range(1, 5)
        ]

        overview = build_overview(Network.ETHEREUM, active, GlobalInfo(hex_day=5), top_n=2)

        assert overview.total_active_stakes == 4
        assert overview.total_staked_hearts == 1000 * HEX
        assert overview.average_stake_length == Decimal(25)
        assert [s.stake_id for s in overview.top_stakes] == [4, 3]
        assert overview.global_info.hex_day == 5

    def test_empty(self):
        overview = build_overview(Network.PULSECHAIN, [])

        assert overview.total_active_stakes == 0
        assert overview.average_stake_length == 0
        assert overview.top_stakes == []
