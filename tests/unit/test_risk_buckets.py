"""Tests for end-day risk buckets."""

from decimal import Decimal

from hexstats.services.analysis.active_set import to_active
from hexstats.services.analysis.risk_buckets import (
    RiskLevel,
    bucketize,
    classify_risk,
    format_hex,
)

HEX = 100_000_000


def _active(make_start, stake_id, staked_hex, days_left, current_day=1000):
    start = make_start(
        stake_id,
        staked_hex=staked_hex,
        start_day=current_day - 10,
        staked_days=10 + days_left,
    )
    return to_active(start, current_day)


class TestClassifyRisk:
    """Classification thresholds relative to the caller's stake."""

    def test_small_bucket_is_low(self):
        level, factors = classify_risk(100 * HEX, 100 * HEX, 1, Decimal("1000000"))
        assert level is RiskLevel.LOW
        assert factors == []

    def test_moderate_pressure(self):
        level, factors = classify_risk(250_000 * HEX, 100_000 * HEX, 3, Decimal("1000000"))
        assert level is RiskLevel.MEDIUM
        assert factors == ["Moderate selling pressure: 250,000 HEX ending"]

    def test_high_pressure_from_large_stake(self):
        """600k ending against a 1M stake: high pressure plus a large stake."""
        level, factors = classify_risk(600_000 * HEX, 600_000 * HEX, 1, Decimal("1000000"))

        assert level is RiskLevel.HIGH
        assert factors == [
            "High selling pressure: 600,000 HEX ending",
            "Large individual stake: 600,000 HEX",
        ]

    def test_large_stake_escalates_medium_to_high(self):
        level, _ = classify_risk(400_000 * HEX, 350_000 * HEX, 2, Decimal("1000000"))
        assert level is RiskLevel.HIGH

    def test_stake_count_escalates_low_to_medium(self):
        level, factors = classify_risk(51 * HEX, HEX, 51, Decimal("1000000"))
        assert level is RiskLevel.MEDIUM
        assert factors == ["High stake count: 51 stakes ending"]

    def test_exactly_fifty_stakes_does_not_escalate(self):
        level, _ = classify_risk(50 * HEX, HEX, 50, Decimal("1000000"))
        assert level is RiskLevel.LOW

    def test_threshold_is_strict(self):
        """Exactly half of the caller's stake is moderate, not high."""
        level, _ = classify_risk(500_000 * HEX, 100_000 * HEX, 5, Decimal("1000000"))
        assert level is RiskLevel.MEDIUM

    def test_escalation_caps_at_high(self):
        assert RiskLevel.HIGH.escalate() is RiskLevel.HIGH
        assert RiskLevel.LOW.escalate() is RiskLevel.MEDIUM

    def test_classification_is_idempotent(self):
        args = (600_000 * HEX, 400_000 * HEX, 60, Decimal("1000000"))
        assert classify_risk(*args) == classify_risk(*args)


class TestBucketize:
    """Grouping active stakes by days left."""

    def test_groups_by_day_and_sorts(self, make_start):
        active = [
            _active(make_start, 1, 100, days_left=20),
            _active(make_start, 2, 300, days_left=5),
            _active(make_start, 3, 200, days_left=20),
        ]

        buckets = bucketize(active, 0, 30, Decimal("1000000"))

        assert [b.day for b in buckets] == [5, 20]
        day20 = buckets[1]
        assert day20.stake_count == 2
        assert day20.total_hearts == 300 * HEX
        assert day20.largest_stake_hearts == 200 * HEX
        assert day20.average_stake_hearts == Decimal(150 * HEX)
        assert day20.total_hex == Decimal(300)
        assert [s.stake_id for s in day20.stakes] == [1, 3]

    def test_window_is_inclusive(self, make_start):
        active = [
            _active(make_start, 1, 100, days_left=10),
            _active(make_start, 2, 100, days_left=20),
            _active(make_start, 3, 100, days_left=9),
            _active(make_start, 4, 100, days_left=21),
        ]

        buckets = bucketize(active, 10, 20, Decimal("1000"))

        assert [b.day for b in buckets] == [10, 20]

    def test_overdue_stakes_fall_outside_window(self, make_start):
        overdue = to_active(make_start(1, start_day=0, staked_days=10), current_day=30)
        assert bucketize([overdue], 0, 100, Decimal("1000")) == []

    def test_empty_when_nothing_in_window(self, make_start):
        active = [_active(make_start, 1, 100, days_left=200)]
        assert bucketize(active, 0, 30, Decimal("1000")) == []

    def test_bucket_classification_matches_caller_size(self, make_start):
        active = [_active(make_start, 1, 600_000, days_left=15)]

        buckets = bucketize(active, 0, 30, Decimal("1000000"))

        assert buckets[0].risk_level is RiskLevel.HIGH
        assert len(buckets[0].risk_factors) == 2


class TestFormatHex:
    def test_thousands_separators(self):
        assert format_hex(Decimal("1234567")) == "1,234,567"

    def test_fraction_kept_to_three_places(self):
        assert format_hex(Decimal("1.23456")) == "1.235"
        assert format_hex(Decimal("0.5")) == "0.5"
