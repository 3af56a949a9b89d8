"""Tests for the endstake day recommendation."""

from datetime import date
from decimal import Decimal

from hexstats.services.analysis.recommendation import (
    Confidence,
    describe_market_impact,
    market_share_pct,
    recommend,
)
from hexstats.services.analysis.risk_buckets import RiskBucket, RiskLevel

HEX = 100_000_000
TODAY = date(2024, 1, 1)


def bucket(day: int, level: RiskLevel, total_hex: int = 1000) -> RiskBucket:
    return RiskBucket(
        day=day,
        total_hearts=total_hex * HEX,
        stake_count=1,
        average_stake_hearts=Decimal(total_hex * HEX),
        largest_stake_hearts=total_hex * HEX,
        risk_level=level,
    )


class TestRecommend:
    """Day selection and confidence."""

    def test_no_buckets_returns_none(self):
        assert recommend([], 30, Decimal("1000"), today=TODAY) is None

    def test_prefers_low_risk_over_closer_day(self):
        buckets = [bucket(30, RiskLevel.HIGH), bucket(40, RiskLevel.LOW)]

        rec = recommend(buckets, 30, Decimal("1000"), today=TODAY)

        assert rec.day == 40
        assert rec.confidence is Confidence.HIGH
        assert rec.risk_level is RiskLevel.LOW

    def test_closest_low_day_wins(self):
        buckets = [
            bucket(10, RiskLevel.LOW),
            bucket(28, RiskLevel.LOW),
            bucket(45, RiskLevel.LOW),
        ]

        rec = recommend(buckets, 30, Decimal("1000"), today=TODAY)

        assert rec.day == 28
        assert rec.alternatives == [10, 45]

    def test_tie_goes_to_earlier_day(self):
        buckets = [bucket(25, RiskLevel.LOW), bucket(35, RiskLevel.LOW)]

        rec = recommend(buckets, 30, Decimal("1000"), today=TODAY)

        assert rec.day == 25

    def test_medium_when_no_low(self):
        buckets = [bucket(20, RiskLevel.HIGH), bucket(50, RiskLevel.MEDIUM)]

        rec = recommend(buckets, 20, Decimal("1000"), today=TODAY)

        assert rec.day == 50
        assert rec.confidence is Confidence.MEDIUM
        assert rec.alternatives == []
        assert rec.reasoning[2] == "Best available option within your variance range"

    def test_low_confidence_when_all_high(self):
        buckets = [bucket(10, RiskLevel.HIGH), bucket(32, RiskLevel.HIGH)]

        rec = recommend(buckets, 30, Decimal("1000"), today=TODAY)

        assert rec.day == 32
        assert rec.confidence is Confidence.LOW
        assert rec.reasoning[1] == "All days in your range have high selling pressure"

    def test_alternatives_capped_at_three(self):
        buckets = [bucket(day, RiskLevel.LOW) for day in (1, 2, 3, 4, 5, 6)]

        rec = recommend(buckets, 1, Decimal("1000"), today=TODAY)

        assert rec.day == 1
        assert rec.alternatives == [2, 3, 4]

    def test_reasoning_and_end_date(self):
        rec = recommend([bucket(31, RiskLevel.LOW, total_hex=2500)], 30, Decimal("1000"), today=TODAY)

        assert rec.end_date == date(2024, 2, 1)
        assert rec.reasoning == [
            "Day 31 (01/02/2024) has the lowest risk (low)",
            "Only 2,500 HEX ending on this day",
            "Close to your target of 30 days",
        ]
        assert rec.risk_assessment.startswith("Low risk: Minimal selling pressure with only 2,500 HEX ending.")


class TestMarketImpact:
    """Caller's share of the HEX ending on the chosen day."""

    def test_share_pct(self):
        assert market_share_pct(Decimal("1000"), bucket(1, RiskLevel.LOW, total_hex=3000)) == Decimal("25")

    def test_significant_influence(self):
        text = describe_market_impact(Decimal("3000"), bucket(1, RiskLevel.LOW, total_hex=1000))
        assert text == (
            "Your 3,000 HEX would represent 75.0% of total HEX ending on this day. "
            "You'll have significant influence on the market."
        )

    def test_moderate_influence(self):
        text = describe_market_impact(Decimal("1000"), bucket(1, RiskLevel.LOW, total_hex=3000))
        assert text.endswith("Moderate market influence expected.")

    def test_minimal_influence(self):
        text = describe_market_impact(Decimal("100"), bucket(1, RiskLevel.LOW, total_hex=9900))
        assert text.endswith("Minimal market influence.")
