"""Endstake day recommendation over risk buckets.

Preference order is lowest risk first, then distance to the caller's target
day. Ties on distance go to the bucket that comes first in day order.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Sequence

from hexstats.services.analysis.risk_buckets import RiskBucket, RiskLevel, format_hex

MAX_ALTERNATIVES = 3

# Caller share of a day's ending HEX, in percent
SIGNIFICANT_IMPACT_PCT = Decimal("50")
MODERATE_IMPACT_PCT = Decimal("20")


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class Recommendation:
    """Suggested end day and the narrative behind it."""
    day: int
    end_date: date
    risk_level: RiskLevel
    confidence: Confidence
    reasoning: List[str] = field(default_factory=list)
    risk_assessment: str = ""
    market_impact: str = ""
    market_share_pct: Decimal = Decimal("0")
    alternatives: List[int] = field(default_factory=list)


def _closest(buckets: Sequence[RiskBucket], target_day: int) -> RiskBucket:
    # min() keeps the first of equally distant buckets
    return min(buckets, key=lambda b: abs(b.day - target_day))


def _format_date(day: int, today: date) -> str:
    return (today + timedelta(days=day)).strftime("%d/%m/%Y")


def market_share_pct(hex_amount: Decimal, bucket: RiskBucket) -> Decimal:
    """Caller's share of all HEX ending on the bucket's day, in percent."""
    hex_amount = Decimal(hex_amount)
    combined = hex_amount + bucket.total_hex
    if combined <= 0:
        return Decimal("0")
    return hex_amount / combined * 100


def describe_market_impact(hex_amount: Decimal, bucket: RiskBucket) -> str:
    share = market_share_pct(hex_amount, bucket)
    prefix = (
        f"Your {format_hex(Decimal(hex_amount))} HEX would represent "
        f"{share:.1f}% of total HEX ending on this day."
    )
    if share > SIGNIFICANT_IMPACT_PCT:
        return f"{prefix} You'll have significant influence on the market."
    if share > MODERATE_IMPACT_PCT:
        return f"{prefix} Moderate market influence expected."
    return f"{prefix} Minimal market influence."


def describe_risk(bucket: RiskBucket) -> str:
    total = format_hex(bucket.total_hex)
    if bucket.risk_level is RiskLevel.LOW:
        return (
            f"Low risk: Minimal selling pressure with only {total} HEX ending. "
            "This day provides a safe exit with minimal market impact."
        )
    if bucket.risk_level is RiskLevel.MEDIUM:
        return (
            f"Medium risk: Moderate selling pressure with {total} HEX ending. "
            "While not ideal, this day offers a reasonable balance of timing and risk."
        )
    return (
        f"High risk: Significant selling pressure with {total} HEX ending. "
        "This day should be avoided if possible."
    )


def recommend(
    buckets: Sequence[RiskBucket],
    target_day: int,
    hex_amount: Decimal,
    today: Optional[date] = None,
) -> Optional[Recommendation]:
    """Pick the best day to end a stake.

    Args:
        buckets: Risk buckets, sorted by day
        target_day: Caller's preferred day, in days from now
        hex_amount: Caller's own stake in HEX
        today: Calendar date of day 0, defaults to today

    Returns:
        Recommendation, or None when there are no buckets
    """
    if not buckets:
        return None
    today = today or date.today()

    low = [b for b in buckets if b.risk_level is RiskLevel.LOW]
    medium = [b for b in buckets if b.risk_level is RiskLevel.MEDIUM]

    if low:
        chosen = _closest(low, target_day)
        confidence = Confidence.HIGH
        reasoning = [
            f"Day {chosen.day} ({_format_date(chosen.day, today)}) has the lowest risk (low)",
            f"Only {format_hex(chosen.total_hex)} HEX ending on this day",
            f"Close to your target of {target_day} days",
        ]
    elif medium:
        chosen = _closest(medium, target_day)
        confidence = Confidence.MEDIUM
        reasoning = [
            f"Day {chosen.day} ({_format_date(chosen.day, today)}) has moderate risk",
            f"{format_hex(chosen.total_hex)} HEX ending on this day",
            "Best available option within your variance range",
        ]
    else:
        chosen = _closest(buckets, target_day)
        confidence = Confidence.LOW
        reasoning = [
            f"Day {chosen.day} ({_format_date(chosen.day, today)}) is the least risky option available",
            "All days in your range have high selling pressure",
            "Consider extending your variance range or adjusting your target",
        ]

    alternatives = [b.day for b in low if b.day != chosen.day][:MAX_ALTERNATIVES]

    return Recommendation(
        day=chosen.day,
        end_date=today + timedelta(days=chosen.day),
        risk_level=chosen.risk_level,
        confidence=confidence,
        reasoning=reasoning,
        risk_assessment=describe_risk(chosen),
        market_impact=describe_market_impact(hex_amount, chosen),
        market_share_pct=market_share_pct(hex_amount, chosen),
        alternatives=alternatives,
    )
