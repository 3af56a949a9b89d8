"""End-day risk buckets for endstake timing.

Active stakes are grouped by the day they end (days from now) and each group
is scored against the caller's own stake size. A large amount of HEX ending
on the same day is treated as selling pressure on that day.

Classification runs in a fixed order and only ever escalates:
1. baseline LOW
2. bucket total above 50% of the caller amount -> HIGH, above 20% -> MEDIUM
3. a single stake above 30% of the caller amount -> one level up
4. more than 50 stakes -> one level up
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Tuple

from hexstats.services.data.records import ActiveStake, HEARTS_PER_HEX, hearts_to_hex

# Thresholds as fractions of the caller's stake
HIGH_PRESSURE_RATIO = Decimal("0.5")
MODERATE_PRESSURE_RATIO = Decimal("0.2")
LARGE_STAKE_RATIO = Decimal("0.3")
HIGH_STAKE_COUNT = 50


class RiskLevel(str, Enum):
    """Selling-pressure risk of ending on a given day."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def escalate(self) -> "RiskLevel":
        if self is RiskLevel.LOW:
            return RiskLevel.MEDIUM
        return RiskLevel.HIGH


@dataclass
class RiskBucket:
    """Stakes ending on one day, with their combined risk."""
    day: int
    total_hearts: int
    stake_count: int
    average_stake_hearts: Decimal
    largest_stake_hearts: int
    risk_level: RiskLevel
    risk_factors: List[str] = field(default_factory=list)
    stakes: List[ActiveStake] = field(default_factory=list)

    @property
    def total_hex(self) -> Decimal:
        return hearts_to_hex(self.total_hearts)

    @property
    def largest_stake_hex(self) -> Decimal:
        return hearts_to_hex(self.largest_stake_hearts)


def format_hex(amount: Decimal) -> str:
    """Format a HEX amount with thousands separators and up to 3 decimals."""
    text = f"{amount:,.3f}"
    return text.rstrip("0").rstrip(".")


def classify_risk(
    total_hearts: int,
    largest_stake_hearts: int,
    stake_count: int,
    hex_amount: Decimal,
) -> Tuple[RiskLevel, List[str]]:
    """Classify one day's selling pressure against the caller's stake.

    Pure in its inputs, so classifying the same bucket twice gives the same
    level and factors.
    """
    caller_hearts = Decimal(hex_amount) * HEARTS_PER_HEX
    level = RiskLevel.LOW
    factors: List[str] = []

    if Decimal(total_hearts) > caller_hearts * HIGH_PRESSURE_RATIO:
        level = RiskLevel.HIGH
        factors.append(f"High selling pressure: {format_hex(hearts_to_hex(total_hearts))} HEX ending")
    elif Decimal(total_hearts) > caller_hearts * MODERATE_PRESSURE_RATIO:
        level = RiskLevel.MEDIUM
        factors.append(f"Moderate selling pressure: {format_hex(hearts_to_hex(total_hearts))} HEX ending")

    if Decimal(largest_stake_hearts) > caller_hearts * LARGE_STAKE_RATIO:
        level = level.escalate()
        factors.append(f"Large individual stake: {format_hex(hearts_to_hex(largest_stake_hearts))} HEX")

    if stake_count > HIGH_STAKE_COUNT:
        level = level.escalate()
        factors.append(f"High stake count: {stake_count} stakes ending")

    return level, factors


def bucketize(
    active: Iterable[ActiveStake],
    window_start: int,
    window_end: int,
    hex_amount: Decimal,
) -> List[RiskBucket]:
    """Group active stakes ending within ``[window_start, window_end]`` days.

    Args:
        active: Active stakes (any networks)
        window_start: First day from now to include
        window_end: Last day from now to include
        hex_amount: Caller's own stake in HEX

    Returns:
        One bucket per day with at least one stake ending, sorted by day
    """
    grouped: Dict[int, List[ActiveStake]] = {}
    for stake in active:
        if window_start <= stake.days_left <= window_end:
            grouped.setdefault(stake.days_left, []).append(stake)

    buckets = []
    for day, stakes in sorted(grouped.items()):
        total = sum(s.staked_hearts for s in stakes)
        largest = max(s.staked_hearts for s in stakes)
        level, factors = classify_risk(total, largest, len(stakes), hex_amount)
        buckets.append(RiskBucket(
            day=day,
            total_hearts=total,
            stake_count=len(stakes),
            average_stake_hearts=Decimal(total) / len(stakes),
            largest_stake_hearts=largest,
            risk_level=level,
            risk_factors=factors,
            stakes=stakes,
        ))
    return buckets
