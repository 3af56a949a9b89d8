"""Stakes ending soon: windowed totals and display ordering."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, Iterable, List, Sequence

from hexstats.services.data.records import ActiveStake, hearts_to_hex

ENDING_SOON_WINDOWS = (7, 30, 90)
DAYS_PER_YEAR = 365


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class EndingSoonSortKey(str, Enum):
    """Columns the ending-soon view can be ordered by."""
    END_DAY = "end_day"
    DAYS_LEFT = "days_left"
    PROGRESS = "progress"
    USD_VALUE = "usd_value"
    ESTIMATED_APY = "estimated_apy"
    STAKED_HEARTS = "staked_hearts"
    STAKE_T_SHARES = "stake_t_shares"
    STAKE_SHARES = "stake_shares"
    START_DAY = "start_day"
    STAKED_DAYS = "staked_days"
    STAKE_ID = "stake_id"
    DAYS_SERVED = "days_served"
    TIMESTAMP = "timestamp"


@dataclass
class EndingSoonSummary:
    """Totals for stakes ending within a window."""
    window_days: int
    count: int
    total_hearts: int
    total_usd: Decimal
    stakes: List[ActiveStake] = field(default_factory=list)

    @property
    def total_hex(self) -> Decimal:
        return hearts_to_hex(self.total_hearts)


def usd_value(stake: ActiveStake, price_usd: Decimal) -> Decimal:
    """USD value of the staked principal at ``price_usd``."""
    return hearts_to_hex(stake.staked_hearts) * Decimal(price_usd)


def estimated_apy(stake: ActiveStake) -> Decimal:
    """T-shares per staked heart, annualized over the stake length.

    This is a display heuristic, not a payout projection. It is 0 unless the
    stake has served at least one day and carries T-shares.
    """
    if not stake.days_served or not stake.staked_days or not stake.stake_t_shares:
        return Decimal("0")
    if stake.staked_hearts <= 0:
        return Decimal("0")
    shares_per_heart = Decimal(stake.stake_t_shares) / Decimal(stake.staked_hearts)
    return shares_per_heart * DAYS_PER_YEAR * 100 / Decimal(stake.staked_days)


def stakes_ending_within(
    active: Iterable[ActiveStake],
    current_day: int,
    window_days: int,
) -> List[ActiveStake]:
    """Stakes with ``0 <= end_day - current_day <= window_days``."""
    return [
        stake for stake in active
        if 0 <= stake.end_day - current_day <= window_days
    ]


def summarize(
    active: Iterable[ActiveStake],
    current_day: int,
    window_days: int,
    price_usd: Decimal = Decimal("0"),
) -> EndingSoonSummary:
    """Count and total the stakes ending within ``window_days``.

    Args:
        active: Active stakes
        current_day: Current protocol day
        window_days: Window length in days (7, 30 or 90 in the API)
        price_usd: HEX price used for the USD total

    Returns:
        EndingSoonSummary with stakes ordered by end day
    """
    ending = sort_stakes(
        stakes_ending_within(active, current_day, window_days),
        EndingSoonSortKey.END_DAY,
        SortDirection.ASC,
        price_usd=price_usd,
    )
    total_hearts = sum(stake.staked_hearts for stake in ending)
    return EndingSoonSummary(
        window_days=window_days,
        count=len(ending),
        total_hearts=total_hearts,
        total_usd=hearts_to_hex(total_hearts) * Decimal(price_usd),
        stakes=ending,
    )


def summarize_windows(
    active: Sequence[ActiveStake],
    current_day: int,
    price_usd: Decimal = Decimal("0"),
) -> Dict[int, EndingSoonSummary]:
    """Summaries for every standard window."""
    return {
        window: summarize(active, current_day, window, price_usd)
        for window in ENDING_SOON_WINDOWS
    }


def _sort_value(key: EndingSoonSortKey, price_usd: Decimal) -> Callable[[ActiveStake], object]:
    if key is EndingSoonSortKey.PROGRESS:
        return lambda s: s.progress_pct
    if key is EndingSoonSortKey.USD_VALUE:
        return lambda s: usd_value(s, price_usd)
    if key is EndingSoonSortKey.ESTIMATED_APY:
        return estimated_apy
    attribute = key.value
    return lambda s: getattr(s, attribute)


def sort_stakes(
    stakes: Iterable[ActiveStake],
    key: EndingSoonSortKey = EndingSoonSortKey.END_DAY,
    direction: SortDirection = SortDirection.ASC,
    price_usd: Decimal = Decimal("0"),
) -> List[ActiveStake]:
    """Order stakes for display. The sort is stable."""
    return sorted(
        stakes,
        key=_sort_value(EndingSoonSortKey(key), price_usd),
        reverse=SortDirection(direction) is SortDirection.DESC,
    )
