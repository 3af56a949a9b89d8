"""Per-address staking history."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from hexstats.services.analysis.active_set import to_active
from hexstats.services.data.records import StakeEnd, StakeStart

DAYS_PER_YEAR = 365


@dataclass
class StakeHistoryEntry:
    """One stake of an address with its outcome, if ended."""
    start: StakeStart
    end: Optional[StakeEnd]
    is_active: bool
    days_served: int
    days_left: int
    late_ending_days: int = 0
    realized_apy: Decimal = Decimal("0")


@dataclass
class StakerHistory:
    """Lifetime staking metrics of one address."""
    staker_addr: str
    current_day: int
    total_stakes: int
    active_stakes: int
    ended_stakes: int
    total_staked_hearts: int
    total_t_shares: Decimal
    average_stake_length: Decimal
    total_payouts: int
    total_penalties: int
    stakes: List[StakeHistoryEntry] = field(default_factory=list)


def late_ending_days(start: StakeStart, end: StakeEnd) -> int:
    """Days a stake was served beyond its committed length."""
    return max(0, end.served_days - start.staked_days)


def realized_apy(start: StakeStart, end: StakeEnd) -> Decimal:
    """Annualized percentage return of an ended stake, net of penalty."""
    if start.staked_hearts <= 0 or end.served_days <= 0:
        return Decimal("0")
    net = Decimal(end.payout - end.penalty)
    return net / Decimal(start.staked_hearts) * DAYS_PER_YEAR / Decimal(end.served_days) * 100


def build_staker_history(
    staker_addr: str,
    starts: Sequence[StakeStart],
    ends: Sequence[StakeEnd],
    current_day: int,
) -> StakerHistory:
    """Combine an address's start and end events into its history."""
    ends_by_id: Dict[int, StakeEnd] = {}
    for end in ends:
        ends_by_id.setdefault(end.stake_id, end)

    entries = []
    seen = set()
    for start in starts:
        if start.stake_id in seen:
            continue
        seen.add(start.stake_id)
        end = ends_by_id.get(start.stake_id)
        if end is None:
            positioned = to_active(start, current_day)
            entries.append(StakeHistoryEntry(
                start=start,
                end=None,
                is_active=True,
                days_served=positioned.days_served,
                days_left=positioned.days_left,
            ))
        else:
            entries.append(StakeHistoryEntry(
                start=start,
                end=end,
                is_active=False,
                days_served=end.served_days,
                days_left=0,
                late_ending_days=late_ending_days(start, end),
                realized_apy=realized_apy(start, end),
            ))

    total = len(entries)
    active_count = sum(1 for e in entries if e.is_active)
    ended = [e.end for e in entries if e.end is not None]
    average_length = (
        Decimal(sum(e.start.staked_days for e in entries)) / total if total else Decimal("0")
    )

    return StakerHistory(
        staker_addr=staker_addr.lower(),
        current_day=current_day,
        total_stakes=total,
        active_stakes=active_count,
        ended_stakes=total - active_count,
        total_staked_hearts=sum(e.start.staked_hearts for e in entries),
        total_t_shares=sum((Decimal(e.start.stake_t_shares) for e in entries), Decimal("0")),
        average_stake_length=average_length,
        total_payouts=sum(end.payout for end in ended),
        total_penalties=sum(end.penalty for end in ended),
        stakes=entries,
    )
