"""Active stake derivation from start and end event streams.

A stake is active when its id has no matching end event. Stakes past their
end day stay active (with negative days left) until an end event arrives,
since unended stakes still hold locked hearts.
"""

from typing import Iterable, List, Sequence, Set

from hexstats.services.data.records import ActiveStake, StakeEnd, StakeStart


def ended_stake_ids(ends: Iterable[StakeEnd]) -> Set[int]:
    """Ids of every stake that has been ended."""
    return {end.stake_id for end in ends}


def to_active(start: StakeStart, current_day: int) -> ActiveStake:
    """Position a started stake at ``current_day``.

    A non-positive length is treated as one day, and the end day is then
    recomputed from it rather than taken from the record.
    """
    if start.staked_days > 0:
        staked_days = start.staked_days
        end_day = start.end_day
    else:
        staked_days = 1
        end_day = start.start_day + 1
    days_served = min(max(0, current_day - start.start_day), staked_days)
    return ActiveStake(
        stake_id=start.stake_id,
        staker_addr=start.staker_addr,
        staked_hearts=start.staked_hearts,
        staked_days=staked_days,
        start_day=start.start_day,
        end_day=end_day,
        stake_shares=start.stake_shares,
        stake_t_shares=start.stake_t_shares,
        timestamp=start.timestamp,
        is_auto_stake=start.is_auto_stake,
        transaction_hash=start.transaction_hash,
        block_number=start.block_number,
        network=start.network,
        days_served=days_served,
        days_left=end_day - current_day,
    )


def derive_active(
    starts: Sequence[StakeStart],
    ends: Iterable[StakeEnd],
    current_day: int,
) -> List[ActiveStake]:
    """Derive the active stakes at ``current_day``.

    Input order is preserved. When a stake id appears more than once in
    ``starts`` only its first occurrence is kept.

    Args:
        starts: Stake start events
        ends: Stake end events
        current_day: Current protocol day

    Returns:
        One ActiveStake per started stake with no end event
    """
    ended = ended_stake_ids(ends)
    seen: Set[int] = set()
    active = []
    for start in starts:
        if start.stake_id in ended or start.stake_id in seen:
            continue
        seen.add(start.stake_id)
        active.append(to_active(start, current_day))
    return active
