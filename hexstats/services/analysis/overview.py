"""Network staking overview derived from the active set."""

from decimal import Decimal
from typing import Optional, Sequence

from hexstats.services.data.records import ActiveStake, GlobalInfo, Network, StakingOverview

DEFAULT_TOP_STAKES = 50


def top_stakes(active: Sequence[ActiveStake], limit: int = DEFAULT_TOP_STAKES) -> list:
    """Largest active stakes by staked hearts."""
    return sorted(active, key=lambda s: s.staked_hearts, reverse=True)[:limit]


def build_overview(
    network: Network,
    active: Sequence[ActiveStake],
    global_info: Optional[GlobalInfo] = None,
    top_n: int = DEFAULT_TOP_STAKES,
) -> StakingOverview:
    total = len(active)
    average_length = (
        Decimal(sum(s.staked_days for s in active)) / total if total else Decimal("0")
    )
    return StakingOverview(
        network=network,
        total_active_stakes=total,
        total_staked_hearts=sum(s.staked_hearts for s in active),
        average_stake_length=average_length,
        global_info=global_info,
        top_stakes=top_stakes(active, top_n),
    )
