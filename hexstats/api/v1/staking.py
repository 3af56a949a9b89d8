"""Staking data endpoints."""

from decimal import Decimal
from typing import Dict, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query

from hexstats.schemas.staking import (
    ActiveStakeResponse,
    ActiveStakesResponse,
    EndingSoonResponse,
    GlobalInfoResponse,
    StakeHistoryEntryResponse,
    StakerHistoryResponse,
    StakingOverviewResponse,
)
from hexstats.services.analysis.ending_soon import (
    ENDING_SOON_WINDOWS,
    EndingSoonSortKey,
    SortDirection,
)
from hexstats.services.analysis.staking_analytics import (
    StakingAnalyticsService,
    get_staking_analytics,
)
from hexstats.services.data.dataset_status import DataSource
from hexstats.services.data.hex_market_client import fetch_live_data
from hexstats.services.data.records import Network

logger = structlog.get_logger()

router = APIRouter()

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"


async def resolve_price(network: Network, price: Optional[Decimal]) -> Decimal:
    """Explicit price, else the live feed price, else 0."""
    if price is not None:
        return price
    live = await fetch_live_data()
    if live is None:
        logger.warning("No live price, USD values will be zero", network=network.value)
        return Decimal("0")
    return live.price(network)


def _sources(sources: Dict[str, DataSource]) -> Dict[str, str]:
    return {name: source.value for name, source in sources.items()}


@router.get("/{network}/overview", response_model=StakingOverviewResponse)
async def get_overview(
    network: Network,
    service: StakingAnalyticsService = Depends(get_staking_analytics),
) -> StakingOverviewResponse:
    """Active staking totals, protocol snapshot and top stakes."""
    overview, source = await service.get_overview(network)
    if overview is None:
        return StakingOverviewResponse(network=network, source=source.value)

    return StakingOverviewResponse(
        network=network,
        source=source.value,
        total_active_stakes=overview.total_active_stakes,
        total_staked_hearts=overview.total_staked_hearts,
        average_stake_length=overview.average_stake_length,
        global_info=(
            GlobalInfoResponse.model_validate(overview.global_info)
            if overview.global_info else None
        ),
        top_stakes=[ActiveStakeResponse.model_validate(s) for s in overview.top_stakes],
    )


@router.get("/{network}/active", response_model=ActiveStakesResponse)
async def get_active_stakes(
    network: Network,
    sort: EndingSoonSortKey = Query(default=EndingSoonSortKey.STAKED_HEARTS),
    direction: SortDirection = Query(default=SortDirection.DESC),
    limit: int = Query(default=100, ge=1, le=10000),
    current_day: Optional[int] = Query(default=None, ge=0),
    price: Optional[Decimal] = Query(default=None, ge=0),
    service: StakingAnalyticsService = Depends(get_staking_analytics),
) -> ActiveStakesResponse:
    """Active stakes of a network in display order."""
    price_usd = await resolve_price(network, price) if sort is EndingSoonSortKey.USD_VALUE else Decimal("0")
    active_set = await service.active_stakes(network, sort, direction, price_usd, current_day)
    return ActiveStakesResponse(
        network=network,
        current_day=active_set.current_day,
        count=len(active_set.stakes),
        stakes=[ActiveStakeResponse.model_validate(s) for s in active_set.stakes[:limit]],
        sources=_sources(active_set.sources),
    )


@router.get("/{network}/ending-soon", response_model=EndingSoonResponse)
async def get_ending_soon(
    network: Network,
    window: int = Query(default=30, description="Window in days: 7, 30 or 90"),
    sort: EndingSoonSortKey = Query(default=EndingSoonSortKey.END_DAY),
    direction: SortDirection = Query(default=SortDirection.ASC),
    current_day: Optional[int] = Query(default=None, ge=0),
    price: Optional[Decimal] = Query(default=None, ge=0),
    service: StakingAnalyticsService = Depends(get_staking_analytics),
) -> EndingSoonResponse:
    """Stakes ending within the next 7, 30 or 90 days."""
    if window not in ENDING_SOON_WINDOWS:
        raise HTTPException(
            status_code=422,
            detail=f"window must be one of {', '.join(str(w) for w in ENDING_SOON_WINDOWS)}",
        )

    price_usd = await resolve_price(network, price)
    summary, active_set = await service.ending_soon(
        network, window, price_usd, sort, direction, current_day
    )
    return EndingSoonResponse(
        network=network,
        current_day=active_set.current_day,
        window_days=summary.window_days,
        count=summary.count,
        total_hearts=summary.total_hearts,
        total_hex=summary.total_hex,
        total_usd=summary.total_usd,
        price_usd=price_usd,
        stakes=[ActiveStakeResponse.model_validate(s) for s in summary.stakes],
        sources=_sources(active_set.sources),
    )


@router.get("/{network}/stakers/{address}", response_model=StakerHistoryResponse)
async def get_staker_history(
    network: Network,
    address: str = Path(..., pattern=ADDRESS_PATTERN),
    current_day: Optional[int] = Query(default=None, ge=0),
    service: StakingAnalyticsService = Depends(get_staking_analytics),
) -> StakerHistoryResponse:
    """Every stake of an address with payouts, penalties and realized APY."""
    history, sources = await service.staker_history(network, address, current_day)
    entries = [
        StakeHistoryEntryResponse(
            stake_id=entry.start.stake_id,
            staked_hearts=entry.start.staked_hearts,
            staked_days=entry.start.staked_days,
            start_day=entry.start.start_day,
            end_day=entry.start.end_day,
            stake_t_shares=entry.start.stake_t_shares,
            is_active=entry.is_active,
            days_served=entry.days_served,
            days_left=entry.days_left,
            payout=entry.end.payout if entry.end else None,
            penalty=entry.end.penalty if entry.end else None,
            late_ending_days=entry.late_ending_days,
            realized_apy=entry.realized_apy,
        )
        for entry in history.stakes
    ]
    return StakerHistoryResponse(
        network=network,
        staker_addr=history.staker_addr,
        current_day=history.current_day,
        total_stakes=history.total_stakes,
        active_stakes=history.active_stakes,
        ended_stakes=history.ended_stakes,
        total_staked_hearts=history.total_staked_hearts,
        total_t_shares=history.total_t_shares,
        average_stake_length=history.average_stake_length,
        total_payouts=history.total_payouts,
        total_penalties=history.total_penalties,
        stakes=entries,
        sources=_sources(sources),
    )
