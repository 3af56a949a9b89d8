"""Endstake timing recommendation endpoint."""

from fastapi import APIRouter, Depends

from hexstats.schemas.staking import (
    EndstakeTimingRequest,
    EndstakeTimingResponse,
    RecommendationResponse,
    RiskBucketResponse,
)
from hexstats.services.analysis.staking_analytics import (
    StakingAnalyticsService,
    get_staking_analytics,
)

router = APIRouter()


@router.post("/endstake-timing", response_model=EndstakeTimingResponse)
async def endstake_timing(
    request: EndstakeTimingRequest,
    service: StakingAnalyticsService = Depends(get_staking_analytics),
) -> EndstakeTimingResponse:
    """Score each day around the target by selling pressure and pick one.

    Days are counted from today. Stakes of every requested network ending
    within ``target_days`` +/- ``variance_days`` are grouped per day and
    compared with the caller's stake size.
    """
    timing = await service.endstake_timing(
        hex_amount=request.hex_amount,
        target_days=request.target_days,
        variance_days=request.variance_days,
        networks=request.network.networks(),
    )
    return EndstakeTimingResponse(
        hex_amount=timing.hex_amount,
        target_days=timing.target_days,
        window_start=timing.window_start,
        window_end=timing.window_end,
        networks=timing.networks,
        buckets=[RiskBucketResponse.model_validate(b) for b in timing.buckets],
        recommendation=(
            RecommendationResponse.model_validate(timing.recommendation)
            if timing.recommendation else None
        ),
        sources={name: source.value for name, source in timing.sources.items()},
    )
