"""Pydantic schemas for API request/response models."""

from hexstats.schemas.common import (
    DataStatusResponse,
    DatasetStatusResponse,
    HealthResponse,
)
from hexstats.schemas.staking import (
    ActiveStakesResponse,
    EndingSoonResponse,
    EndstakeTimingRequest,
    EndstakeTimingResponse,
    LiveMarketResponse,
    StakerHistoryResponse,
    StakingOverviewResponse,
)

__all__ = [
    "DataStatusResponse",
    "DatasetStatusResponse",
    "HealthResponse",
    "ActiveStakesResponse",
    "EndingSoonResponse",
    "EndstakeTimingRequest",
    "EndstakeTimingResponse",
    "LiveMarketResponse",
    "StakerHistoryResponse",
    "StakingOverviewResponse",
]
