"""Health check and dataset status endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from hexstats import __version__
from hexstats.core.database import init_db
from hexstats.core.redis import get_redis
from hexstats.core.scheduler import get_scheduler_status
from hexstats.schemas.common import DataStatusResponse, HealthResponse
from hexstats.services.data.availability import StoreAvailability, get_store_availability
from hexstats.services.data.dataset_status import DatasetStatusMap, get_dataset_status_map
from hexstats.services.data.graph_client import HexGraphClient, get_graph_client
from hexstats.services.data.records import Network

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    graph: HexGraphClient = Depends(get_graph_client),
    availability: StoreAvailability = Depends(get_store_availability),
    status_map: DatasetStatusMap = Depends(get_dataset_status_map),
) -> HealthResponse:
    """Check health of the store, cache and remote subgraphs."""
    now = datetime.now(timezone.utc)

    db_status = "healthy" if await init_db() else "unhealthy"

    try:
        redis = await get_redis()
        await redis.ping()
        redis_status = "healthy"
    except Exception as e:
        redis_status = f"unhealthy: {str(e)[:50]}"

    remote_status = "healthy" if await graph.health_check(Network.PULSECHAIN) else "unhealthy"

    if db_status == "healthy" and remote_status == "healthy" and redis_status == "healthy":
        status = "healthy"
    elif db_status == "healthy" or remote_status == "healthy":
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        timestamp=now,
        version=__version__,
        database=db_status,
        redis=redis_status,
        remote_api=remote_status,
        store_available=availability.is_available,
        datasets=status_map.snapshot(),
        scheduler=get_scheduler_status(),
    )


@router.get("/data-status", response_model=DataStatusResponse)
async def data_status(
    availability: StoreAvailability = Depends(get_store_availability),
    status_map: DatasetStatusMap = Depends(get_dataset_status_map),
) -> DataStatusResponse:
    """Where each dataset is currently served from."""
    return DataStatusResponse(
        store_available=availability.is_available,
        datasets=status_map.snapshot(),
    )
