"""Common schemas used across the API."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel


class LastRecheck(BaseModel):
    """Last store availability recheck run by the scheduler."""
    available: Optional[bool] = None
    timestamp: Optional[str] = None
    error: Optional[str] = None


class SchedulerStatus(BaseModel):
    """Scheduler status for health check."""
    running: bool
    next_recheck: Optional[str] = None
    job_count: int = 0
    last_recheck: Optional[LastRecheck] = None


class DatasetStatusResponse(BaseModel):
    """Source status of one dataset."""
    dataset: str
    status: str
    last_error: Optional[str] = None
    last_updated: Optional[datetime] = None
    last_attempt_at: Optional[datetime] = None
    record_count: int = 0


class DataStatusResponse(BaseModel):
    """Dataset status map."""
    store_available: bool
    datasets: Dict[str, DatasetStatusResponse]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime
    version: str
    database: str
    redis: str
    remote_api: str
    store_available: bool = False
    datasets: Dict[str, DatasetStatusResponse] = {}
    scheduler: Optional[SchedulerStatus] = None

