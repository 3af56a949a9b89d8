"""APScheduler configuration for background store rechecks.

The availability job re-probes the persistent store at a fixed interval.
When the store is reachable the probe notifies the source gate, which
promotes datasets currently served from the remote subgraphs.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from hexstats.core.config import get_settings

logger = structlog.get_logger()

AVAILABILITY_JOB_ID = "store_availability_recheck"

_scheduler: Optional[AsyncIOScheduler] = None

_last_recheck: Dict[str, Any] = {
    "available": None,
    "timestamp": None,
    "error": None,
}


async def _run_availability_recheck() -> None:
    """Re-probe the store; promotion runs through the probe's listeners."""
    from hexstats.services.analysis.staking_analytics import get_staking_analytics
    from hexstats.services.data.availability import get_store_availability

    # Builds the gate on first run so its promotion listener is registered
    get_staking_analytics()
    try:
        available = await get_store_availability().recheck()
        _last_recheck["available"] = available
        _last_recheck["error"] = None
        logger.debug("Store availability rechecked", available=available)
    except Exception as e:
        _last_recheck["available"] = False
        _last_recheck["error"] = str(e)
        logger.error("Store availability recheck failed", error=str(e))
    finally:
        _last_recheck["timestamp"] = datetime.now(timezone.utc).isoformat()


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the scheduler singleton."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(timezone="UTC")
    return _scheduler


def start_scheduler() -> None:
    """Start the scheduler with the availability recheck job."""
    settings = get_settings()
    scheduler = get_scheduler()

    if scheduler.running:
        logger.warning("Scheduler already running")
        return

    scheduler.add_job(
        _run_availability_recheck,
        trigger=IntervalTrigger(minutes=settings.availability_recheck_minutes),
        id=AVAILABILITY_JOB_ID,
        name="Store availability recheck",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(
        "Scheduler started",
        availability_interval=f"{settings.availability_recheck_minutes}m",
    )


def stop_scheduler() -> None:
    """Stop the background scheduler."""
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    _scheduler = None


def get_scheduler_status() -> Dict[str, Any]:
    """Scheduler status for health checks."""
    scheduler = get_scheduler()
    job = scheduler.get_job(AVAILABILITY_JOB_ID) if scheduler.running else None
    return {
        "running": scheduler.running,
        "next_recheck": job.next_run_time.isoformat() if job and job.next_run_time else None,
        "job_count": len(scheduler.get_jobs()) if scheduler.running else 0,
        "last_recheck": dict(_last_recheck),
    }
