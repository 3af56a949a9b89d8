"""Persistent store availability probe.

The first ``check()`` probes the store and the answer is reused for the
rest of the session. ``recheck()`` probes again and, when the store is
reachable, notifies listeners (the source gate promotes remote-served
datasets back to the store).
"""

from typing import Awaitable, Callable, List, Optional, Sequence

import structlog
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from hexstats.core.database import get_engine
from hexstats.models import STAKING_TABLES

logger = structlog.get_logger()

AvailabilityListener = Callable[[], Awaitable[object]]


class StoreAvailability:
    """Session-cached reachability of the persistent store."""

    def __init__(
        self,
        engine_factory: Callable[[], AsyncEngine] = get_engine,
        required_tables: Sequence[str] = STAKING_TABLES,
    ):
        self._engine_factory = engine_factory
        self._required_tables = tuple(required_tables)
        self._available: Optional[bool] = None
        self._listeners: List[AvailabilityListener] = []

    @property
    def is_available(self) -> bool:
        return bool(self._available)

    @property
    def checked(self) -> bool:
        return self._available is not None

    def add_listener(self, listener: AvailabilityListener) -> None:
        self._listeners.append(listener)

    async def check(self) -> bool:
        """Cached availability, probing once per session."""
        if self._available is None:
            self._available = await self._probe()
        return self._available

    async def recheck(self) -> bool:
        """Probe again and notify listeners when the store is reachable."""
        was_available = self._available
        self._available = await self._probe()
        if self._available != was_available:
            logger.info(
                "Store availability changed",
                available=self._available,
                previous=was_available,
            )
        if self._available:
            for listener in self._listeners:
                await listener()
        return self._available

    async def _probe(self) -> bool:
        try:
            engine = self._engine_factory()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                tables = await conn.run_sync(
                    lambda sync_conn: set(inspect(sync_conn).get_table_names())
                )
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Store unavailable", error=str(e))
            return False

        missing = [t for t in self._required_tables if t not in tables]
        if missing:
            logger.warning("Store reachable but staking tables missing", missing=missing)
            return False
        return True


_store_availability: Optional[StoreAvailability] = None


def get_store_availability() -> StoreAvailability:
    """Get or create the process-wide availability probe."""
    global _store_availability
    if _store_availability is None:
        _store_availability = StoreAvailability()
    return _store_availability
