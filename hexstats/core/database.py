"""Persistent store connection and session management.

The engine is built lazily so tests can point DATABASE_URL at SQLite before
anything connects. The store is optional at runtime: when it is unreachable
the service keeps serving from the remote subgraphs.
"""

from typing import Any, Dict, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = structlog.get_logger()


class Base(DeclarativeBase):
    """Base class for staking tables."""
    pass


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(url: str, echo: bool) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(pool_size=10, max_overflow=20)
    return options


def get_engine() -> AsyncEngine:
    """Get or create the async engine on first access."""
    global _engine
    if _engine is None:
        from hexstats.core.config import get_settings
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            **_engine_options(settings.database_url, settings.debug),
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory bound to the lazy engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def init_db() -> bool:
    """Check the store connection at startup.

    Schema changes are applied with ``alembic upgrade head``. A failed check
    is logged and reported, never raised.
    """
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Persistent store unreachable at startup", error=str(e))
        return False
    return True


async def close_db() -> None:
    """Dispose of pooled connections."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
