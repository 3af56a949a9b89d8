"""Redis connection and response caching.

The client is created lazily. Cache reads and writes degrade to misses and
no-ops when Redis is unavailable, so a cache outage only costs extra remote
calls.
"""

import json
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

logger = structlog.get_logger()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get Redis client instance, creating it on first access."""
    global _redis_client
    if _redis_client is None:
        from hexstats.core.config import get_settings
        settings = get_settings()
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


class Cache:
    """JSON cache over Redis with a key prefix."""

    def __init__(self, prefix: str = "hexstats"):
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache, None on miss or Redis failure."""
        try:
            client = await get_redis()
            value = await client.get(self._key(key))
        except (RedisError, OSError) as e:
            logger.warning("Cache read failed", key=key, error=str(e))
            return None
        if value is None:
            return None
        logger.debug("Cache hit", key=key)
        return json.loads(value)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[timedelta] = None
    ) -> None:
        """Set value in cache with optional TTL."""
        serialized = json.dumps(value, default=str)
        try:
            client = await get_redis()
            if ttl:
                await client.setex(self._key(key), ttl, serialized)
            else:
                await client.set(self._key(key), serialized)
        except (RedisError, OSError) as e:
            logger.warning("Cache write failed", key=key, error=str(e))

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[timedelta] = None
    ) -> Any:
        """Get from cache or compute, cache and return the value.

        Args:
            key: Cache key
            factory: Async callable that produces the value if not cached
            ttl: Optional TTL for cached value
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        value = await factory()
        await self.set(key, value, ttl)
        return value


cache = Cache()
