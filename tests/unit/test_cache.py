"""Tests for the Redis JSON cache."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from hexstats.core.redis import Cache


class TestCache:
    """Cache hits, misses and Redis outages."""

    @pytest.mark.asyncio
    async def test_get_or_set_uses_cached_value(self):
        client = MagicMock()
        client.get = AsyncMock(return_value='{"hex_day": 1500}')
        factory = AsyncMock()

        with patch("hexstats.core.redis.get_redis", AsyncMock(return_value=client)):
            value = await Cache().get_or_set("graph:ethereum:global_info", factory)

        assert value == {"hex_day": 1500}
        factory.assert_not_awaited()
        client.get.assert_awaited_once_with("hexstats:graph:ethereum:global_info")

    @pytest.mark.asyncio
    async def test_miss_stores_with_ttl(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=None)
        client.setex = AsyncMock()

        with patch("hexstats.core.redis.get_redis", AsyncMock(return_value=client)):
            value = await Cache().get_or_set("k", AsyncMock(return_value=[1, 2]), timedelta(seconds=60))

        assert value == [1, 2]
        client.setex.assert_awaited_once_with("hexstats:k", timedelta(seconds=60), "[1, 2]")

    @pytest.mark.asyncio
    async def test_outage_degrades_to_factory(self):
        down = AsyncMock(side_effect=RedisConnectionError("refused"))

        with patch("hexstats.core.redis.get_redis", down):
            value = await Cache().get_or_set("k", AsyncMock(return_value="fresh"))

        assert value == "fresh"
