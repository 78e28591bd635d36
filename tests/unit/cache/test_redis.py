"""Unit tests for Redis cache client module.

Tests cover:
- Client initialization
- Client closing
- Client getter
- Health checks
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest
import redis.asyncio as async_redis

import nutrition_engine.cache.redis as redis_module
from nutrition_engine.cache.redis import (
    check_cache_health,
    close_cache_client,
    get_cache_client,
    init_cache_client,
)


if TYPE_CHECKING:
    from collections.abc import Generator

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def reset_redis_globals() -> Generator[None]:
    """Reset Redis global state before and after each test."""
    redis_module._cache_client = None
    yield
    redis_module._cache_client = None


class TestGetCacheClient:
    """Tests for get_cache_client function."""

    def test_raises_when_not_initialized(self) -> None:
        """Should raise RuntimeError when client not initialized."""
        with pytest.raises(RuntimeError, match="not initialized"):
            get_cache_client()

    def test_returns_client(self) -> None:
        """Should return the initialized client."""
        client = AsyncMock()
        redis_module._cache_client = client

        assert get_cache_client() is client


class TestInitCacheClient:
    """Tests for init_cache_client function."""

    async def test_connects(self) -> None:
        """Should create the client from the cache URL and ping it."""
        client = AsyncMock()

        with patch(
            "nutrition_engine.cache.redis.redis.Redis.from_url", return_value=client
        ) as mock_from_url:
            result = await init_cache_client()

        assert result is client
        assert mock_from_url.call_args.args[0] == "redis://localhost:6379/0"
        client.ping.assert_awaited_once()

    async def test_connection_failure(self) -> None:
        """Should close the client and re-raise when Redis is unreachable."""
        client = AsyncMock()
        client.ping.side_effect = async_redis.ConnectionError("refused")

        with (
            patch(
                "nutrition_engine.cache.redis.redis.Redis.from_url",
                return_value=client,
            ),
            pytest.raises(async_redis.ConnectionError),
        ):
            await init_cache_client()

        client.aclose.assert_awaited_once()
        assert redis_module._cache_client is None


class TestCloseAndHealth:
    """Tests for close_cache_client and check_cache_health."""

    async def test_close(self) -> None:
        """Should close the client and clear the global."""
        client = AsyncMock()
        redis_module._cache_client = client

        await close_cache_client()

        client.aclose.assert_awaited_once()
        assert redis_module._cache_client is None

    async def test_health_states(self) -> None:
        """Should report not_initialized, healthy and unhealthy."""
        assert await check_cache_health() == {"redis_cache": "not_initialized"}

        client = AsyncMock()
        redis_module._cache_client = client
        assert await check_cache_health() == {"redis_cache": "healthy"}

        client.ping.side_effect = async_redis.ConnectionError("gone")
        assert await check_cache_health() == {"redis_cache": "unhealthy"}
