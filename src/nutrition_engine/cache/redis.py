"""Redis cache client management for adapter response caching."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import redis.asyncio as redis

from nutrition_engine.core.config import get_settings
from nutrition_engine.observability.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = get_logger(__name__)

_cache_client: Redis[Any] | None = None


async def init_cache_client() -> Redis[Any]:
    """Create and verify the Redis client used for source response caching."""
    global _cache_client  # noqa: PLW0603

    settings = get_settings()
    logger.info(
        "Initializing Redis cache client",
        host=settings.redis.host,
        port=settings.redis.port,
        db=settings.redis.cache_db,
    )

    # Keep bytes for orjson payloads
    _cache_client = redis.Redis.from_url(
        settings.redis_cache_url,
        decode_responses=False,
    )
    try:
        await _cache_client.ping()
    except redis.ConnectionError:
        logger.exception("Failed to connect to Redis")
        await _cache_client.aclose()
        _cache_client = None
        raise

    logger.info("Redis cache client connected")
    return _cache_client


async def close_cache_client() -> None:
    """Close the Redis cache client if one was opened."""
    global _cache_client  # noqa: PLW0603

    if _cache_client is not None:
        await _cache_client.aclose()
        _cache_client = None
        logger.info("Redis cache client closed")


def get_cache_client() -> Redis[Any]:
    """Get the Redis cache client.

    Raises:
        RuntimeError: If the client has not been initialized.
    """
    if _cache_client is None:
        msg = "Redis cache client not initialized. Call init_cache_client() first."
        raise RuntimeError(msg)
    return _cache_client


async def check_cache_health() -> dict[str, str]:
    """Ping the cache client and report its state."""
    if _cache_client is None:
        return {"redis_cache": "not_initialized"}
    try:
        await _cache_client.ping()
    except redis.ConnectionError:
        return {"redis_cache": "unhealthy"}
    return {"redis_cache": "healthy"}
