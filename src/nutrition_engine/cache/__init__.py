"""Caching: in-process lookup caches and the Redis response cache."""

from nutrition_engine.cache.local import LocalCache
from nutrition_engine.cache.redis import (
    check_cache_health,
    close_cache_client,
    get_cache_client,
    init_cache_client,
)


__all__ = [
    "LocalCache",
    "check_cache_health",
    "close_cache_client",
    "get_cache_client",
    "init_cache_client",
]
