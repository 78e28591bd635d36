"""PostgreSQL connection pool management.

The engine shares one asyncpg pool per process. Repositories fall back to
it when they are not handed a pool explicitly. Every connection has its
``search_path`` pointed at the configured schema, so queries use bare table
names.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import asyncpg
import orjson

from nutrition_engine.core.config import get_settings
from nutrition_engine.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Connection, Pool

logger = get_logger(__name__)

_pool: Pool | None = None


async def _init_connection(conn: Connection) -> None:
    """Decode json/jsonb columns to Python objects using orjson."""
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=lambda value: orjson.dumps(value, default=str).decode(),
            decoder=orjson.loads,
            schema="pg_catalog",
        )


async def init_database_pool() -> Pool:
    """Create the global connection pool and verify it with ``SELECT 1``."""
    global _pool  # noqa: PLW0603

    settings = get_settings()

    logger.info(
        "Initializing database connection pool",
        host=settings.database.host,
        port=settings.database.port,
        database=settings.database.name,
        schema=settings.database.db_schema,
    )

    _pool = await asyncpg.create_pool(
        host=settings.database.host,
        port=settings.database.port,
        database=settings.database.name,
        user=settings.database.user,
        password=settings.DATABASE_PASSWORD or None,
        min_size=settings.database.min_pool_size,
        max_size=settings.database.max_pool_size,
        command_timeout=settings.database.command_timeout,
        ssl=settings.database.ssl if settings.database.ssl else None,
        server_settings={"search_path": f"{settings.database.db_schema},public"},
        init=_init_connection,
    )

    try:
        assert _pool is not None
        async with _pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        logger.info("Database connection established successfully")
    except asyncpg.PostgresError:
        logger.exception("Failed to connect to database")
        raise

    return _pool


async def close_database_pool() -> None:
    """Close the global connection pool."""
    global _pool  # noqa: PLW0603

    if _pool:
        await _pool.close()
        _pool = None
        logger.info("Database connection pool closed")


def get_database_pool() -> Pool:
    """Get the database connection pool.

    Raises:
        RuntimeError: If pool is not initialized.
    """
    if _pool is None:
        msg = "Database pool not initialized. Call init_database_pool() first."
        raise RuntimeError(msg)
    return _pool


async def check_database_health() -> dict[str, str]:
    """Check health of database connection."""
    if _pool is None:
        return {"database": "not_initialized"}
    try:
        async with _pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except (asyncpg.PostgresError, OSError):
        return {"database": "unhealthy"}
    return {"database": "healthy"}
