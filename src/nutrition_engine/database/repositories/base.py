"""Shared repository plumbing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nutrition_engine.database.connection import get_database_pool


if TYPE_CHECKING:
    from asyncpg import Pool


class BaseRepository:
    """Resolves the connection pool lazily so repositories can be built early."""

    def __init__(self, pool: Pool | None = None) -> None:
        """Initialize repository.

        Args:
            pool: Optional connection pool. If None, uses global pool.
        """
        self._pool = pool

    @property
    def pool(self) -> Pool:
        """Get connection pool."""
        if self._pool is not None:
            return self._pool
        return get_database_pool()
