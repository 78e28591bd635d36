"""Discovery work queue repository.

Dedup and claiming are enforced by the store: a partial unique index allows
one pending item per lower-cased name, and claiming is a conditional update
that only succeeds while the item is still pending.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nutrition_engine.database.repositories.base import BaseRepository
from nutrition_engine.schemas.enums import DiscoveryStatus
from nutrition_engine.schemas.records import DiscoveryItem


if TYPE_CHECKING:
    from uuid import UUID

    from asyncpg import Record


_ITEM_COLUMNS = """
    item_id, ingredient_name, source, priority, status, attempts,
    last_attempt, discovered_at, metadata
"""


class DiscoveryQueueRepository(BaseRepository):
    """Persistent queue of ingredient names awaiting lookup."""

    async def enqueue(
        self,
        ingredient_name: str,
        source: str,
        priority: int,
        metadata: dict[str, Any] | None = None,
    ) -> UUID | None:
        """Insert a pending item.

        Returns:
            The new item id, or None if a pending item with the same name
            already exists.
        """
        query = """
            INSERT INTO discovery_queue (ingredient_name, source, priority, metadata)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT DO NOTHING
            RETURNING item_id
        """

        async with self.pool.acquire() as conn:
            return await conn.fetchval(
                query, ingredient_name, source, priority, metadata or {}
            )

    async def get_pending(self, limit: int) -> list[DiscoveryItem]:
        """Return up to ``limit`` pending items, most urgent first."""
        query = f"""
            SELECT {_ITEM_COLUMNS}
            FROM discovery_queue
            WHERE status = 'pending'
            ORDER BY priority ASC, discovered_at ASC
            LIMIT $1
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, limit)

        return [self._row_to_item(row) for row in rows]

    async def claim(self, item_id: UUID) -> DiscoveryItem | None:
        """Move a pending item to processing and count the attempt.

        Returns:
            The claimed item, or None if another worker got there first.
        """
        query = f"""
            UPDATE discovery_queue
            SET status = 'processing',
                attempts = attempts + 1,
                last_attempt = now()
            WHERE item_id = $1 AND status = 'pending'
            RETURNING {_ITEM_COLUMNS}
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, item_id)

        return self._row_to_item(row) if row else None

    async def mark_completed(self, item_id: UUID, metadata: dict[str, Any]) -> None:
        await self._finish(item_id, DiscoveryStatus.COMPLETED, metadata)

    async def mark_failed(self, item_id: UUID, metadata: dict[str, Any]) -> None:
        await self._finish(item_id, DiscoveryStatus.FAILED, metadata)

    async def _finish(
        self,
        item_id: UUID,
        status: DiscoveryStatus,
        metadata: dict[str, Any],
    ) -> None:
        query = """
            UPDATE discovery_queue
            SET status = $2, metadata = metadata || $3::jsonb
            WHERE item_id = $1 AND status = 'processing'
        """

        async with self.pool.acquire() as conn:
            await conn.execute(query, item_id, status.value, metadata)

    async def requeue_failed(self, name: str | None = None, limit: int = 100) -> int:
        """Return failed items to pending, skipping names already pending.

        Returns:
            Number of items requeued.
        """
        query = """
            UPDATE discovery_queue AS q
            SET status = 'pending'
            WHERE q.item_id IN (
                SELECT DISTINCT ON (lower(f.ingredient_name)) f.item_id
                FROM discovery_queue AS f
                WHERE f.status = 'failed'
                  AND ($1::text IS NULL OR lower(f.ingredient_name) = lower($1))
                  AND NOT EXISTS (
                      SELECT 1 FROM discovery_queue AS p
                      WHERE p.status = 'pending'
                        AND lower(p.ingredient_name) = lower(f.ingredient_name)
                  )
                ORDER BY lower(f.ingredient_name), f.last_attempt DESC NULLS LAST
                LIMIT $2
            )
        """

        async with self.pool.acquire() as conn:
            result = await conn.execute(query, name, limit)
        return int(result.split()[-1])

    async def count_by_status(self) -> dict[str, int]:
        query = "SELECT status, count(*) AS n FROM discovery_queue GROUP BY status"

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query)

        counts = {status.value: 0 for status in DiscoveryStatus}
        counts.update({row["status"]: row["n"] for row in rows})
        return counts

    async def get_by_id(self, item_id: UUID) -> DiscoveryItem | None:
        query = f"""
            SELECT {_ITEM_COLUMNS} FROM discovery_queue WHERE item_id = $1
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, item_id)

        return self._row_to_item(row) if row else None

    def _row_to_item(self, row: Record) -> DiscoveryItem:
        return DiscoveryItem(
            item_id=row["item_id"],
            ingredient_name=row["ingredient_name"],
            source=row["source"],
            priority=row["priority"],
            status=DiscoveryStatus(row["status"]),
            attempts=row["attempts"],
            last_attempt=row["last_attempt"],
            discovered_at=row["discovered_at"],
            metadata=row["metadata"] or {},
        )
