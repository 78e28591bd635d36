"""ETL job audit repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nutrition_engine.database.repositories.base import BaseRepository
from nutrition_engine.schemas.enums import EtlJobStatus
from nutrition_engine.schemas.records import EtlJob


if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from asyncpg import Record


_JOB_COLUMNS = """
    job_id, job_type, status, started_at, completed_at, records_processed,
    records_succeeded, records_failed, error_log, metadata
"""


class EtlJobRepository(BaseRepository):
    """Records the start and outcome of every ETL batch."""

    async def start(
        self, job_type: str, metadata: dict[str, Any] | None = None
    ) -> EtlJob:
        query = f"""
            INSERT INTO etl_jobs (job_type, status, metadata)
            VALUES ($1, 'running', $2)
            RETURNING {_JOB_COLUMNS}
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, job_type, metadata or {})

        return self._row_to_job(row)

    async def complete(
        self,
        job_id: UUID,
        *,
        processed: int,
        succeeded: int,
        failed: int,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        query = """
            UPDATE etl_jobs
            SET status = 'completed', completed_at = now(),
                records_processed = $2, records_succeeded = $3,
                records_failed = $4, metadata = metadata || $5::jsonb
            WHERE job_id = $1
        """

        async with self.pool.acquire() as conn:
            await conn.execute(
                query, job_id, processed, succeeded, failed, metadata or {}
            )

    async def fail(
        self,
        job_id: UUID,
        error_log: dict[str, Any],
        *,
        processed: int = 0,
        succeeded: int = 0,
        failed: int = 0,
    ) -> None:
        query = """
            UPDATE etl_jobs
            SET status = 'failed', completed_at = now(), error_log = $2,
                records_processed = $3, records_succeeded = $4, records_failed = $5
            WHERE job_id = $1
        """

        async with self.pool.acquire() as conn:
            await conn.execute(query, job_id, error_log, processed, succeeded, failed)

    async def get_failed(self, limit: int = 10) -> list[EtlJob]:
        query = f"""
            SELECT {_JOB_COLUMNS}
            FROM etl_jobs
            WHERE status = 'failed'
            ORDER BY started_at DESC
            LIMIT $1
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, limit)

        return [self._row_to_job(row) for row in rows]

    async def get_counts_since(self, since: datetime) -> list[dict[str, Any]]:
        """Aggregate jobs started after ``since`` by type and status."""
        query = """
            SELECT job_type, status, count(*) AS jobs,
                   coalesce(sum(records_processed), 0) AS records_processed,
                   coalesce(sum(records_succeeded), 0) AS records_succeeded,
                   coalesce(sum(records_failed), 0) AS records_failed
            FROM etl_jobs
            WHERE started_at >= $1
            GROUP BY job_type, status
            ORDER BY job_type, status
        """

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, since)

        return [dict(row) for row in rows]

    def _row_to_job(self, row: Record) -> EtlJob:
        return EtlJob(
            job_id=row["job_id"],
            job_type=row["job_type"],
            status=EtlJobStatus(row["status"]),
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            records_processed=row["records_processed"],
            records_succeeded=row["records_succeeded"],
            records_failed=row["records_failed"],
            error_log=row["error_log"],
            metadata=row["metadata"] or {},
        )
