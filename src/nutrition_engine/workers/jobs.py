"""Job enqueue utilities for callers outside the worker."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from arq.connections import ArqRedis, create_pool

from nutrition_engine.core.config import get_settings
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.workers.arq import ARQ_QUEUE_NAME, get_redis_settings


if TYPE_CHECKING:
    from arq.jobs import Job


logger = get_logger(__name__)

_arq_pool: ArqRedis | None = None


async def get_arq_pool() -> ArqRedis:
    """Get or create the ARQ connection pool."""
    global _arq_pool  # noqa: PLW0603

    if _arq_pool is None:
        _arq_pool = await create_pool(get_redis_settings())
        logger.debug("Created ARQ connection pool")

    return _arq_pool


async def close_arq_pool() -> None:
    global _arq_pool  # noqa: PLW0603

    if _arq_pool is not None:
        await _arq_pool.close()
        _arq_pool = None
        logger.debug("Closed ARQ connection pool")


async def enqueue_job(
    function_name: str,
    *args: Any,
    _job_id: str | None = None,
    _queue_name: str = ARQ_QUEUE_NAME,
    _defer_by: float | None = None,
    **kwargs: Any,
) -> Job | None:
    """Enqueue a background job.

    Returns:
        The job, or None if enqueueing failed or a job with the same
        ``_job_id`` already exists.
    """
    try:
        pool = await get_arq_pool()
        job = await pool.enqueue_job(
            function_name,
            *args,
            _job_id=_job_id,
            _queue_name=_queue_name,
            _defer_by=_defer_by,
            **kwargs,
        )
    except Exception:
        logger.exception("Failed to enqueue job", function=function_name)
        return None

    logger.info(
        "Enqueued job",
        function=function_name,
        job_id=job.job_id if job else None,
        duplicate=job is None,
    )
    return job


async def enqueue_discovery_batch(batch_size: int | None = None) -> Job | None:
    """Enqueue an on-demand discovery batch.

    Uses the fixed job id from config, so a trigger while a batch is queued
    or running does not create a second one.
    """
    settings = get_settings()
    return await enqueue_job(
        "process_discovery_queue",
        batch_size,
        _job_id=settings.arq.job_ids.discovery_batch,
    )


async def enqueue_external_ingest(source: str, external_id: str) -> Job | None:
    return await enqueue_job(
        "ingest_external_record",
        source,
        external_id,
        _job_id=f"ingest:{source}:{external_id}",
    )
