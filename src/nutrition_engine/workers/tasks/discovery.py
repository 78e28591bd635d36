"""Discovery and ingestion background tasks.

Tasks share the ``NutritionEngine`` created in the worker's startup hook,
so the database pool and source adapters are opened once per worker.
"""

from __future__ import annotations

from typing import Any

from nutrition_engine.observability.logging import get_logger
from nutrition_engine.workers.tasks.context import engine_from_context


logger = get_logger(__name__)


async def process_discovery_queue(
    ctx: dict[str, Any],
    batch_size: int | None = None,
) -> dict[str, Any]:
    """Process one batch of the discovery queue.

    Called by:
    - Hourly cron job
    - ``enqueue_discovery_batch`` for on-demand runs

    Args:
        ctx: ARQ worker context holding the shared engine.
        batch_size: Items to process; defaults to the configured size.

    Returns:
        Batch counts and the ids of ingredients created or matched.
    """
    logger.info("Starting discovery batch", job_id=ctx.get("job_id"))
    result = await engine_from_context(ctx).process_discovery_queue(batch_size)
    return {"status": "completed", **result.as_dict()}


async def ingest_external_record(
    ctx: dict[str, Any],
    source: str,
    external_id: str,
) -> dict[str, Any]:
    """Fetch and store one record by its identifier in ``source``."""
    engine = engine_from_context(ctx)
    ingredient_id = await engine.ingest_by_external_id(source, external_id)
    if ingredient_id is None:
        logger.info("External record not found", source=source, external_id=external_id)
        return {"status": "not_found", "source": source, "external_id": external_id}

    return {
        "status": "completed",
        "source": source,
        "external_id": external_id,
        "ingredient_id": str(ingredient_id),
    }
