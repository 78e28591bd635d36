"""Periodic pipeline health check."""

from __future__ import annotations

from typing import Any

from nutrition_engine.observability.logging import get_logger
from nutrition_engine.workers.tasks.context import engine_from_context


logger = get_logger(__name__)


async def check_system_health(ctx: dict[str, Any]) -> dict[str, Any]:
    """Grade pipeline health and raise alerts for failing factors.

    Called by:
    - Hourly cron job, offset from the discovery batch

    Returns:
        Overall score, grade and the alerts raised.
    """
    logger.info("Starting system health check", job_id=ctx.get("job_id"))
    health = await engine_from_context(ctx).check_health_alerts()
    return {
        "status": "completed",
        "overall": str(health.overall),
        "grade": health.grade,
        "alerts": [alert.value for alert in health.alerts],
    }
