"""ARQ worker configuration.

Run with: arq nutrition_engine.workers.arq.WorkerSettings
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any, ClassVar

from arq import cron
from arq.connections import RedisSettings

from nutrition_engine.core.config import get_settings
from nutrition_engine.engine import NutritionEngine
from nutrition_engine.observability.logging import get_logger, setup_logging
from nutrition_engine.observability.metrics import start_metrics_server
from nutrition_engine.workers.tasks import (
    check_system_health,
    ingest_external_record,
    process_discovery_queue,
)


if TYPE_CHECKING:
    from arq.cron import CronJob


logger = get_logger(__name__)

WorkerFunction = Callable[..., Coroutine[Any, Any, Any]]


async def startup(ctx: dict[str, Any]) -> None:
    """Set up logging and open the engine shared by all tasks."""
    settings = get_settings()

    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        is_development=settings.is_development,
        log_file=settings.logging.file,
    )
    logger.info("ARQ worker starting", environment=settings.APP_ENV)
    start_metrics_server(settings.observability.metrics.port)

    engine = NutritionEngine(settings)
    await engine.initialize()
    ctx["settings"] = settings
    ctx["engine"] = engine


async def shutdown(ctx: dict[str, Any]) -> None:
    logger.info("ARQ worker shutting down")

    engine: NutritionEngine | None = ctx.get("engine")
    if engine is not None:
        await engine.shutdown()


def get_redis_settings() -> RedisSettings:
    """Redis connection for the job queue database."""
    settings = get_settings()

    return RedisSettings(
        host=settings.redis.host,
        port=settings.redis.port,
        username=settings.redis.user,
        password=settings.REDIS_PASSWORD or None,
        database=settings.redis.queue_db,
    )


_settings = get_settings()

ARQ_QUEUE_NAME = _settings.arq.queue_name
ARQ_HEALTH_CHECK_KEY = _settings.arq.health_check_key


class WorkerSettings:
    """Settings read by the arq CLI."""

    redis_settings = get_redis_settings()

    queue_name = ARQ_QUEUE_NAME
    health_check_key = ARQ_HEALTH_CHECK_KEY

    on_startup = startup
    on_shutdown = shutdown

    # Job timeout (30 minutes)
    job_timeout = 1800

    # One batch at a time
    max_jobs = 1

    keep_result = 3600

    max_tries = 1

    functions: ClassVar[list[WorkerFunction]] = [
        process_discovery_queue,
        ingest_external_record,
        check_system_health,
    ]

    cron_jobs: ClassVar[list[CronJob]] = [
        cron(
            process_discovery_queue,  # type: ignore[arg-type]
            minute=_settings.arq.discovery_cron_minute,
            job_id=_settings.arq.job_ids.discovery_batch,
        ),
        cron(
            check_system_health,  # type: ignore[arg-type]
            minute=_settings.arq.health_check_cron_minute,
            job_id=_settings.arq.job_ids.health_check,
        ),
    ]
