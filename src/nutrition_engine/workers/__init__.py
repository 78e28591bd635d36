"""Background job workers using ARQ."""

from nutrition_engine.workers.arq import WorkerSettings, get_redis_settings
from nutrition_engine.workers.jobs import (
    close_arq_pool,
    enqueue_discovery_batch,
    enqueue_external_ingest,
    enqueue_job,
    get_arq_pool,
)


__all__ = [
    "WorkerSettings",
    "close_arq_pool",
    "enqueue_discovery_batch",
    "enqueue_external_ingest",
    "enqueue_job",
    "get_arq_pool",
    "get_redis_settings",
]
