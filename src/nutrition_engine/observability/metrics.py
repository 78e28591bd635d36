"""Prometheus metrics for the ingestion pipeline.

Counters are module-level so every service instance in a process reports
into the same registry. ``start_metrics_server`` exposes them for scraping
from worker processes, which have no HTTP surface of their own.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server

from nutrition_engine.core.config import get_settings
from nutrition_engine.observability.logging import get_logger


logger = get_logger(__name__)

DISCOVERY_ITEMS = Counter(
    "nutrition_discovery_items_total",
    "Discovery queue items processed by outcome",
    ["outcome"],
)

ETL_JOBS = Counter(
    "nutrition_etl_jobs_total",
    "ETL jobs finished by type and status",
    ["job_type", "status"],
)

SOURCE_REQUESTS = Counter(
    "nutrition_source_requests_total",
    "External source calls by source and result",
    ["source", "result"],
)

LOOKUP_CACHE = Counter(
    "nutrition_lookup_cache_total",
    "Conversion and density cache lookups",
    ["table", "result"],
)

HEALTH_ALERTS = Counter(
    "nutrition_health_alerts_total",
    "Health alerts raised by the periodic health check",
    ["alert"],
)

ETL_BATCH_DURATION = Histogram(
    "nutrition_etl_batch_duration_seconds",
    "Wall time of a discovery batch",
)


def metrics_enabled() -> bool:
    """Check whether metric recording is switched on in settings."""
    return get_settings().observability.metrics.enabled


def record(counter: Counter, **labels: str) -> None:
    """Increment a labelled counter when metrics are enabled."""
    if metrics_enabled():
        counter.labels(**labels).inc()


def start_metrics_server(port: int = 9108) -> None:
    """Expose the default registry over HTTP on ``port``."""
    if not metrics_enabled():
        logger.info("Metrics collection disabled")
        return
    start_http_server(port)
    logger.info("Prometheus metrics server started", port=port)


__all__ = [
    "DISCOVERY_ITEMS",
    "ETL_BATCH_DURATION",
    "ETL_JOBS",
    "HEALTH_ALERTS",
    "LOOKUP_CACHE",
    "SOURCE_REQUESTS",
    "metrics_enabled",
    "record",
    "start_metrics_server",
]
