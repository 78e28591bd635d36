"""Background task definitions."""

from nutrition_engine.workers.tasks.discovery import (
    ingest_external_record,
    process_discovery_queue,
)
from nutrition_engine.workers.tasks.monitoring import check_system_health


__all__ = [
    "check_system_health",
    "ingest_external_record",
    "process_discovery_queue",
]
