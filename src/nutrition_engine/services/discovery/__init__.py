"""Discovery queue and the ETL runner that drains it."""

from nutrition_engine.services.discovery.exceptions import (
    DiscoveryError,
    UnknownSourceError,
)
from nutrition_engine.services.discovery.runner import BatchResult, EtlJobRunner
from nutrition_engine.services.discovery.service import DiscoveryService


__all__ = [
    "BatchResult",
    "DiscoveryError",
    "DiscoveryService",
    "EtlJobRunner",
    "UnknownSourceError",
]
