"""Exceptions for discovery and ETL processing."""

from __future__ import annotations


class DiscoveryError(Exception):
    """Base exception for discovery and ingestion errors."""


class UnknownSourceError(DiscoveryError):
    """Raised when an ingest names a source with no configured adapter."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"No adapter configured for source {source}")
