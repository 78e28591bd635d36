"""Enumeration types shared by the engine's records and services."""

from __future__ import annotations

from enum import StrEnum


class DataSource(StrEnum):
    """External source an ingredient was ingested from."""

    USDA_FDC = "usda_fdc"
    OPEN_FOOD_FACTS = "open_food_facts"


class PhysicalState(StrEnum):
    """Physical state a density fact applies to."""

    DEFAULT = "default"
    LIQUID = "liquid"
    SOLID = "solid"
    POWDER = "powder"


class DiscoveryStatus(StrEnum):
    """Lifecycle of a discovery queue item.

    PENDING -> PROCESSING -> COMPLETED | FAILED. Terminal states are never
    left automatically; failed items are requeued only on request.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class EtlJobStatus(StrEnum):
    """Lifecycle of an ETL job record."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class EtlJobType(StrEnum):
    """Kinds of ETL job the runner records."""

    INGREDIENT_DISCOVERY = "ingredient_discovery"
    EXTERNAL_INGEST = "external_ingest"
    DATA_QUALITY = "data_quality"


class DiscoveryOutcome(StrEnum):
    """Result of asking for an ingredient to be discovered."""

    QUEUED = "queued"
    ALREADY_KNOWN = "already_known"
    ALREADY_QUEUED = "already_queued"


class HealthAlert(StrEnum):
    """Conditions that make the pipeline's health worth a look."""

    LOW_DATA_QUALITY = "low_data_quality"
    HIGH_JOB_FAILURE_RATE = "high_job_failure_rate"
    REPEATED_JOB_FAILURES = "repeated_job_failures"
    LOW_STABILITY = "low_stability"
