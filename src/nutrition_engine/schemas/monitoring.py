"""Schemas returned by ETL and data quality monitoring."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from nutrition_engine.schemas.enums import HealthAlert


class JobStatusCount(BaseModel):
    """Jobs of one type in one status within a timeframe."""

    job_type: str
    status: str
    jobs: int
    records_processed: int = 0
    records_succeeded: int = 0
    records_failed: int = 0


class JobStatistics(BaseModel):
    timeframe: str
    since: datetime
    statistics: list[JobStatusCount]


class FailedJobSummary(BaseModel):
    job_id: UUID
    job_type: str
    started_at: datetime
    error: dict[str, Any] | None = None
    metadata: dict[str, Any] = {}


class JobSuccessRate(BaseModel):
    """Share of completed jobs of one type over the reporting window."""

    job_type: str
    total: int
    successful: int
    success_rate: Decimal


class QualityScore(BaseModel):
    """Data quality evaluation of one ingredient, each part in [0, 1]."""

    ingredient_id: UUID
    completeness: Decimal
    consistency: Decimal
    freshness: Decimal
    reliability: Decimal
    overall: Decimal
    issues: list[str] = []


class QualityBucket(BaseModel):
    score: Decimal
    ingredients: int


class DataQualityReport(BaseModel):
    """Stored data quality across active ingredients.

    Averages are None when there is nothing to average.
    """

    average_score: Decimal | None = None
    recent_average_score: Decimal | None = None
    total_ingredients: int = 0
    distribution: list[QualityBucket] = []
    generated_at: datetime


class HealthFactors(BaseModel):
    """The three equally weighted parts of the system health score."""

    data_quality: Decimal
    etl_reliability: Decimal
    stability: Decimal


class SystemHealth(BaseModel):
    overall: Decimal
    grade: str
    factors: HealthFactors
    success_rates: list[JobSuccessRate]
    recent_failures: int
    data_quality: DataQualityReport
    alerts: list[HealthAlert] = []
    checked_at: datetime
