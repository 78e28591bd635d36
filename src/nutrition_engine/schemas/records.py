"""Records read from and written to the relational store."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from nutrition_engine.schemas.enums import (
    DiscoveryStatus,
    EtlJobStatus,
    PhysicalState,
)
from nutrition_engine.schemas.nutrition import NutrientValues


class Ingredient(BaseModel):
    """A food item known to the engine."""

    ingredient_id: UUID
    external_id: str
    source: str
    name: str
    category: str | None = None
    brand_name: str | None = None
    barcode: str | None = None
    data_quality: Decimal = Decimal("0")
    last_updated: datetime | None = None


class NutritionFact(BaseModel):
    """Per-100-gram nutrition for one ingredient."""

    ingredient_id: UUID
    nutrients: NutrientValues
    data_source: str
    confidence: Decimal
    last_verified: datetime | None = None


class ConversionFactor(BaseModel):
    """Directed unit edge: ``value_in_to = value_in_from * factor``."""

    from_unit: str
    to_unit: str
    factor: Decimal
    ingredient_id: UUID | None = None
    category: str | None = None
    is_general: bool = False


class DensityFact(BaseModel):
    """Grams per millilitre for an ingredient, a category, or in general."""

    density_g_ml: Decimal = Field(gt=0)
    ingredient_id: UUID | None = None
    category: str | None = None
    label: str | None = None
    state: PhysicalState = PhysicalState.DEFAULT
    source: str = "manual_initialization"
    confidence: Decimal = Decimal("0.90")


class ContextRule(BaseModel):
    """Adjustment applied to nutrition in a specific usage context."""

    rule_id: UUID | None = None
    ingredient_id: UUID
    context: str
    preparation: str | None = None
    calorie_multiplier: Decimal | None = None
    nutrition_changes: dict[str, Decimal] = {}
    is_active: bool = True


class DiscoveryItem(BaseModel):
    """One ingredient name waiting to be looked up in external sources."""

    item_id: UUID
    ingredient_name: str
    source: str
    priority: int
    status: DiscoveryStatus
    attempts: int = 0
    last_attempt: datetime | None = None
    discovered_at: datetime | None = None
    metadata: dict[str, Any] = {}


class EtlJob(BaseModel):
    """Audit record of one batch of ETL work."""

    job_id: UUID
    job_type: str
    status: EtlJobStatus
    started_at: datetime
    completed_at: datetime | None = None
    records_processed: int = 0
    records_succeeded: int = 0
    records_failed: int = 0
    error_log: dict[str, Any] | None = None
    metadata: dict[str, Any] = {}
