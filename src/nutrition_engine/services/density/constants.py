"""Default density facts loaded on first start."""

from __future__ import annotations

from decimal import Decimal
from typing import Final

from nutrition_engine.schemas.enums import PhysicalState


DEFAULT_DENSITY_SOURCE: Final[str] = "manual_initialization"
DEFAULT_DENSITY_CONFIDENCE: Final[Decimal] = Decimal("0.90")

# (category, label, grams per millilitre, state)
DEFAULT_DENSITIES: Final[tuple[tuple[str, str, Decimal, PhysicalState], ...]] = (
    ("water", "water", Decimal("1.00"), PhysicalState.LIQUID),
    ("milk", "whole milk", Decimal("1.03"), PhysicalState.LIQUID),
    ("oil", "cooking oil", Decimal("0.92"), PhysicalState.LIQUID),
    ("honey", "honey", Decimal("1.42"), PhysicalState.LIQUID),
    ("flour", "all-purpose flour", Decimal("0.57"), PhysicalState.POWDER),
    ("sugar", "granulated sugar", Decimal("0.85"), PhysicalState.POWDER),
    ("salt", "table salt", Decimal("1.21"), PhysicalState.POWDER),
    ("rice", "uncooked white rice", Decimal("0.75"), PhysicalState.SOLID),
    ("quinoa", "uncooked quinoa", Decimal("0.69"), PhysicalState.SOLID),
    ("butter", "butter", Decimal("0.91"), PhysicalState.SOLID),
    ("cream cheese", "cream cheese", Decimal("1.04"), PhysicalState.SOLID),
)
