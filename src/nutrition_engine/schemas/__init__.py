"""Pydantic schemas and enums for the nutrition engine."""

from nutrition_engine.schemas.enums import (
    DataSource,
    DiscoveryOutcome,
    DiscoveryStatus,
    EtlJobStatus,
    EtlJobType,
    PhysicalState,
)
from nutrition_engine.schemas.nutrition import (
    NUTRIENT_FIELDS,
    NUTRIENT_UNITS,
    IngredientRef,
    NormalizedFood,
    NutrientValues,
    NutritionResult,
)
from nutrition_engine.schemas.records import (
    ContextRule,
    ConversionFactor,
    DensityFact,
    DiscoveryItem,
    EtlJob,
    Ingredient,
    NutritionFact,
)


__all__ = [
    "NUTRIENT_FIELDS",
    "NUTRIENT_UNITS",
    "ContextRule",
    "ConversionFactor",
    "DataSource",
    "DensityFact",
    "DiscoveryItem",
    "DiscoveryOutcome",
    "DiscoveryStatus",
    "EtlJob",
    "EtlJobStatus",
    "EtlJobType",
    "Ingredient",
    "IngredientRef",
    "NormalizedFood",
    "NutrientValues",
    "NutritionFact",
    "NutritionResult",
    "PhysicalState",
]
