"""Nutrition calculation for arbitrary quantities of known ingredients."""

from nutrition_engine.services.nutrition.exceptions import (
    IngredientNotFoundError,
    NutritionDataNotFoundError,
    NutritionError,
    NutritionNotFoundError,
)
from nutrition_engine.services.nutrition.service import (
    NutritionCalculationService,
    scale_nutrients,
)


__all__ = [
    "IngredientNotFoundError",
    "NutritionCalculationService",
    "NutritionDataNotFoundError",
    "NutritionError",
    "NutritionNotFoundError",
    "scale_nutrients",
]
