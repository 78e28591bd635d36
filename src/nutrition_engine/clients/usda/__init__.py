"""USDA FoodData Central client package."""

from nutrition_engine.clients.usda.client import (
    USDA_NUTRIENT_MAP,
    UsdaFoodDataClient,
)


__all__ = [
    "USDA_NUTRIENT_MAP",
    "UsdaFoodDataClient",
]
