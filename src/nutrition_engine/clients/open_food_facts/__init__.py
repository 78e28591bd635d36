"""Open Food Facts API client package."""

from nutrition_engine.clients.open_food_facts.client import (
    OFF_NUTRIENT_MAP,
    OpenFoodFactsClient,
)


__all__ = [
    "OFF_NUTRIENT_MAP",
    "OpenFoodFactsClient",
]
