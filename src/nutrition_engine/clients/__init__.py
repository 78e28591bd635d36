"""External food-data source clients."""

from nutrition_engine.clients.exceptions import (
    SourceError,
    SourceFetchError,
    SourceParseError,
    SourceTimeoutError,
)
from nutrition_engine.clients.factory import build_adapters
from nutrition_engine.clients.open_food_facts import OpenFoodFactsClient
from nutrition_engine.clients.protocol import SourceAdapter
from nutrition_engine.clients.usda import UsdaFoodDataClient


__all__ = [
    "OpenFoodFactsClient",
    "SourceAdapter",
    "SourceError",
    "SourceFetchError",
    "SourceParseError",
    "SourceTimeoutError",
    "UsdaFoodDataClient",
    "build_adapters",
]
