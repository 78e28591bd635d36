"""Repository classes for the engine's tables."""

from nutrition_engine.database.repositories.context_rules import ContextRuleRepository
from nutrition_engine.database.repositories.conversions import ConversionRepository
from nutrition_engine.database.repositories.densities import DensityRepository
from nutrition_engine.database.repositories.discovery import DiscoveryQueueRepository
from nutrition_engine.database.repositories.etl_jobs import EtlJobRepository
from nutrition_engine.database.repositories.ingredients import IngredientRepository


__all__ = [
    "ContextRuleRepository",
    "ConversionRepository",
    "DensityRepository",
    "DiscoveryQueueRepository",
    "EtlJobRepository",
    "IngredientRepository",
]
