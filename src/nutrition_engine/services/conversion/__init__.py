"""Unit conversion table with ingredient, category and general tiers."""

from nutrition_engine.services.conversion.exceptions import (
    ConversionError,
    ConversionUnavailableError,
)
from nutrition_engine.services.conversion.service import (
    UnitConversionService,
    normalize_unit,
)


__all__ = [
    "ConversionError",
    "ConversionUnavailableError",
    "UnitConversionService",
    "normalize_unit",
]
