"""Constants for unit normalization and the default conversion table."""

from __future__ import annotations

from decimal import Decimal
from typing import Final


# =============================================================================
# Unit Aliases
# =============================================================================
# Free-text unit spellings mapped to the canonical short form used as keys
# in the unit_conversions table.

UNIT_ALIASES: Final[dict[str, str]] = {
    "gram": "g",
    "grams": "g",
    "gr": "g",
    "kilogram": "kg",
    "kilograms": "kg",
    "ounce": "oz",
    "ounces": "oz",
    "pound": "lb",
    "pounds": "lb",
    "lbs": "lb",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "cups": "cup",
    "c": "cup",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "tbs": "tbsp",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "fl oz": "fl_oz",
    "fl. oz": "fl_oz",
    "floz": "fl_oz",
    "fluid ounce": "fl_oz",
    "fluid ounces": "fl_oz",
}

GRAM: Final[str] = "g"
MILLILITER: Final[str] = "ml"


# =============================================================================
# Default General Conversions
# =============================================================================
# Canonical unit -> Pint unit name. Seed factors are computed from Pint's
# definitions (US customary volumes) in both directions.

PINT_UNIT_NAMES: Final[dict[str, str]] = {
    "g": "gram",
    "kg": "kilogram",
    "oz": "ounce",
    "lb": "pound",
    "ml": "milliliter",
    "l": "liter",
    "cup": "cup",
    "tbsp": "tablespoon",
    "tsp": "teaspoon",
    "fl_oz": "fluid_ounce",
}

DEFAULT_CONVERSION_PAIRS: Final[tuple[tuple[str, str], ...]] = (
    ("kg", "g"),
    ("oz", "g"),
    ("lb", "g"),
    ("l", "ml"),
    ("cup", "ml"),
    ("tbsp", "ml"),
    ("tsp", "ml"),
    ("fl_oz", "ml"),
)

# unit_conversions.factor is numeric(15, 8)
FACTOR_QUANTUM: Final[Decimal] = Decimal("0.00000001")

GENERAL_SCOPE: Final[str] = "general"
