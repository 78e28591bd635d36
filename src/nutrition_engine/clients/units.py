"""Value coercion and nutrient unit reconciliation for source records."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Final

import pint

from nutrition_engine.observability.logging import get_logger


logger = get_logger(__name__)


_ureg: pint.UnitRegistry[pint.Quantity[float]] = pint.UnitRegistry()

# Source unit spellings -> Pint unit names
_PINT_MASS_UNITS: Final[dict[str, str]] = {
    "g": "gram",
    "mg": "milligram",
    "µg": "microgram",
    "ug": "microgram",
    "mcg": "microgram",
}

_ENERGY_UNITS: Final[frozenset[str]] = frozenset({"kcal", "kj"})

KJ_PER_KCAL: Final[Decimal] = Decimal("4.184")

# Nutrient columns are numeric(10, 3)
MAX_STORED_NUTRIENT: Final[Decimal] = Decimal("9999999.999")
_STORED_PRECISION: Final[Decimal] = Decimal("0.001")


def to_decimal(value: Any) -> Decimal | None:
    """Coerce a JSON number or numeric string to Decimal; None if not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip().replace(",", "."))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def to_canonical_unit(value: Decimal, unit: str, canonical: str) -> Decimal | None:
    """Convert a nutrient amount into its canonical unit.

    Mass units are converted with Pint; kJ converts to kcal. Anything else
    (IU, percent of daily value) has no fixed conversion and yields None.
    """
    source = unit.strip().lower().replace("μ", "µ")
    target = canonical.lower()
    if source == target:
        return value

    if source in _ENERGY_UNITS and target in _ENERGY_UNITS:
        return value / KJ_PER_KCAL if source == "kj" else value * KJ_PER_KCAL

    if source in _PINT_MASS_UNITS and target in _PINT_MASS_UNITS:
        factor = (
            _ureg.Quantity(1, _PINT_MASS_UNITS[source])
            .to(_PINT_MASS_UNITS[target])
            .magnitude
        )
        return value * Decimal(str(factor))

    return None


def within_storage_range(
    values: dict[str, Decimal], source: str
) -> dict[str, Decimal]:
    """Drop nutrient amounts that are negative or too large to store.

    Sources occasionally report amounts in the wrong unit (a vitamin in
    grams instead of micrograms), which can scale far past any real food.
    """
    kept: dict[str, Decimal] = {}
    for field, value in values.items():
        stored = value.quantize(_STORED_PRECISION, rounding=ROUND_HALF_UP)
        if stored < 0 or stored > MAX_STORED_NUTRIENT:
            logger.warning(
                "Dropping out-of-range nutrient value",
                source=source,
                nutrient=field,
                value=str(value),
            )
            continue
        kept[field] = value
    return kept
