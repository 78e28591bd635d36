"""Unit conversion service.

Resolves a directed factor for a unit pair from the most specific scope
available (ingredient, then category, then general) and memoizes the
result per scope in an in-process cache.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pint

from nutrition_engine.cache.local import LocalCache
from nutrition_engine.database.repositories.conversions import ConversionRepository
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.observability.metrics import LOOKUP_CACHE, record
from nutrition_engine.schemas.records import ConversionFactor
from nutrition_engine.services.conversion.constants import (
    DEFAULT_CONVERSION_PAIRS,
    FACTOR_QUANTUM,
    GENERAL_SCOPE,
    PINT_UNIT_NAMES,
    UNIT_ALIASES,
)
from nutrition_engine.services.conversion.exceptions import (
    ConversionUnavailableError,
)


if TYPE_CHECKING:
    from uuid import UUID


logger = get_logger(__name__)

_ureg: pint.UnitRegistry[pint.Quantity[float]] = pint.UnitRegistry()

FactorKey = tuple[str, str, str]


def normalize_unit(unit: str) -> str:
    """Lower-case, trim and de-alias a unit string."""
    cleaned = " ".join(unit.strip().lower().split()).rstrip(".")
    return UNIT_ALIASES.get(cleaned, cleaned)


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def pint_factor(from_unit: str, to_unit: str) -> Decimal:
    """Factor between two canonical units according to Pint's definitions."""
    magnitude = (
        _ureg.Quantity(1, PINT_UNIT_NAMES[from_unit])
        .to(PINT_UNIT_NAMES[to_unit])
        .magnitude
    )
    return Decimal(str(magnitude)).quantize(FACTOR_QUANTUM)


class UnitConversionService:
    """Converts quantities between units using stored factors.

    Example:
        service = UnitConversionService()
        ml = await service.convert(Decimal("2"), "tbsp", "ml")
        # Decimal("29.57352956")
    """

    def __init__(
        self,
        repository: ConversionRepository | None = None,
        cache: LocalCache[FactorKey, Decimal] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            repository: Conversion factor repository. Defaults to one bound
                to the global pool.
            cache: Factor cache. Each service gets its own when omitted.
        """
        self._repository = repository or ConversionRepository()
        self._cache: LocalCache[FactorKey, Decimal] = (
            cache if cache is not None else LocalCache()
        )

    async def convert(
        self,
        value: Decimal | int | float | str,
        from_unit: str,
        to_unit: str,
        ingredient_id: UUID | None = None,
        category: str | None = None,
    ) -> Decimal:
        """Convert ``value`` from one unit to another.

        Identical units (after normalization) return the value unchanged
        without a store lookup.

        Raises:
            ConversionUnavailableError: If no tier holds a factor for the pair.
        """
        amount = _to_decimal(value)
        source = normalize_unit(from_unit)
        target = normalize_unit(to_unit)
        if source == target:
            return amount

        factor = await self.resolve_factor(source, target, ingredient_id, category)
        return amount * factor

    async def resolve_factor(
        self,
        from_unit: str,
        to_unit: str,
        ingredient_id: UUID | None = None,
        category: str | None = None,
    ) -> Decimal:
        """Find the factor for a normalized unit pair, most specific tier first."""
        scope = str(ingredient_id) if ingredient_id else category or GENERAL_SCOPE
        key: FactorKey = (from_unit, to_unit, scope)

        cached = self._cache.get(key)
        if cached is not None:
            record(LOOKUP_CACHE, table="conversion", result="hit")
            return cached
        record(LOOKUP_CACHE, table="conversion", result="miss")

        factor: Decimal | None = None
        if ingredient_id is not None:
            factor = await self._repository.get_ingredient_factor(
                from_unit, to_unit, ingredient_id
            )
        if factor is None and category:
            factor = await self._repository.get_category_factor(
                from_unit, to_unit, category
            )
        if factor is None:
            factor = await self._repository.get_general_factor(from_unit, to_unit)

        if factor is None:
            msg = f"No conversion factor from {from_unit} to {to_unit}"
            raise ConversionUnavailableError(msg, from_unit=from_unit, to_unit=to_unit)

        self._cache.set(key, factor)
        return factor

    async def add_factor(
        self,
        from_unit: str,
        to_unit: str,
        factor: Decimal | int | float | str,
        ingredient_id: UUID | None = None,
        category: str | None = None,
    ) -> bool:
        """Store a scoped factor. Returns False if the scope already had one."""
        value = _to_decimal(factor)
        if value <= 0:
            msg = "Conversion factor must be positive"
            raise ValueError(msg)

        written = await self._repository.insert_factor(
            ConversionFactor(
                from_unit=normalize_unit(from_unit),
                to_unit=normalize_unit(to_unit),
                factor=value.quantize(FACTOR_QUANTUM),
                ingredient_id=ingredient_id,
                category=category,
                is_general=ingredient_id is None and category is None,
            )
        )
        # Cached entries may hold a less specific factor for this pair
        if written:
            self._cache.clear()
        return written

    async def seed_defaults(self) -> int:
        """Insert the general mass and volume table in both directions.

        Safe to call on every startup; existing rows are left untouched.

        Returns:
            Number of factors newly written.
        """
        inserted = 0
        for from_unit, to_unit in DEFAULT_CONVERSION_PAIRS:
            for a, b in ((from_unit, to_unit), (to_unit, from_unit)):
                written = await self._repository.insert_factor(
                    ConversionFactor(
                        from_unit=a,
                        to_unit=b,
                        factor=pint_factor(a, b),
                        is_general=True,
                    )
                )
                inserted += int(written)

        if inserted:
            self._cache.clear()
        logger.info("Seeded default unit conversions", inserted=inserted)
        return inserted

    def clear_cache(self) -> None:
        self._cache.clear()
