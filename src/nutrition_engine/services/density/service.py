"""Density lookups and volume-to-weight conversion."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from nutrition_engine.cache.local import LocalCache
from nutrition_engine.database.repositories.densities import DensityRepository
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.observability.metrics import LOOKUP_CACHE, record
from nutrition_engine.schemas.enums import PhysicalState
from nutrition_engine.schemas.records import DensityFact
from nutrition_engine.services.conversion.constants import GENERAL_SCOPE, MILLILITER
from nutrition_engine.services.density.constants import (
    DEFAULT_DENSITIES,
    DEFAULT_DENSITY_CONFIDENCE,
    DEFAULT_DENSITY_SOURCE,
)


if TYPE_CHECKING:
    from uuid import UUID

    from nutrition_engine.services.conversion.service import UnitConversionService


logger = get_logger(__name__)

DensityKey = tuple[str, str]


@dataclass(frozen=True, slots=True)
class VolumeWeight:
    """Weight obtained from a volume and a density."""

    weight: Decimal
    unit: str = "g"


class DensityService:
    """Resolves grams-per-millilitre with ingredient, category, general fallback.

    A missing density is an expected outcome and is reported as None, not as
    an error. Only densities that were found are cached.
    """

    def __init__(
        self,
        conversion_service: UnitConversionService,
        repository: DensityRepository | None = None,
        cache: LocalCache[DensityKey, Decimal] | None = None,
    ) -> None:
        self._conversions = conversion_service
        self._repository = repository or DensityRepository()
        self._cache: LocalCache[DensityKey, Decimal] = (
            cache if cache is not None else LocalCache()
        )

    async def get_density(
        self,
        ingredient_id: UUID | None = None,
        category: str | None = None,
        state: PhysicalState | str | None = None,
    ) -> Decimal | None:
        """Return g/ml for the most specific matching scope, or None."""
        physical_state = PhysicalState(state) if state else PhysicalState.DEFAULT
        scope = str(ingredient_id) if ingredient_id else category or GENERAL_SCOPE
        key: DensityKey = (scope, physical_state.value)

        cached = self._cache.get(key)
        if cached is not None:
            record(LOOKUP_CACHE, table="density", result="hit")
            return cached
        record(LOOKUP_CACHE, table="density", result="miss")

        density: Decimal | None = None
        if ingredient_id is not None:
            density = await self._repository.get_ingredient_density(
                ingredient_id, physical_state
            )
        if density is None and category:
            density = await self._repository.get_category_density(
                category, physical_state
            )
        if density is None:
            density = await self._repository.get_general_density(physical_state)

        if density is not None:
            self._cache.set(key, density)
        return density

    async def convert_volume_to_weight(
        self,
        volume: Decimal | int | float | str,
        volume_unit: str,
        ingredient_id: UUID | None = None,
        category: str | None = None,
        state: PhysicalState | str | None = None,
    ) -> VolumeWeight | None:
        """Convert a volume to grams using the resolved density.

        Returns:
            The weight in grams, or None when no density is known.

        Raises:
            ConversionUnavailableError: If ``volume_unit`` cannot be
                expressed in millilitres.
        """
        milliliters = await self._conversions.convert(
            volume,
            volume_unit,
            MILLILITER,
            ingredient_id=ingredient_id,
            category=category,
        )

        density = await self.get_density(ingredient_id, category, state)
        if density is None:
            logger.debug(
                "No density available",
                ingredient_id=str(ingredient_id) if ingredient_id else None,
                category=category,
            )
            return None

        return VolumeWeight(weight=milliliters * density)

    async def add_density(self, fact: DensityFact) -> bool:
        """Store a density fact. Returns False if the scope already had one."""
        written = await self._repository.insert_density(fact)
        # Cached entries may hold a less specific density for this scope
        if written:
            self._cache.clear()
        return written

    async def seed_defaults(self) -> int:
        """Insert the default category densities; idempotent.

        Returns:
            Number of densities newly written.
        """
        inserted = 0
        for category, label, density, state in DEFAULT_DENSITIES:
            written = await self._repository.insert_density(
                DensityFact(
                    category=category,
                    label=label,
                    density_g_ml=density,
                    state=state,
                    source=DEFAULT_DENSITY_SOURCE,
                    confidence=DEFAULT_DENSITY_CONFIDENCE,
                )
            )
            inserted += int(written)

        if inserted:
            self._cache.clear()
        logger.info("Seeded default densities", inserted=inserted)
        return inserted

    def clear_cache(self) -> None:
        self._cache.clear()
