"""Unit tests for DensityService.

Tests cover:
- Ingredient > category > general precedence
- Physical state matching
- Volume to weight conversion
- Missing densities
- Seeding the default densities
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from nutrition_engine.schemas.enums import PhysicalState
from nutrition_engine.schemas.records import DensityFact
from nutrition_engine.services.conversion import ConversionUnavailableError
from nutrition_engine.services.density.service import VolumeWeight


pytestmark = pytest.mark.unit


class TestGetDensity:
    """Tests for get_density."""

    async def test_category_density(self, density_service) -> None:
        """Should find a seeded category density."""
        await density_service.seed_defaults()

        assert await density_service.get_density(category="oil") == Decimal("0.92")

    async def test_ingredient_overrides_category(self, density_service) -> None:
        """Should prefer an ingredient-specific density."""
        olive_oil = uuid4()
        await density_service.seed_defaults()
        await density_service.add_density(
            DensityFact(ingredient_id=olive_oil, density_g_ml=Decimal("0.91"))
        )

        density = await density_service.get_density(olive_oil, "oil")

        assert density == Decimal("0.91")

    async def test_falls_back_to_general(self, density_service) -> None:
        """Should use the general density when nothing more specific exists."""
        await density_service.add_density(DensityFact(density_g_ml=Decimal("1.0")))

        density = await density_service.get_density(uuid4(), "unknown category")

        assert density == Decimal("1.0")

    async def test_missing_density_returns_none(self, density_service) -> None:
        """Should return None, not zero, when no density is known."""
        assert await density_service.get_density(category="oil") is None

    async def test_prefers_exact_state(self, density_service) -> None:
        """Should prefer a fact recorded for the requested state."""
        await density_service.add_density(
            DensityFact(category="butter", density_g_ml=Decimal("0.91"))
        )
        await density_service.add_density(
            DensityFact(
                category="butter",
                density_g_ml=Decimal("0.87"),
                state=PhysicalState.LIQUID,
            )
        )

        melted = await density_service.get_density(
            category="butter", state=PhysicalState.LIQUID
        )
        solid = await density_service.get_density(
            category="butter", state=PhysicalState.SOLID
        )

        assert melted == Decimal("0.87")
        assert solid == Decimal("0.91")

    async def test_new_ingredient_density_replaces_cached_category(
        self, density_service
    ) -> None:
        """Should see an ingredient density added after a category hit was cached."""
        olive_oil = uuid4()
        await density_service.seed_defaults()
        before = await density_service.get_density(
            ingredient_id=olive_oil, category="oil"
        )

        await density_service.add_density(
            DensityFact(ingredient_id=olive_oil, density_g_ml=Decimal("0.91"))
        )
        after = await density_service.get_density(
            ingredient_id=olive_oil, category="oil"
        )

        assert before == Decimal("0.92")
        assert after == Decimal("0.91")


class TestConvertVolumeToWeight:
    """Tests for convert_volume_to_weight."""

    async def test_olive_oil_two_tablespoons(
        self, density_service, conversion_service
    ) -> None:
        """Should convert 2 tbsp of oil to about 27.2 g."""
        await conversion_service.seed_defaults()
        await density_service.seed_defaults()

        result = await density_service.convert_volume_to_weight(
            2, "tbsp", category="oil"
        )

        assert isinstance(result, VolumeWeight)
        assert result.unit == "g"
        assert abs(result.weight - Decimal("27.208")) < Decimal("0.001")

    async def test_returns_none_without_density(
        self, density_service, conversion_service
    ) -> None:
        """Should return None when the volume converts but no density exists."""
        await conversion_service.seed_defaults()

        result = await density_service.convert_volume_to_weight(
            1, "cup", category="mystery"
        )

        assert result is None

    async def test_non_volume_unit_raises(self, density_service) -> None:
        """Should raise when the unit cannot be expressed in millilitres."""
        with pytest.raises(ConversionUnavailableError):
            await density_service.convert_volume_to_weight(1, "pinch", category="oil")


class TestSeedDefaults:
    """Tests for seed_defaults."""

    async def test_seeds_once(self, density_service, density_repository) -> None:
        """Should insert every default once and nothing on a second run."""
        first = await density_service.seed_defaults()
        second = await density_service.seed_defaults()

        assert first == len(density_repository.facts)
        assert first > 0
        assert second == 0


class TestDensityFact:
    """Tests for DensityFact validation."""

    def test_rejects_non_positive_density(self) -> None:
        """Should require a strictly positive density."""
        with pytest.raises(ValueError, match="greater than 0"):
            DensityFact(density_g_ml=Decimal("0"))
