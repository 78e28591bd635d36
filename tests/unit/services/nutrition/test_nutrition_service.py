"""Unit tests for NutritionCalculationService.

Tests cover:
- Scaling per-100-gram facts to a quantity
- Unit resolution through conversions and densities
- Context overrides on the scaled result
- Not-found and unconvertible errors
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from nutrition_engine.schemas.nutrition import NutrientValues
from nutrition_engine.services.conversion import ConversionUnavailableError
from nutrition_engine.services.nutrition import (
    IngredientNotFoundError,
    NutritionDataNotFoundError,
)
from nutrition_engine.services.nutrition.service import scale_nutrients


pytestmark = pytest.mark.unit


@pytest.fixture
def chicken_nutrients() -> NutrientValues:
    return NutrientValues(
        calories=Decimal("165"),
        protein=Decimal("31"),
        total_fat=Decimal("3.6"),
        carbohydrates=Decimal("0"),
    )


@pytest.fixture
async def seeded(conversion_service, density_service) -> None:
    await conversion_service.seed_defaults()
    await density_service.seed_defaults()


class TestScaleNutrients:
    """Tests for scale_nutrients."""

    def test_scales_and_rounds(self, chicken_nutrients) -> None:
        """Should scale by grams / 100 and round to 3 places."""
        result = scale_nutrients(chicken_nutrients, Decimal("33.3"))

        assert result.calories == Decimal("54.945")
        assert result.total_fat == Decimal("1.199")

    def test_keeps_zero_and_absent_distinct(self, chicken_nutrients) -> None:
        """Should keep reported zeros and leave missing nutrients as None."""
        result = scale_nutrients(chicken_nutrients, Decimal("250"))

        assert result.carbohydrates == Decimal("0")
        assert result.sugar is None


class TestCalculateForQuantity:
    """Tests for calculate_for_quantity."""

    async def test_chicken_250_grams(
        self, nutrition_service, ingredient_repository, chicken_nutrients
    ) -> None:
        """Should return 412.5 kcal for 250 g of chicken breast."""
        chicken = ingredient_repository.add("Chicken breast", chicken_nutrients)

        result = await nutrition_service.calculate_for_quantity(chicken, 250, "g")

        assert result.grams == Decimal("250")
        assert result.nutrition.calories == Decimal("412.500")
        assert result.nutrition.protein == Decimal("77.500")
        assert result.ingredient.name == "Chicken breast"
        assert result.unit == "g"
        assert result.original_unit == "g"
        assert result.confidence == Decimal("0.95")

    @pytest.mark.parametrize("grams", [Decimal("50"), Decimal("120"), Decimal("333")])
    async def test_doubling_quantity_doubles_nutrients(
        self, nutrition_service, ingredient_repository, chicken_nutrients, grams
    ) -> None:
        """Should scale every nutrient linearly with the quantity."""
        chicken = ingredient_repository.add("Chicken breast", chicken_nutrients)

        single = await nutrition_service.calculate_for_quantity(chicken, grams, "g")
        double = await nutrition_service.calculate_for_quantity(
            chicken, grams * 2, "g"
        )

        single_values = single.nutrition.present()
        assert single_values.keys() == double.nutrition.present().keys()
        for name, value in single_values.items():
            assert double.nutrition.present()[name] == value * 2

    async def test_mass_unit_through_conversion(
        self, nutrition_service, ingredient_repository, chicken_nutrients, seeded
    ) -> None:
        """Should convert a mass unit directly to grams."""
        chicken = ingredient_repository.add("Chicken breast", chicken_nutrients)

        result = await nutrition_service.calculate_for_quantity(chicken, 1, "kg")

        assert result.grams == Decimal("1000")
        assert result.nutrition.calories == Decimal("1650.000")

    async def test_olive_oil_two_tablespoons(
        self, nutrition_service, ingredient_repository, seeded
    ) -> None:
        """Should resolve a volume through the category density."""
        olive_oil = ingredient_repository.add(
            "Olive oil", NutrientValues(calories=Decimal("884")), category="oil"
        )

        result = await nutrition_service.calculate_for_quantity(
            olive_oil, 2, "tablespoons"
        )

        assert result.grams == Decimal("27.208")
        assert abs(result.nutrition.calories - Decimal("240.52")) < Decimal("0.01")

    async def test_zero_quantity(
        self, nutrition_service, ingredient_repository, chicken_nutrients
    ) -> None:
        """Should return zero for every reported nutrient."""
        chicken = ingredient_repository.add("Chicken breast", chicken_nutrients)

        result = await nutrition_service.calculate_for_quantity(chicken, 0, "g")

        assert result.nutrition.calories == Decimal("0")
        assert result.nutrition.fiber is None

    async def test_negative_quantity_rejected(
        self, nutrition_service, ingredient_repository, chicken_nutrients
    ) -> None:
        """Should reject negative quantities."""
        chicken = ingredient_repository.add("Chicken breast", chicken_nutrients)

        with pytest.raises(ValueError, match="negative"):
            await nutrition_service.calculate_for_quantity(chicken, -1, "g")

    async def test_unknown_ingredient(self, nutrition_service) -> None:
        """Should raise IngredientNotFoundError for an unknown id."""
        with pytest.raises(IngredientNotFoundError):
            await nutrition_service.calculate_for_quantity(uuid4(), 100, "g")

    async def test_ingredient_without_nutrition(
        self, nutrition_service, ingredient_repository
    ) -> None:
        """Should raise NutritionDataNotFoundError when no fact is stored."""
        bare = ingredient_repository.add("Mystery root")

        with pytest.raises(NutritionDataNotFoundError):
            await nutrition_service.calculate_for_quantity(bare, 100, "g")

    async def test_unconvertible_unit(
        self, nutrition_service, ingredient_repository, chicken_nutrients, seeded
    ) -> None:
        """Should raise ConversionUnavailableError naming the ingredient."""
        chicken = ingredient_repository.add("Chicken breast", chicken_nutrients)

        with pytest.raises(ConversionUnavailableError, match="Chicken breast"):
            await nutrition_service.calculate_for_quantity(chicken, 1, "pinch")

    async def test_volume_without_density(
        self, nutrition_service, ingredient_repository, chicken_nutrients, seeded
    ) -> None:
        """Should raise when a volume has no density to resolve it."""
        chicken = ingredient_repository.add(
            "Chicken breast", chicken_nutrients, category="poultry"
        )

        with pytest.raises(ConversionUnavailableError):
            await nutrition_service.calculate_for_quantity(chicken, 1, "cup")

    async def test_applies_context_rule(
        self,
        nutrition_service,
        context_service,
        ingredient_repository,
        chicken_nutrients,
    ) -> None:
        """Should adjust the scaled nutrition for the requested context."""
        chicken = ingredient_repository.add("Chicken breast", chicken_nutrients)
        await context_service.add_rule(
            chicken, "fried", calorie_multiplier=Decimal("1.2")
        )

        result = await nutrition_service.calculate_for_quantity(
            chicken, 100, "g", context="fried"
        )

        assert result.nutrition.calories == Decimal("198.000")
        assert result.context == "fried"
