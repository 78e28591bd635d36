"""Nutrition calculation for a quantity of a known ingredient.

Stored facts are per 100 g. A request in any unit is first resolved to
grams (directly through the conversion table, or through a density when the
unit is a volume), then every reported nutrient is scaled by grams / 100.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from nutrition_engine.database.repositories.ingredients import IngredientRepository
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.schemas.nutrition import (
    IngredientRef,
    NutrientValues,
    NutritionResult,
)
from nutrition_engine.services.conversion.constants import GRAM
from nutrition_engine.services.conversion.exceptions import (
    ConversionUnavailableError,
)
from nutrition_engine.services.nutrition.constants import (
    REFERENCE_GRAMS,
    RESULT_QUANTUM,
)
from nutrition_engine.services.nutrition.exceptions import (
    IngredientNotFoundError,
    NutritionDataNotFoundError,
)


if TYPE_CHECKING:
    from uuid import UUID

    from nutrition_engine.schemas.records import Ingredient
    from nutrition_engine.services.context.service import ContextOverrideService
    from nutrition_engine.services.conversion.service import UnitConversionService
    from nutrition_engine.services.density.service import DensityService


logger = get_logger(__name__)


def scale_nutrients(per_100g: NutrientValues, grams: Decimal) -> NutrientValues:
    """Scale per-100-gram values to ``grams``, rounding half-up to 3 places.

    Nutrients that are absent stay absent.
    """
    factor = grams / REFERENCE_GRAMS
    return NutrientValues(
        **{
            name: (value * factor).quantize(RESULT_QUANTUM, rounding=ROUND_HALF_UP)
            for name, value in per_100g.present().items()
        }
    )


class NutritionCalculationService:
    """Computes nutrition for a quantity of an ingredient in any unit.

    Example:
        result = await service.calculate_for_quantity(chicken_id, 250, "g")
        result.nutrition.calories  # Decimal("412.500")
    """

    def __init__(
        self,
        conversion_service: UnitConversionService,
        density_service: DensityService,
        context_service: ContextOverrideService,
        ingredient_repository: IngredientRepository | None = None,
    ) -> None:
        self._conversions = conversion_service
        self._densities = density_service
        self._contexts = context_service
        self._ingredients = ingredient_repository or IngredientRepository()

    async def calculate_for_quantity(
        self,
        ingredient_id: UUID,
        quantity: Decimal | int | float | str,
        unit: str,
        context: str | None = None,
        preparation: str | None = None,
    ) -> NutritionResult:
        """Return nutrition for ``quantity`` ``unit`` of an ingredient.

        Raises:
            ValueError: If the quantity is negative.
            IngredientNotFoundError: If the ingredient does not exist.
            NutritionDataNotFoundError: If it has no nutrition fact.
            ConversionUnavailableError: If the unit cannot be resolved to
                grams either directly or through a density.
        """
        amount = quantity if isinstance(quantity, Decimal) else Decimal(str(quantity))
        if amount < 0:
            msg = f"Quantity must not be negative, got {amount}"
            raise ValueError(msg)

        ingredient = await self._ingredients.get_by_id(ingredient_id)
        if ingredient is None:
            msg = f"Ingredient {ingredient_id} not found"
            raise IngredientNotFoundError(msg, ingredient_id=ingredient_id)

        fact = await self._ingredients.get_nutrition_fact(ingredient_id)
        if fact is None:
            msg = f"No nutrition data for ingredient {ingredient.name}"
            raise NutritionDataNotFoundError(msg, ingredient_id=ingredient_id)

        grams = await self._to_grams(amount, unit, ingredient)
        nutrition = scale_nutrients(fact.nutrients, grams)

        if context:
            nutrition = await self._contexts.apply(
                ingredient_id, context, preparation, nutrition
            )

        return NutritionResult(
            ingredient=IngredientRef(
                ingredient_id=ingredient.ingredient_id,
                name=ingredient.name,
                source=ingredient.source,
            ),
            grams=grams.quantize(RESULT_QUANTUM, rounding=ROUND_HALF_UP),
            unit=GRAM,
            original_quantity=amount,
            original_unit=unit,
            context=context,
            preparation=preparation,
            nutrition=nutrition,
            confidence=fact.confidence,
        )

    async def _to_grams(
        self, amount: Decimal, unit: str, ingredient: Ingredient
    ) -> Decimal:
        """Resolve a quantity to grams: direct factor first, density second."""
        try:
            return await self._conversions.convert(
                amount,
                unit,
                GRAM,
                ingredient_id=ingredient.ingredient_id,
                category=ingredient.category,
            )
        except ConversionUnavailableError:
            logger.debug(
                "No direct gram conversion, trying density",
                unit=unit,
                ingredient=ingredient.name,
            )

        try:
            weight = await self._densities.convert_volume_to_weight(
                amount,
                unit,
                ingredient_id=ingredient.ingredient_id,
                category=ingredient.category,
            )
        except ConversionUnavailableError:
            weight = None

        if weight is None:
            msg = f"Cannot convert {unit} to grams for ingredient {ingredient.name}"
            raise ConversionUnavailableError(msg, from_unit=unit, to_unit=GRAM)
        return weight.weight
