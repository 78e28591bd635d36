"""Nutrition value schemas.

All nutrient values are Decimals in the canonical unit listed in
``NUTRIENT_UNITS``. A field set to None means the source did not report
that nutrient; it is never the same thing as zero.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Final
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


NUTRIENT_UNITS: Final[dict[str, str]] = {
    "calories": "kcal",
    "protein": "g",
    "total_fat": "g",
    "saturated_fat": "g",
    "trans_fat": "g",
    "carbohydrates": "g",
    "fiber": "g",
    "sugar": "g",
    "sodium": "mg",
    "potassium": "mg",
    "cholesterol": "mg",
    "vitamin_a": "µg",
    "vitamin_c": "mg",
    "vitamin_d": "µg",
    "calcium": "mg",
    "iron": "mg",
    "magnesium": "mg",
}

NUTRIENT_FIELDS: Final[tuple[str, ...]] = tuple(NUTRIENT_UNITS)


class NutrientValues(BaseModel):
    """A set of nutrient amounts in canonical units."""

    model_config = ConfigDict(frozen=True)

    calories: Decimal | None = None
    protein: Decimal | None = None
    total_fat: Decimal | None = None
    saturated_fat: Decimal | None = None
    trans_fat: Decimal | None = None
    carbohydrates: Decimal | None = None
    fiber: Decimal | None = None
    sugar: Decimal | None = None
    sodium: Decimal | None = None
    potassium: Decimal | None = None
    cholesterol: Decimal | None = None
    vitamin_a: Decimal | None = None
    vitamin_c: Decimal | None = None
    vitamin_d: Decimal | None = None
    calcium: Decimal | None = None
    iron: Decimal | None = None
    magnesium: Decimal | None = None

    def present(self) -> dict[str, Decimal]:
        """Return only the nutrients that have a value."""
        return {
            name: value
            for name in NUTRIENT_FIELDS
            if (value := getattr(self, name)) is not None
        }

    def is_empty(self) -> bool:
        return not self.present()


class NormalizedFood(BaseModel):
    """A source record mapped into the engine's vocabulary, per 100 g."""

    source: str
    external_id: str
    name: str
    category: str | None = None
    brand_name: str | None = None
    barcode: str | None = None
    nutrients: NutrientValues = NutrientValues()
    confidence: Decimal = Field(ge=0, le=1)
    data_quality: Decimal = Field(ge=0, le=1)


class IngredientRef(BaseModel):
    """Reference to the ingredient a calculation was made for."""

    ingredient_id: UUID
    name: str
    source: str


class NutritionResult(BaseModel):
    """Nutrition for a concrete quantity of an ingredient."""

    ingredient: IngredientRef
    grams: Decimal
    unit: str = "g"
    original_quantity: Decimal
    original_unit: str
    context: str | None = None
    preparation: str | None = None
    nutrition: NutrientValues
    confidence: Decimal
