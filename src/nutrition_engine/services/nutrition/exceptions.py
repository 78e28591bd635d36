"""Exceptions for nutrition calculation."""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from uuid import UUID


class NutritionError(Exception):
    """Base exception for nutrition calculation errors."""

    def __init__(self, message: str, ingredient_id: UUID | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            ingredient_id: Ingredient the error relates to, if any.
        """
        self.ingredient_id = ingredient_id
        super().__init__(message)


class NutritionNotFoundError(NutritionError):
    """Raised when data needed for a calculation does not exist."""


class IngredientNotFoundError(NutritionNotFoundError):
    """Raised when the ingredient id is unknown."""


class NutritionDataNotFoundError(NutritionNotFoundError):
    """Raised when the ingredient exists but has no nutrition fact."""
