"""Unit conversion factor repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nutrition_engine.database.repositories.base import BaseRepository


if TYPE_CHECKING:
    from decimal import Decimal
    from uuid import UUID

    from nutrition_engine.schemas.records import ConversionFactor


class ConversionRepository(BaseRepository):
    """Looks up directed unit conversion factors by scope.

    Each lookup targets exactly one tier; the fallback order is decided by
    the conversion service.
    """

    async def get_ingredient_factor(
        self, from_unit: str, to_unit: str, ingredient_id: UUID
    ) -> Decimal | None:
        query = """
            SELECT factor FROM unit_conversions
            WHERE from_unit = $1 AND to_unit = $2 AND ingredient_id = $3
            LIMIT 1
        """

        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, from_unit, to_unit, ingredient_id)

    async def get_category_factor(
        self, from_unit: str, to_unit: str, category: str
    ) -> Decimal | None:
        query = """
            SELECT factor FROM unit_conversions
            WHERE from_unit = $1 AND to_unit = $2
              AND ingredient_id IS NULL AND lower(category) = lower($3)
            LIMIT 1
        """

        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, from_unit, to_unit, category)

    async def get_general_factor(self, from_unit: str, to_unit: str) -> Decimal | None:
        query = """
            SELECT factor FROM unit_conversions
            WHERE from_unit = $1 AND to_unit = $2 AND is_general
            LIMIT 1
        """

        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, from_unit, to_unit)

    async def insert_factor(self, factor: ConversionFactor) -> bool:
        """Insert a factor unless an identical scope already has one.

        Returns:
            True if a new row was written.
        """
        query = """
            INSERT INTO unit_conversions (
                from_unit, to_unit, factor, ingredient_id, category, is_general
            )
            VALUES ($1, $2, $3, $4, $5, $6)
            ON CONFLICT DO NOTHING
            RETURNING conversion_id
        """

        async with self.pool.acquire() as conn:
            inserted = await conn.fetchval(
                query,
                factor.from_unit,
                factor.to_unit,
                factor.factor,
                factor.ingredient_id,
                factor.category,
                factor.is_general,
            )
        return inserted is not None
