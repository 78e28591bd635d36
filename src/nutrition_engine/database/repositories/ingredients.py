"""Ingredient and nutrition fact repository."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

import asyncpg

from nutrition_engine.database.exceptions import PersistenceConflictError
from nutrition_engine.database.repositories.base import BaseRepository
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.schemas.nutrition import NUTRIENT_FIELDS, NutrientValues
from nutrition_engine.schemas.records import Ingredient, NutritionFact


if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from asyncpg import Record

    from nutrition_engine.schemas.nutrition import NormalizedFood

logger = get_logger(__name__)


_INGREDIENT_COLUMNS = """
    ingredient_id, external_id, source, name, category, brand_name,
    barcode, data_quality, last_updated
"""

_NUTRIENT_COLUMNS = ", ".join(NUTRIENT_FIELDS)

_INSERT_INGREDIENT = """
    INSERT INTO ingredients (
        external_id, source, name, category, brand_name, barcode, data_quality
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7)
    RETURNING ingredient_id
"""

_INSERT_NUTRITION = f"""
    INSERT INTO nutrition_facts (
        ingredient_id, {_NUTRIENT_COLUMNS}, data_source, confidence
    )
    VALUES ({", ".join(f"${i}" for i in range(1, len(NUTRIENT_FIELDS) + 4))})
"""  # noqa: S608


class IngredientRepository(BaseRepository):
    """Reads ingredients and their per-100-gram nutrition facts.

    Ingredients are created together with their nutrition fact in a single
    transaction and are never deleted.
    """

    async def get_by_id(self, ingredient_id: UUID) -> Ingredient | None:
        query = f"""
            SELECT {_INGREDIENT_COLUMNS}
            FROM ingredients
            WHERE ingredient_id = $1 AND is_active
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, ingredient_id)

        return self._row_to_ingredient(row) if row else None

    async def get_nutrition_fact(self, ingredient_id: UUID) -> NutritionFact | None:
        query = f"""
            SELECT ingredient_id, {_NUTRIENT_COLUMNS},
                   data_source, confidence, last_verified
            FROM nutrition_facts
            WHERE ingredient_id = $1
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, ingredient_id)

        if row is None:
            return None

        return NutritionFact(
            ingredient_id=row["ingredient_id"],
            nutrients=NutrientValues(**{name: row[name] for name in NUTRIENT_FIELDS}),
            data_source=row["data_source"],
            confidence=row["confidence"],
            last_verified=row["last_verified"],
        )

    async def exists_by_name(self, name: str) -> bool:
        """Check whether an active ingredient has this name (case-insensitive)."""
        query = """
            SELECT EXISTS (
                SELECT 1 FROM ingredients
                WHERE lower(name) = lower($1) AND is_active
            )
        """

        async with self.pool.acquire() as conn:
            return bool(await conn.fetchval(query, name.strip()))

    async def find_existing(
        self,
        source: str,
        external_id: str,
        barcode: str | None = None,
        name: str | None = None,
    ) -> Ingredient | None:
        """Find an ingredient matching a normalized record.

        Matches by (source, external id) first, then barcode, then name.
        """
        query = f"""
            SELECT {_INGREDIENT_COLUMNS},
                CASE
                    WHEN source = $1 AND external_id = $2 THEN 1
                    WHEN $3::text IS NOT NULL AND barcode = $3 THEN 2
                    ELSE 3
                END AS match_rank
            FROM ingredients
            WHERE (source = $1 AND external_id = $2)
               OR ($3::text IS NOT NULL AND barcode = $3)
               OR ($4::text IS NOT NULL AND lower(name) = lower($4))
            ORDER BY match_rank
            LIMIT 1
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, source, external_id, barcode, name)

        return self._row_to_ingredient(row) if row else None

    async def create_with_nutrition(self, food: NormalizedFood) -> UUID:
        """Insert an ingredient and its nutrition fact atomically.

        Raises:
            PersistenceConflictError: If a row with the same identity was
                inserted concurrently.
        """
        nutrients = food.nutrients
        async with self.pool.acquire() as conn:
            try:
                async with conn.transaction():
                    ingredient_id: UUID = await conn.fetchval(
                        _INSERT_INGREDIENT,
                        food.external_id,
                        food.source,
                        food.name,
                        food.category,
                        food.brand_name,
                        food.barcode,
                        food.data_quality,
                    )
                    await conn.execute(
                        _INSERT_NUTRITION,
                        ingredient_id,
                        *(getattr(nutrients, name) for name in NUTRIENT_FIELDS),
                        food.source,
                        food.confidence,
                    )
            except asyncpg.UniqueViolationError as e:
                msg = f"Ingredient {food.source}:{food.external_id} already exists"
                raise PersistenceConflictError(
                    msg, constraint=e.constraint_name
                ) from e

        logger.info(
            "Stored ingredient",
            ingredient_id=str(ingredient_id),
            source=food.source,
            external_id=food.external_id,
        )
        return ingredient_id

    async def update_data_quality(self, ingredient_id: UUID, score: Decimal) -> None:
        query = """
            UPDATE ingredients
            SET data_quality = $2
            WHERE ingredient_id = $1
        """

        async with self.pool.acquire() as conn:
            await conn.execute(query, ingredient_id, score)

    async def get_quality_summary(self, since: datetime) -> dict[str, Any]:
        """Summarize stored data quality over active ingredients.

        ``recent_average`` covers ingredients updated since ``since``.
        """
        overview_query = """
            SELECT count(*) AS total,
                   avg(data_quality) AS average,
                   avg(data_quality) FILTER (WHERE last_updated >= $1)
                       AS recent_average
            FROM ingredients
            WHERE is_active
        """
        distribution_query = """
            SELECT data_quality AS score, count(*) AS ingredients
            FROM ingredients
            WHERE is_active
            GROUP BY data_quality
            ORDER BY data_quality DESC
        """

        async with self.pool.acquire() as conn:
            overview = await conn.fetchrow(overview_query, since)
            distribution = await conn.fetch(distribution_query)

        return {
            "total": overview["total"],
            "average": overview["average"],
            "recent_average": overview["recent_average"],
            "distribution": [dict(row) for row in distribution],
        }

    def _row_to_ingredient(self, row: Record) -> Ingredient:
        return Ingredient(
            ingredient_id=row["ingredient_id"],
            external_id=row["external_id"],
            source=row["source"],
            name=row["name"],
            category=row["category"],
            brand_name=row["brand_name"],
            barcode=row["barcode"],
            data_quality=row["data_quality"] or Decimal("0"),
            last_updated=row["last_updated"],
        )
