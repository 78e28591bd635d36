"""Density fact repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nutrition_engine.database.repositories.base import BaseRepository
from nutrition_engine.schemas.enums import PhysicalState


if TYPE_CHECKING:
    from decimal import Decimal
    from uuid import UUID

    from nutrition_engine.schemas.records import DensityFact


# A requested state matches facts recorded for that state or for 'default';
# the exact state sorts first. Asking for 'default' accepts any state.
def _state_clause(param: str) -> tuple[str, str]:
    where = f"({param} = 'default' OR state = {param} OR state = 'default')"
    order = (
        f"ORDER BY (state = {param}) DESC, (state = 'default') DESC, "
        "confidence DESC LIMIT 1"
    )
    return where, order


class DensityRepository(BaseRepository):
    """Looks up grams-per-millilitre facts by scope and physical state."""

    async def get_ingredient_density(
        self, ingredient_id: UUID, state: PhysicalState = PhysicalState.DEFAULT
    ) -> Decimal | None:
        where, order = _state_clause("$2")
        query = f"""
            SELECT density_g_ml FROM density_facts
            WHERE ingredient_id = $1 AND {where}
            {order}
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, ingredient_id, state.value)

    async def get_category_density(
        self, category: str, state: PhysicalState = PhysicalState.DEFAULT
    ) -> Decimal | None:
        where, order = _state_clause("$2")
        query = f"""
            SELECT density_g_ml FROM density_facts
            WHERE ingredient_id IS NULL AND lower(category) = lower($1)
              AND {where}
            {order}
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, category, state.value)

    async def get_general_density(
        self, state: PhysicalState = PhysicalState.DEFAULT
    ) -> Decimal | None:
        where, order = _state_clause("$1")
        query = f"""
            SELECT density_g_ml FROM density_facts
            WHERE ingredient_id IS NULL AND category IS NULL AND {where}
            {order}
        """  # noqa: S608

        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, state.value)

    async def insert_density(self, fact: DensityFact) -> bool:
        """Insert a density fact unless its scope already has one.

        Returns:
            True if a new row was written.
        """
        query = """
            INSERT INTO density_facts (
                ingredient_id, category, label, density_g_ml,
                state, source, confidence
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT DO NOTHING
            RETURNING density_id
        """

        async with self.pool.acquire() as conn:
            inserted = await conn.fetchval(
                query,
                fact.ingredient_id,
                fact.category,
                fact.label,
                fact.density_g_ml,
                fact.state.value,
                fact.source,
                fact.confidence,
            )
        return inserted is not None
