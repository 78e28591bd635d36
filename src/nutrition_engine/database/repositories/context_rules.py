"""Context override rule repository."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from nutrition_engine.database.repositories.base import BaseRepository
from nutrition_engine.schemas.records import ContextRule


if TYPE_CHECKING:
    from uuid import UUID

    from asyncpg import Record


class ContextRuleRepository(BaseRepository):
    """Reads and writes per-ingredient context adjustments."""

    async def get_active_rules(
        self, ingredient_id: UUID, context: str
    ) -> list[ContextRule]:
        """Return active rules for an (ingredient, context) pair, oldest first."""
        query = """
            SELECT rule_id, ingredient_id, context, preparation,
                   calorie_multiplier, nutrition_changes, is_active
            FROM context_overrides
            WHERE ingredient_id = $1 AND lower(context) = lower($2) AND is_active
            ORDER BY created_at
        """

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, ingredient_id, context)

        return [self._row_to_rule(row) for row in rows]

    async def insert_rule(self, rule: ContextRule) -> UUID:
        query = """
            INSERT INTO context_overrides (
                ingredient_id, context, preparation, calorie_multiplier,
                nutrition_changes, is_active
            )
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING rule_id
        """

        async with self.pool.acquire() as conn:
            return await conn.fetchval(
                query,
                rule.ingredient_id,
                rule.context,
                rule.preparation,
                rule.calorie_multiplier,
                {k: str(v) for k, v in rule.nutrition_changes.items()},
                rule.is_active,
            )

    async def deactivate_rule(self, rule_id: UUID) -> bool:
        query = "UPDATE context_overrides SET is_active = false WHERE rule_id = $1"

        async with self.pool.acquire() as conn:
            result = await conn.execute(query, rule_id)
        return result.endswith(" 1")

    def _row_to_rule(self, row: Record) -> ContextRule:
        changes = row["nutrition_changes"] or {}
        return ContextRule(
            rule_id=row["rule_id"],
            ingredient_id=row["ingredient_id"],
            context=row["context"],
            preparation=row["preparation"],
            calorie_multiplier=row["calorie_multiplier"],
            nutrition_changes={k: Decimal(str(v)) for k, v in changes.items()},
            is_active=row["is_active"],
        )
