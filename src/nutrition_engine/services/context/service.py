"""Context override rules.

A rule adjusts an ingredient's nutrition for a usage context such as
"fried" or "drained": calories are scaled by a multiplier and any other
nutrient can be shifted by a signed percentage.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from nutrition_engine.database.repositories.context_rules import ContextRuleRepository
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.schemas.nutrition import NUTRIENT_FIELDS
from nutrition_engine.schemas.records import ContextRule


if TYPE_CHECKING:
    from uuid import UUID

    from nutrition_engine.schemas.nutrition import NutrientValues


logger = get_logger(__name__)

_QUANTUM = Decimal("0.001")
_HUNDRED = Decimal("100")


def select_rule(
    rules: list[ContextRule], preparation: str | None
) -> ContextRule | None:
    """Pick the rule for a preparation.

    An exact preparation match wins, then a rule with no preparation, then
    the first remaining rule.
    """
    if not rules:
        return None
    wanted = preparation.strip().lower() if preparation else None
    if wanted:
        for rule in rules:
            if rule.preparation and rule.preparation.strip().lower() == wanted:
                return rule
    for rule in rules:
        if rule.preparation is None:
            return rule
    return rules[0]


def apply_rule(rule: ContextRule, base: NutrientValues) -> NutrientValues:
    """Apply a rule's multiplier and percentage deltas to present nutrients."""
    values = base.present()

    if rule.calorie_multiplier is not None and "calories" in values:
        values["calories"] = values["calories"] * rule.calorie_multiplier

    for nutrient, delta in rule.nutrition_changes.items():
        if nutrient not in values:
            continue
        values[nutrient] = values[nutrient] * (1 + delta / _HUNDRED)

    return base.model_copy(
        update={
            name: value.quantize(_QUANTUM, rounding=ROUND_HALF_UP)
            for name, value in values.items()
        }
    )


class ContextOverrideService:
    """Applies the active context rule for an ingredient, if any."""

    def __init__(self, repository: ContextRuleRepository | None = None) -> None:
        self._repository = repository or ContextRuleRepository()

    async def apply(
        self,
        ingredient_id: UUID,
        context: str,
        preparation: str | None,
        base_nutrition: NutrientValues,
    ) -> NutrientValues:
        """Adjust ``base_nutrition`` for a context.

        With no active rule the input is returned unchanged. Nutrients absent
        from the input stay absent.
        """
        rules = await self._repository.get_active_rules(ingredient_id, context)
        rule = select_rule(rules, preparation)
        if rule is None:
            return base_nutrition

        logger.debug(
            "Applying context override",
            ingredient_id=str(ingredient_id),
            context=context,
            preparation=rule.preparation,
        )
        return apply_rule(rule, base_nutrition)

    async def add_rule(
        self,
        ingredient_id: UUID,
        context: str,
        *,
        preparation: str | None = None,
        calorie_multiplier: Decimal | None = None,
        nutrition_changes: dict[str, Decimal] | None = None,
    ) -> UUID:
        """Persist a new active rule.

        Raises:
            ValueError: If a change names a nutrient outside the vocabulary
                or the multiplier is negative.
        """
        changes = nutrition_changes or {}
        unknown = sorted(set(changes) - set(NUTRIENT_FIELDS))
        if unknown:
            msg = f"Unknown nutrients in context rule: {', '.join(unknown)}"
            raise ValueError(msg)
        if calorie_multiplier is not None and calorie_multiplier < 0:
            msg = "calorie_multiplier must not be negative"
            raise ValueError(msg)

        return await self._repository.insert_rule(
            ContextRule(
                ingredient_id=ingredient_id,
                context=context.strip().lower(),
                preparation=preparation,
                calorie_multiplier=calorie_multiplier,
                nutrition_changes=changes,
            )
        )
