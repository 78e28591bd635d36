"""Discovery service: decides whether an ingredient name needs looking up."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from nutrition_engine.database.repositories.discovery import DiscoveryQueueRepository
from nutrition_engine.database.repositories.ingredients import IngredientRepository
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.observability.metrics import DISCOVERY_ITEMS, record
from nutrition_engine.schemas.enums import DiscoveryOutcome
from nutrition_engine.services.discovery.constants import (
    DEFAULT_PRIORITY,
    MAX_PRIORITY,
    MIN_PRIORITY,
    RECIPE_FOOD_KEYWORDS,
    RECIPE_PARSING_SOURCE,
)


if TYPE_CHECKING:
    from uuid import UUID

    from nutrition_engine.schemas.records import DiscoveryItem


logger = get_logger(__name__)

_FOOD_WORD = re.compile(
    r"\b(?:" + "|".join(RECIPE_FOOD_KEYWORDS) + r")\w*\b", re.IGNORECASE
)


class DiscoveryService:
    """Queues unknown ingredient names for background lookup.

    Names already known as ingredients are not queued, and the store keeps
    at most one pending item per case-insensitive name.
    """

    def __init__(
        self,
        queue_repository: DiscoveryQueueRepository | None = None,
        ingredient_repository: IngredientRepository | None = None,
        default_priority: int = DEFAULT_PRIORITY,
    ) -> None:
        self._queue = queue_repository or DiscoveryQueueRepository()
        self._ingredients = ingredient_repository or IngredientRepository()
        self._default_priority = default_priority

    async def queue_for_discovery(
        self,
        name: str,
        source: str,
        priority: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> DiscoveryOutcome:
        """Ask for an ingredient to be discovered.

        Args:
            name: Ingredient name as seen by the caller.
            source: Provenance tag (e.g. "recipe_import", "user_search").
            priority: 1 (most urgent) to 10. Defaults to the configured value.
            metadata: Free-form context stored with the item.

        Returns:
            QUEUED if a new pending item was created, ALREADY_KNOWN if an
            ingredient with that name exists, ALREADY_QUEUED if a pending
            item for that name exists.

        Raises:
            ValueError: If the name is blank or the priority out of range.
        """
        cleaned = " ".join(name.split())
        if not cleaned:
            msg = "Ingredient name must not be blank"
            raise ValueError(msg)

        level = self._default_priority if priority is None else priority
        if not MIN_PRIORITY <= level <= MAX_PRIORITY:
            msg = f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}"
            raise ValueError(msg)

        if await self._ingredients.exists_by_name(cleaned):
            outcome = DiscoveryOutcome.ALREADY_KNOWN
        else:
            item_id = await self._queue.enqueue(cleaned, source, level, metadata)
            outcome = (
                DiscoveryOutcome.QUEUED
                if item_id is not None
                else DiscoveryOutcome.ALREADY_QUEUED
            )

        record(DISCOVERY_ITEMS, outcome=outcome.value)
        logger.debug(
            "Discovery request handled",
            ingredient=cleaned,
            source=source,
            priority=level,
            outcome=outcome.value,
        )
        return outcome

    async def discover_from_text(
        self, text: str, priority: int | None = None
    ) -> dict[str, DiscoveryOutcome]:
        """Queue the food words found in free recipe text.

        Matching is a keyword scan, not ingredient parsing: each word that
        starts with a known food stem is queued once, lower-cased, with
        source ``recipe_parsing``.

        Returns:
            Outcome per extracted name, in order of first appearance.
        """
        names = dict.fromkeys(m.lower() for m in _FOOD_WORD.findall(text))
        outcomes: dict[str, DiscoveryOutcome] = {}
        for name in names:
            outcomes[name] = await self.queue_for_discovery(
                name,
                RECIPE_PARSING_SOURCE,
                priority,
                {"discovered_from": RECIPE_PARSING_SOURCE},
            )

        logger.info(
            "Queued names found in recipe text",
            found=len(outcomes),
            queued=sum(o is DiscoveryOutcome.QUEUED for o in outcomes.values()),
        )
        return outcomes

    async def requeue_failed(self, name: str | None = None, limit: int = 100) -> int:
        """Return failed items to the queue.

        Failed items are never retried automatically; this is the explicit
        operator action for doing so.

        Returns:
            Number of items moved back to pending.
        """
        count = await self._queue.requeue_failed(name, limit)
        logger.info("Requeued failed discovery items", count=count, ingredient=name)
        return count

    async def queue_stats(self) -> dict[str, int]:
        """Count queue items by status."""
        return await self._queue.count_by_status()

    async def get_item(self, item_id: UUID) -> DiscoveryItem | None:
        return await self._queue.get_by_id(item_id)
