"""Builds the configured source adapters in lookup order."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nutrition_engine.clients.open_food_facts.client import OpenFoodFactsClient
from nutrition_engine.clients.usda.client import UsdaFoodDataClient
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.schemas.enums import DataSource


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from nutrition_engine.clients.protocol import SourceAdapter
    from nutrition_engine.core.config import Settings

logger = get_logger(__name__)


def build_adapters(
    settings: Settings,
    cache_client: Redis[bytes] | None = None,
) -> list[SourceAdapter]:
    """Create enabled adapters ordered by ``discovery.source_order``.

    Raises:
        ValueError: If the order names an unknown source.
    """
    adapters: list[SourceAdapter] = []
    for name in settings.discovery.source_order:
        if name == DataSource.USDA_FDC:
            if not settings.sources.usda.enabled:
                continue
            adapters.append(
                UsdaFoodDataClient(
                    settings.sources.usda,
                    api_key=settings.USDA_API_KEY,
                    cache_client=cache_client,
                )
            )
        elif name == DataSource.OPEN_FOOD_FACTS:
            if not settings.sources.open_food_facts.enabled:
                continue
            adapters.append(
                OpenFoodFactsClient(
                    settings.sources.open_food_facts,
                    cache_client=cache_client,
                )
            )
        else:
            msg = f"Unknown source in discovery.source_order: {name}"
            raise ValueError(msg)

    logger.info("Source adapters configured", order=[a.name for a in adapters])
    return adapters
