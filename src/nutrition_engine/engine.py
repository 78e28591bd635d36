"""Nutrition engine facade.

Wires the conversion, density, context and calculation services together
with the discovery queue and the ETL runner, and owns the lifecycle of the
shared resources (database pool, optional Redis cache, source adapters).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import redis.asyncio as redis

from nutrition_engine.cache.local import LocalCache
from nutrition_engine.cache.redis import close_cache_client, init_cache_client
from nutrition_engine.clients.factory import build_adapters
from nutrition_engine.core.config import get_settings
from nutrition_engine.database.connection import (
    close_database_pool,
    init_database_pool,
)
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.services.context.service import ContextOverrideService
from nutrition_engine.services.conversion.service import UnitConversionService
from nutrition_engine.services.density.service import DensityService
from nutrition_engine.services.discovery.runner import EtlJobRunner
from nutrition_engine.services.discovery.service import DiscoveryService
from nutrition_engine.services.monitoring.service import EtlMonitor
from nutrition_engine.services.nutrition.service import NutritionCalculationService


if TYPE_CHECKING:
    from collections.abc import Sequence
    from decimal import Decimal
    from uuid import UUID

    from redis.asyncio import Redis

    from nutrition_engine.clients.protocol import SourceAdapter
    from nutrition_engine.core.config import Settings
    from nutrition_engine.schemas.enums import DiscoveryOutcome
    from nutrition_engine.schemas.monitoring import DataQualityReport, SystemHealth
    from nutrition_engine.schemas.nutrition import NutritionResult
    from nutrition_engine.services.discovery.runner import BatchResult


logger = get_logger(__name__)


class NutritionEngine:
    """Single entry point for nutrition calculation and ingestion.

    Usage:
        engine = NutritionEngine()
        await engine.initialize()
        try:
            result = await engine.calculate_for_quantity(chicken_id, 250, "g")
        finally:
            await engine.shutdown()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        adapters: Sequence[SourceAdapter] | None = None,
        *,
        use_redis_cache: bool = True,
        seed_defaults: bool = True,
    ) -> None:
        """Initialize the engine.

        Args:
            settings: Application settings. Defaults to ``get_settings()``.
            adapters: Source adapters to use instead of the configured ones.
            use_redis_cache: Cache adapter search responses in Redis.
            seed_defaults: Write the default conversion and density tables
                on ``initialize``.
        """
        self.settings = settings or get_settings()
        self._use_redis_cache = use_redis_cache
        self._seed_defaults = seed_defaults
        self._adapters: list[SourceAdapter] | None = (
            list(adapters) if adapters is not None else None
        )
        self._cache_client: Redis[Any] | None = None
        self._initialized = False

        max_items = self.settings.conversion.cache_max_items
        self.conversions = UnitConversionService(cache=LocalCache(max_items))
        self.densities = DensityService(self.conversions, cache=LocalCache(max_items))
        self.contexts = ContextOverrideService()
        self.nutrition = NutritionCalculationService(
            self.conversions, self.densities, self.contexts
        )
        self.discovery = DiscoveryService(
            default_priority=self.settings.discovery.default_priority
        )
        self.monitor = EtlMonitor()
        self._runner: EtlJobRunner | None = None

    @property
    def runner(self) -> EtlJobRunner:
        if self._runner is None:
            msg = "NutritionEngine not initialized. Call initialize() first."
            raise RuntimeError(msg)
        return self._runner

    async def initialize(self) -> None:
        """Open the pool, connect adapters and seed default tables."""
        if self._initialized:
            return

        await init_database_pool()

        if self._use_redis_cache:
            try:
                self._cache_client = await init_cache_client()
            except redis.ConnectionError:
                logger.warning("Redis cache unavailable, continuing without it")
                self._cache_client = None

        if self._adapters is None:
            self._adapters = build_adapters(self.settings, self._cache_client)
        for adapter in self._adapters:
            await adapter.initialize()

        discovery = self.settings.discovery
        self._runner = EtlJobRunner(
            self._adapters,
            batch_size=discovery.batch_size,
            search_limit=discovery.search_limit,
            source_timeout=discovery.source_timeout,
        )

        if self._seed_defaults:
            await self.conversions.seed_defaults()
            await self.densities.seed_defaults()

        self._initialized = True
        logger.info(
            "Nutrition engine initialized",
            sources=[adapter.name for adapter in self._adapters],
            redis_cache=self._cache_client is not None,
        )

    async def shutdown(self) -> None:
        """Release adapters, the cache client and the pool."""
        for adapter in self._adapters or []:
            await adapter.shutdown()
        if self._cache_client is not None:
            await close_cache_client()
            self._cache_client = None
        await close_database_pool()
        self._runner = None
        self._initialized = False
        logger.info("Nutrition engine shut down")

    async def calculate_for_quantity(
        self,
        ingredient_id: UUID,
        quantity: Decimal | int | float | str,
        unit: str,
        context: str | None = None,
        preparation: str | None = None,
    ) -> NutritionResult:
        return await self.nutrition.calculate_for_quantity(
            ingredient_id, quantity, unit, context, preparation
        )

    async def queue_for_discovery(
        self,
        name: str,
        source: str,
        priority: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> DiscoveryOutcome:
        return await self.discovery.queue_for_discovery(
            name, source, priority, metadata
        )

    async def discover_from_text(
        self, text: str, priority: int | None = None
    ) -> dict[str, DiscoveryOutcome]:
        return await self.discovery.discover_from_text(text, priority)

    async def process_discovery_queue(
        self, batch_size: int | None = None
    ) -> BatchResult:
        return await self.runner.process_discovery_queue(batch_size)

    async def ingest_by_external_id(
        self, source: str, external_id: str
    ) -> UUID | None:
        return await self.runner.ingest_by_external_id(source, external_id)

    async def requeue_failed(self, name: str | None = None, limit: int = 100) -> int:
        return await self.discovery.requeue_failed(name, limit)

    async def generate_data_quality_report(self) -> DataQualityReport:
        return await self.monitor.generate_data_quality_report()

    async def get_system_health(self) -> SystemHealth:
        return await self.monitor.get_system_health()

    async def check_health_alerts(self) -> SystemHealth:
        return await self.monitor.check_health_alerts()
