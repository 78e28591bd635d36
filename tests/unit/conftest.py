"""Unit test configuration.

Unit tests are fast and isolated: no PostgreSQL, Redis or network. The
in-memory repositories below mirror the behaviour of the asyncpg ones
closely enough to drive the services end to end.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from nutrition_engine.clients.exceptions import SourceFetchError, SourceParseError
from nutrition_engine.schemas.enums import (
    DiscoveryStatus,
    EtlJobStatus,
    PhysicalState,
)
from nutrition_engine.schemas.nutrition import NormalizedFood, NutrientValues
from nutrition_engine.schemas.records import (
    ContextRule,
    ConversionFactor,
    DensityFact,
    DiscoveryItem,
    EtlJob,
    Ingredient,
    NutritionFact,
)
from nutrition_engine.services.context.service import ContextOverrideService
from nutrition_engine.services.conversion.service import UnitConversionService
from nutrition_engine.services.density.service import DensityService
from nutrition_engine.services.nutrition.service import NutritionCalculationService


pytestmark = pytest.mark.unit

_EPOCH = datetime(2026, 1, 1, tzinfo=UTC)


# =============================================================================
# In-memory repositories
# =============================================================================


class InMemoryConversionRepository:
    def __init__(self) -> None:
        self.factors: dict[tuple[str, str, str], Decimal] = {}
        self.lookups = 0

    def _scope(self, factor: ConversionFactor) -> str:
        if factor.ingredient_id is not None:
            return f"ingredient:{factor.ingredient_id}"
        if factor.category is not None:
            return f"category:{factor.category.lower()}"
        return "general"

    async def get_ingredient_factor(
        self, from_unit: str, to_unit: str, ingredient_id: UUID
    ) -> Decimal | None:
        self.lookups += 1
        return self.factors.get((from_unit, to_unit, f"ingredient:{ingredient_id}"))

    async def get_category_factor(
        self, from_unit: str, to_unit: str, category: str
    ) -> Decimal | None:
        self.lookups += 1
        return self.factors.get((from_unit, to_unit, f"category:{category.lower()}"))

    async def get_general_factor(self, from_unit: str, to_unit: str) -> Decimal | None:
        self.lookups += 1
        return self.factors.get((from_unit, to_unit, "general"))

    async def insert_factor(self, factor: ConversionFactor) -> bool:
        key = (factor.from_unit, factor.to_unit, self._scope(factor))
        if key in self.factors:
            return False
        self.factors[key] = factor.factor
        return True


class InMemoryDensityRepository:
    def __init__(self) -> None:
        self.facts: list[DensityFact] = []

    def _pick(
        self, candidates: list[DensityFact], state: PhysicalState
    ) -> Decimal | None:
        if state is not PhysicalState.DEFAULT:
            candidates = [
                f for f in candidates if f.state in (state, PhysicalState.DEFAULT)
            ]
        candidates.sort(
            key=lambda f: (
                f.state != state,
                f.state != PhysicalState.DEFAULT,
                -f.confidence,
            )
        )
        return candidates[0].density_g_ml if candidates else None

    async def get_ingredient_density(
        self, ingredient_id: UUID, state: PhysicalState = PhysicalState.DEFAULT
    ) -> Decimal | None:
        return self._pick(
            [f for f in self.facts if f.ingredient_id == ingredient_id], state
        )

    async def get_category_density(
        self, category: str, state: PhysicalState = PhysicalState.DEFAULT
    ) -> Decimal | None:
        return self._pick(
            [
                f
                for f in self.facts
                if f.ingredient_id is None
                and f.category is not None
                and f.category.lower() == category.lower()
            ],
            state,
        )

    async def get_general_density(
        self, state: PhysicalState = PhysicalState.DEFAULT
    ) -> Decimal | None:
        return self._pick(
            [f for f in self.facts if f.ingredient_id is None and f.category is None],
            state,
        )

    async def insert_density(self, fact: DensityFact) -> bool:
        for existing in self.facts:
            if (
                existing.ingredient_id == fact.ingredient_id
                and existing.category == fact.category
                and existing.label == fact.label
                and existing.state == fact.state
            ):
                return False
        self.facts.append(fact)
        return True


class InMemoryContextRuleRepository:
    def __init__(self) -> None:
        self.rules: list[ContextRule] = []

    async def get_active_rules(
        self, ingredient_id: UUID, context: str
    ) -> list[ContextRule]:
        return [
            rule
            for rule in self.rules
            if rule.ingredient_id == ingredient_id
            and rule.context.lower() == context.lower()
            and rule.is_active
        ]

    async def insert_rule(self, rule: ContextRule) -> UUID:
        rule_id = uuid4()
        self.rules.append(rule.model_copy(update={"rule_id": rule_id}))
        return rule_id


class InMemoryIngredientRepository:
    def __init__(self) -> None:
        self.ingredients: dict[UUID, Ingredient] = {}
        self.facts: dict[UUID, NutritionFact] = {}
        self.quality_updates: list[tuple[UUID, Decimal]] = []

    def add(
        self,
        name: str,
        nutrients: NutrientValues | None = None,
        *,
        category: str | None = None,
        source: str = "usda_fdc",
        external_id: str | None = None,
        barcode: str | None = None,
        last_updated: datetime | None = None,
        data_quality: Decimal = Decimal("0"),
    ) -> UUID:
        ingredient_id = uuid4()
        self.ingredients[ingredient_id] = Ingredient(
            ingredient_id=ingredient_id,
            external_id=external_id or str(ingredient_id),
            source=source,
            name=name,
            category=category,
            barcode=barcode,
            data_quality=data_quality,
            last_updated=last_updated,
        )
        if nutrients is not None:
            self.facts[ingredient_id] = NutritionFact(
                ingredient_id=ingredient_id,
                nutrients=nutrients,
                data_source=source,
                confidence=Decimal("0.95"),
            )
        return ingredient_id

    async def get_by_id(self, ingredient_id: UUID) -> Ingredient | None:
        return self.ingredients.get(ingredient_id)

    async def get_nutrition_fact(self, ingredient_id: UUID) -> NutritionFact | None:
        return self.facts.get(ingredient_id)

    async def exists_by_name(self, name: str) -> bool:
        wanted = name.strip().lower()
        return any(i.name.lower() == wanted for i in self.ingredients.values())

    async def find_existing(
        self,
        source: str,
        external_id: str,
        barcode: str | None = None,
        name: str | None = None,
    ) -> Ingredient | None:
        for ingredient in self.ingredients.values():
            if ingredient.source == source and ingredient.external_id == external_id:
                return ingredient
        for ingredient in self.ingredients.values():
            if barcode is not None and ingredient.barcode == barcode:
                return ingredient
        for ingredient in self.ingredients.values():
            if name is not None and ingredient.name.lower() == name.lower():
                return ingredient
        return None

    async def create_with_nutrition(self, food: NormalizedFood) -> UUID:
        return self.add(
            food.name,
            food.nutrients,
            category=food.category,
            source=food.source,
            external_id=food.external_id,
            barcode=food.barcode,
        )

    async def update_data_quality(self, ingredient_id: UUID, score: Decimal) -> None:
        self.quality_updates.append((ingredient_id, score))

    async def get_quality_summary(self, since: datetime) -> dict[str, Any]:
        scores = [i.data_quality for i in self.ingredients.values()]
        recent = [
            i.data_quality
            for i in self.ingredients.values()
            if i.last_updated is not None and i.last_updated >= since
        ]
        buckets: dict[Decimal, int] = {}
        for score in scores:
            buckets[score] = buckets.get(score, 0) + 1
        return {
            "total": len(scores),
            "average": sum(scores) / len(scores) if scores else None,
            "recent_average": sum(recent) / len(recent) if recent else None,
            "distribution": [
                {"score": score, "ingredients": count}
                for score, count in sorted(buckets.items(), reverse=True)
            ],
        }


class InMemoryDiscoveryQueueRepository:
    """Keeps at most one pending item per case-insensitive name."""

    def __init__(self) -> None:
        self.items: dict[UUID, DiscoveryItem] = {}
        self._sequence = 0

    async def enqueue(
        self,
        ingredient_name: str,
        source: str,
        priority: int,
        metadata: dict[str, Any] | None = None,
    ) -> UUID | None:
        wanted = ingredient_name.lower()
        for item in self.items.values():
            if (
                item.status is DiscoveryStatus.PENDING
                and item.ingredient_name.lower() == wanted
            ):
                return None
        self._sequence += 1
        item_id = uuid4()
        self.items[item_id] = DiscoveryItem(
            item_id=item_id,
            ingredient_name=ingredient_name,
            source=source,
            priority=priority,
            status=DiscoveryStatus.PENDING,
            discovered_at=_EPOCH + timedelta(seconds=self._sequence),
            metadata=metadata or {},
        )
        return item_id

    async def get_pending(self, limit: int) -> list[DiscoveryItem]:
        pending = [
            i for i in self.items.values() if i.status is DiscoveryStatus.PENDING
        ]
        pending.sort(key=lambda i: (i.priority, i.discovered_at))
        return pending[:limit]

    async def claim(self, item_id: UUID) -> DiscoveryItem | None:
        item = self.items.get(item_id)
        if item is None or item.status is not DiscoveryStatus.PENDING:
            return None
        claimed = item.model_copy(
            update={
                "status": DiscoveryStatus.PROCESSING,
                "attempts": item.attempts + 1,
                "last_attempt": _EPOCH,
            }
        )
        self.items[item_id] = claimed
        return claimed

    async def _finish(
        self, item_id: UUID, status: DiscoveryStatus, metadata: dict[str, Any]
    ) -> None:
        item = self.items[item_id]
        if item.status is DiscoveryStatus.PROCESSING:
            self.items[item_id] = item.model_copy(
                update={"status": status, "metadata": {**item.metadata, **metadata}}
            )

    async def mark_completed(self, item_id: UUID, metadata: dict[str, Any]) -> None:
        await self._finish(item_id, DiscoveryStatus.COMPLETED, metadata)

    async def mark_failed(self, item_id: UUID, metadata: dict[str, Any]) -> None:
        await self._finish(item_id, DiscoveryStatus.FAILED, metadata)

    async def requeue_failed(self, name: str | None = None, limit: int = 100) -> int:
        count = 0
        for item_id, item in list(self.items.items()):
            if count >= limit:
                break
            if item.status is not DiscoveryStatus.FAILED:
                continue
            if name is not None and item.ingredient_name.lower() != name.lower():
                continue
            self.items[item_id] = item.model_copy(
                update={"status": DiscoveryStatus.PENDING}
            )
            count += 1
        return count

    async def count_by_status(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for item in self.items.values():
            counts[item.status.value] = counts.get(item.status.value, 0) + 1
        return counts

    async def get_by_id(self, item_id: UUID) -> DiscoveryItem | None:
        return self.items.get(item_id)


class InMemoryEtlJobRepository:
    def __init__(self) -> None:
        self.jobs: dict[UUID, EtlJob] = {}

    async def start(
        self, job_type: str, metadata: dict[str, Any] | None = None
    ) -> EtlJob:
        job = EtlJob(
            job_id=uuid4(),
            job_type=job_type,
            status=EtlJobStatus.RUNNING,
            started_at=_EPOCH,
            metadata=metadata or {},
        )
        self.jobs[job.job_id] = job
        return job

    async def complete(
        self,
        job_id: UUID,
        *,
        processed: int,
        succeeded: int,
        failed: int,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        job = self.jobs[job_id]
        self.jobs[job_id] = job.model_copy(
            update={
                "status": EtlJobStatus.COMPLETED,
                "completed_at": _EPOCH,
                "records_processed": processed,
                "records_succeeded": succeeded,
                "records_failed": failed,
                "metadata": {**job.metadata, **(metadata or {})},
            }
        )

    async def fail(
        self,
        job_id: UUID,
        error_log: dict[str, Any],
        *,
        processed: int = 0,
        succeeded: int = 0,
        failed: int = 0,
    ) -> None:
        self.jobs[job_id] = self.jobs[job_id].model_copy(
            update={
                "status": EtlJobStatus.FAILED,
                "completed_at": _EPOCH,
                "error_log": error_log,
                "records_processed": processed,
                "records_succeeded": succeeded,
                "records_failed": failed,
            }
        )


# =============================================================================
# Source adapter double
# =============================================================================


class StubSourceAdapter:
    """Adapter returning canned search results keyed by lower-cased query."""

    def __init__(
        self,
        name: str,
        results: dict[str, list[dict[str, Any]]] | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self._name = name
        self.results = results or {}
        self.error = error
        self.searches: list[str] = []
        self.initialize = AsyncMock()
        self.shutdown = AsyncMock()

    @property
    def name(self) -> str:
        return self._name

    async def search_by_name(self, query: str, limit: int = 5) -> list[dict[str, Any]]:
        self.searches.append(query)
        if self.error is not None:
            raise self.error
        return self.results.get(query.lower(), [])[:limit]

    async def fetch_by_id(self, external_id: str) -> dict[str, Any] | None:
        for records in self.results.values():
            for record in records:
                if record["id"] == external_id:
                    return record
        return None

    def normalize(self, raw: dict[str, Any]) -> NormalizedFood:
        if "id" not in raw:
            msg = "Record has no id"
            raise SourceParseError(msg, source=self._name)
        return NormalizedFood(
            source=self._name,
            external_id=raw["id"],
            name=raw["name"],
            category=raw.get("category"),
            nutrients=NutrientValues(**raw.get("nutrients", {})),
            confidence=Decimal("0.9"),
            data_quality=Decimal("0.9"),
        )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def conversion_repository() -> InMemoryConversionRepository:
    return InMemoryConversionRepository()


@pytest.fixture
def density_repository() -> InMemoryDensityRepository:
    return InMemoryDensityRepository()


@pytest.fixture
def context_repository() -> InMemoryContextRuleRepository:
    return InMemoryContextRuleRepository()


@pytest.fixture
def ingredient_repository() -> InMemoryIngredientRepository:
    return InMemoryIngredientRepository()


@pytest.fixture
def queue_repository() -> InMemoryDiscoveryQueueRepository:
    return InMemoryDiscoveryQueueRepository()


@pytest.fixture
def job_repository() -> InMemoryEtlJobRepository:
    return InMemoryEtlJobRepository()


@pytest.fixture
def make_adapter() -> Callable[..., StubSourceAdapter]:
    """Factory for stub adapters, e.g. ``make_adapter("usda_fdc", {...})``."""
    return StubSourceAdapter


@pytest.fixture
def fetch_error() -> SourceFetchError:
    return SourceFetchError("Service unavailable", source="stub", status_code=503)


@pytest.fixture
def conversion_service(
    conversion_repository: InMemoryConversionRepository,
) -> UnitConversionService:
    return UnitConversionService(
        repository=conversion_repository,  # type: ignore[arg-type]
    )


@pytest.fixture
def density_service(
    conversion_service: UnitConversionService,
    density_repository: InMemoryDensityRepository,
) -> DensityService:
    return DensityService(
        conversion_service,
        repository=density_repository,  # type: ignore[arg-type]
    )


@pytest.fixture
def context_service(
    context_repository: InMemoryContextRuleRepository,
) -> ContextOverrideService:
    return ContextOverrideService(
        repository=context_repository,  # type: ignore[arg-type]
    )


@pytest.fixture
def nutrition_service(
    conversion_service: UnitConversionService,
    density_service: DensityService,
    context_service: ContextOverrideService,
    ingredient_repository: InMemoryIngredientRepository,
) -> NutritionCalculationService:
    return NutritionCalculationService(
        conversion_service,
        density_service,
        context_service,
        ingredient_repository=ingredient_repository,  # type: ignore[arg-type]
    )


@pytest.fixture
def mock_pool() -> MagicMock:
    """Create a mock asyncpg pool."""
    pool = MagicMock()
    pool.close = AsyncMock()

    # Mock connection context manager
    mock_conn = AsyncMock()
    mock_conn.fetchval = AsyncMock(return_value=None)
    mock_conn.fetchrow = AsyncMock(return_value=None)
    mock_conn.fetch = AsyncMock(return_value=[])
    mock_conn.execute = AsyncMock(return_value="UPDATE 0")

    pool.acquire = MagicMock(return_value=AsyncMock())
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=mock_conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=None)

    return pool


@pytest.fixture
def mock_conn(mock_pool: MagicMock) -> AsyncMock:
    return mock_pool.acquire.return_value.__aenter__.return_value
