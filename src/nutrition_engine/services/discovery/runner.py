"""ETL job runner for the discovery queue.

Pulls pending items in priority order, looks each one up in the configured
sources until one returns a result, and persists the normalized record.
Every batch is wrapped in an ``etl_jobs`` row so operators can see what ran,
how much succeeded, and why a batch failed.
"""

from __future__ import annotations

import asyncio
import time
import traceback
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from nutrition_engine.clients.exceptions import SourceError, SourceParseError
from nutrition_engine.database.exceptions import PersistenceConflictError
from nutrition_engine.database.repositories.discovery import DiscoveryQueueRepository
from nutrition_engine.database.repositories.etl_jobs import EtlJobRepository
from nutrition_engine.database.repositories.ingredients import IngredientRepository
from nutrition_engine.observability.logging import get_logger, log_context
from nutrition_engine.observability.metrics import (
    DISCOVERY_ITEMS,
    ETL_BATCH_DURATION,
    ETL_JOBS,
    metrics_enabled,
    record,
)
from nutrition_engine.schemas.enums import EtlJobStatus, EtlJobType
from nutrition_engine.services.discovery.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SOURCE_TIMEOUT_SECONDS,
    MAX_TRACEBACK_CHARS,
)
from nutrition_engine.services.discovery.exceptions import UnknownSourceError


if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from nutrition_engine.clients.protocol import SourceAdapter
    from nutrition_engine.schemas.nutrition import NormalizedFood
    from nutrition_engine.schemas.records import DiscoveryItem


logger = get_logger(__name__)


class ItemOutcome(StrEnum):
    """What happened to one queue item within a batch."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class BatchResult:
    """Counts for one processed batch."""

    job_id: UUID
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    ingredient_ids: list[UUID] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "job_id": str(self.job_id),
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "ingredient_ids": [str(i) for i in self.ingredient_ids],
        }


def error_payload(error: BaseException) -> dict[str, Any]:
    """Build the ``error_log`` document stored on a failed job."""
    trace = "".join(traceback.format_exception(error))
    return {
        "message": str(error),
        "type": type(error).__name__,
        "traceback": trace[-MAX_TRACEBACK_CHARS:],
    }


class EtlJobRunner:
    """Processes the discovery queue against external sources.

    Items within a batch are processed one at a time, and each adapter call
    is bounded by ``source_timeout``. Claiming an item is a conditional
    update, so two runners working the same queue never process one item
    twice.
    """

    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        queue_repository: DiscoveryQueueRepository | None = None,
        ingredient_repository: IngredientRepository | None = None,
        job_repository: EtlJobRepository | None = None,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
        source_timeout: float = DEFAULT_SOURCE_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the runner.

        Args:
            adapters: Sources to try, in order.
            queue_repository: Discovery queue access.
            ingredient_repository: Ingredient persistence.
            job_repository: ETL job audit records.
            batch_size: Default number of items per batch.
            search_limit: Maximum results requested from a source search.
            source_timeout: Seconds allowed for one adapter call.
        """
        self._adapters = list(adapters)
        self._adapters_by_name = {adapter.name: adapter for adapter in self._adapters}
        self._queue = queue_repository or DiscoveryQueueRepository()
        self._ingredients = ingredient_repository or IngredientRepository()
        self._jobs = job_repository or EtlJobRepository()
        self._batch_size = batch_size
        self._search_limit = search_limit
        self._source_timeout = source_timeout

    async def process_discovery_queue(
        self, batch_size: int | None = None
    ) -> BatchResult:
        """Process up to ``batch_size`` pending items.

        Item-level failures are recorded on the item and do not fail the
        batch. Errors outside item processing (such as the store becoming
        unreachable) mark the job failed and are re-raised.
        """
        size = batch_size or self._batch_size
        job_type = EtlJobType.INGREDIENT_DISCOVERY.value
        job = await self._jobs.start(
            job_type,
            {"batch_size": size, "sources": list(self._adapters_by_name)},
        )
        result = BatchResult(job_id=job.job_id)
        started = time.monotonic()

        with log_context(job_id=str(job.job_id), job_type=job_type):
            logger.info("Discovery batch started", batch_size=size)
            try:
                items = await self._queue.get_pending(size)
                for item in items:
                    outcome = await self._process_item(item, result)
                    record(DISCOVERY_ITEMS, outcome=outcome.value)
                    if outcome is ItemOutcome.SKIPPED:
                        result.skipped += 1
                        continue
                    result.processed += 1
                    if outcome is ItemOutcome.SUCCEEDED:
                        result.succeeded += 1
                    else:
                        result.failed += 1
            except Exception as e:
                logger.exception("Discovery batch failed")
                await self._jobs.fail(
                    job.job_id,
                    error_payload(e),
                    processed=result.processed,
                    succeeded=result.succeeded,
                    failed=result.failed,
                )
                record(ETL_JOBS, job_type=job_type, status=EtlJobStatus.FAILED.value)
                raise

            await self._jobs.complete(
                job.job_id,
                processed=result.processed,
                succeeded=result.succeeded,
                failed=result.failed,
                metadata={"skipped": result.skipped},
            )
            record(ETL_JOBS, job_type=job_type, status=EtlJobStatus.COMPLETED.value)
            if metrics_enabled():
                ETL_BATCH_DURATION.observe(time.monotonic() - started)

            logger.info(
                "Discovery batch completed",
                processed=result.processed,
                succeeded=result.succeeded,
                failed=result.failed,
                skipped=result.skipped,
            )
        return result

    async def ingest_by_external_id(
        self, source: str, external_id: str
    ) -> UUID | None:
        """Fetch one record by its source identifier and persist it.

        Returns:
            The ingredient id, or None if the source has no such record.

        Raises:
            UnknownSourceError: If no adapter is configured for ``source``.
        """
        adapter = self._adapters_by_name.get(source)
        if adapter is None:
            raise UnknownSourceError(source)

        job_type = EtlJobType.EXTERNAL_INGEST.value
        job = await self._jobs.start(
            job_type, {"source": source, "external_id": external_id}
        )

        with log_context(job_id=str(job.job_id), job_type=job_type):
            try:
                raw = await asyncio.wait_for(
                    adapter.fetch_by_id(external_id), timeout=self._source_timeout
                )
                ingredient_id = None
                if raw is not None:
                    ingredient_id = await self._store(adapter.normalize(raw))
            except Exception as e:
                logger.exception(
                    "External ingest failed", source=source, external_id=external_id
                )
                await self._jobs.fail(
                    job.job_id, error_payload(e), processed=1, failed=1
                )
                record(ETL_JOBS, job_type=job_type, status=EtlJobStatus.FAILED.value)
                raise

            found = ingredient_id is not None
            await self._jobs.complete(
                job.job_id,
                processed=1,
                succeeded=int(found),
                failed=int(not found),
                metadata={
                    "found": found,
                    "ingredient_id": str(ingredient_id) if found else None,
                },
            )
            record(ETL_JOBS, job_type=job_type, status=EtlJobStatus.COMPLETED.value)

        return ingredient_id

    async def _process_item(
        self, item: DiscoveryItem, result: BatchResult
    ) -> ItemOutcome:
        claimed = await self._queue.claim(item.item_id)
        if claimed is None:
            logger.debug("Item already claimed", item_id=str(item.item_id))
            return ItemOutcome.SKIPPED

        name = claimed.ingredient_name
        with log_context(item_id=str(claimed.item_id), ingredient=name):
            try:
                food, adapter_name, errors = await self._search_sources(name)
                if food is None:
                    logger.info("No source returned a result", errors=errors)
                    await self._queue.mark_failed(
                        claimed.item_id,
                        {"errors": errors, "reason": "no_source_result"},
                    )
                    return ItemOutcome.FAILED

                ingredient_id = await self._store(food)
            except (SourceError, PersistenceConflictError) as e:
                logger.warning("Discovery item failed", error=str(e))
                await self._queue.mark_failed(
                    claimed.item_id, {"errors": {"processing": str(e)}}
                )
                return ItemOutcome.FAILED
            except Exception as e:
                logger.exception("Discovery item failed unexpectedly")
                await self._queue.mark_failed(
                    claimed.item_id,
                    {"errors": {"processing": str(e)}, "exception": error_payload(e)},
                )
                return ItemOutcome.FAILED

            await self._queue.mark_completed(
                claimed.item_id,
                {
                    "source": adapter_name,
                    "external_id": food.external_id,
                    "ingredient_id": str(ingredient_id),
                },
            )
            result.ingredient_ids.append(ingredient_id)
            logger.info(
                "Ingredient discovered",
                source=adapter_name,
                ingredient_id=str(ingredient_id),
            )
            return ItemOutcome.SUCCEEDED

    async def _search_sources(
        self, name: str
    ) -> tuple[NormalizedFood | None, str | None, dict[str, str]]:
        """Try each adapter in order until one yields a usable record.

        Returns:
            (normalized food, adapter name, per-adapter errors). The food
            and adapter name are None when every adapter came up empty.
        """
        errors: dict[str, str] = {}
        for adapter in self._adapters:
            try:
                results = await asyncio.wait_for(
                    adapter.search_by_name(name, self._search_limit),
                    timeout=self._source_timeout,
                )
                if not results:
                    errors[adapter.name] = "no results"
                    continue
                food = self._first_usable(adapter, results)
                if food is None:
                    errors[adapter.name] = "no usable results"
                    continue
                return food, adapter.name, errors
            except TimeoutError:
                logger.warning("Source search timed out", source=adapter.name)
                errors[adapter.name] = f"timed out after {self._source_timeout}s"
            except SourceError as e:
                logger.warning(
                    "Source search failed", source=adapter.name, error=str(e)
                )
                errors[adapter.name] = str(e)
        return None, None, errors

    def _first_usable(
        self, adapter: SourceAdapter, results: list[dict[str, Any]]
    ) -> NormalizedFood | None:
        """Normalize the first result that parses, in ranking order."""
        for raw in results:
            try:
                return adapter.normalize(raw)
            except SourceParseError as e:
                logger.debug(
                    "Skipping unparseable result", source=adapter.name, error=str(e)
                )
        return None

    async def _store(self, food: NormalizedFood) -> UUID:
        """Persist a record, reusing an existing matching ingredient."""
        existing = await self._ingredients.find_existing(
            food.source, food.external_id, food.barcode, food.name
        )
        if existing is not None:
            logger.debug(
                "Reusing existing ingredient",
                ingredient_id=str(existing.ingredient_id),
            )
            return existing.ingredient_id

        try:
            return await self._ingredients.create_with_nutrition(food)
        except PersistenceConflictError:
            existing = await self._ingredients.find_existing(
                food.source, food.external_id, food.barcode, food.name
            )
            if existing is None:
                raise
            return existing.ingredient_id
