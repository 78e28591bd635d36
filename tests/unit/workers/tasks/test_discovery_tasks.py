"""Unit tests for discovery background tasks."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from nutrition_engine.services.discovery.runner import BatchResult
from nutrition_engine.workers.tasks import (
    ingest_external_record,
    process_discovery_queue,
)


pytestmark = pytest.mark.unit


@pytest.fixture
def engine() -> MagicMock:
    engine = MagicMock()
    engine.process_discovery_queue = AsyncMock()
    engine.ingest_by_external_id = AsyncMock()
    return engine


class TestProcessDiscoveryQueue:
    """Tests for the process_discovery_queue task."""

    async def test_returns_batch_counts(self, engine) -> None:
        """Should run a batch and return its counts."""
        job_id = uuid4()
        ingredient_id = uuid4()
        engine.process_discovery_queue.return_value = BatchResult(
            job_id=job_id,
            processed=2,
            succeeded=1,
            failed=1,
            ingredient_ids=[ingredient_id],
        )

        result = await process_discovery_queue({"engine": engine}, batch_size=10)

        engine.process_discovery_queue.assert_awaited_once_with(10)
        assert result["status"] == "completed"
        assert result["job_id"] == str(job_id)
        assert result["processed"] == 2
        assert result["ingredient_ids"] == [str(ingredient_id)]

    async def test_requires_engine(self) -> None:
        """Should fail clearly when the startup hook did not run."""
        with pytest.raises(RuntimeError, match="no engine"):
            await process_discovery_queue({})


class TestIngestExternalRecord:
    """Tests for the ingest_external_record task."""

    async def test_completed(self, engine) -> None:
        """Should return the stored ingredient id."""
        ingredient_id = uuid4()
        engine.ingest_by_external_id.return_value = ingredient_id

        result = await ingest_external_record({"engine": engine}, "usda_fdc", "1")

        engine.ingest_by_external_id.assert_awaited_once_with("usda_fdc", "1")
        assert result["status"] == "completed"
        assert result["ingredient_id"] == str(ingredient_id)

    async def test_not_found(self, engine) -> None:
        """Should report records the source does not have."""
        engine.ingest_by_external_id.return_value = None

        result = await ingest_external_record({"engine": engine}, "usda_fdc", "0")

        assert result["status"] == "not_found"
        assert "ingredient_id" not in result
