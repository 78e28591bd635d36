"""Unit tests for the health check background task."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from nutrition_engine.schemas.enums import HealthAlert
from nutrition_engine.schemas.monitoring import (
    DataQualityReport,
    HealthFactors,
    SystemHealth,
)
from nutrition_engine.workers.tasks import check_system_health


pytestmark = pytest.mark.unit

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


class TestCheckSystemHealth:
    """Tests for the check_system_health task."""

    async def test_returns_grade_and_alerts(self) -> None:
        """Should run the alert check and summarise its result."""
        engine = MagicMock()
        engine.check_health_alerts = AsyncMock(
            return_value=SystemHealth(
                overall=Decimal("0.6500"),
                grade="D",
                factors=HealthFactors(
                    data_quality=Decimal("0.65"),
                    etl_reliability=Decimal("0.5"),
                    stability=Decimal("0.8"),
                ),
                success_rates=[],
                recent_failures=4,
                data_quality=DataQualityReport(generated_at=NOW),
                alerts=[HealthAlert.LOW_DATA_QUALITY, HealthAlert.LOW_STABILITY],
                checked_at=NOW,
            )
        )

        result = await check_system_health({"engine": engine})

        engine.check_health_alerts.assert_awaited_once()
        assert result == {
            "status": "completed",
            "overall": "0.6500",
            "grade": "D",
            "alerts": ["low_data_quality", "low_stability"],
        }

    async def test_requires_engine(self) -> None:
        """Should fail clearly when the startup hook did not run."""
        with pytest.raises(RuntimeError, match="no engine"):
            await check_system_health({})
