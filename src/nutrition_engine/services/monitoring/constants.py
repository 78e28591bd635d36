"""Constants for ETL and data quality monitoring."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Final

from nutrition_engine.schemas.enums import HealthAlert


# =============================================================================
# Job statistics
# =============================================================================
TIMEFRAMES: Final[dict[str, timedelta]] = {
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
}
SUCCESS_RATE_WINDOW: Final[timedelta] = timedelta(days=1)
DEFAULT_FAILED_JOBS_LIMIT: Final[int] = 10

# =============================================================================
# Data quality
# =============================================================================
ESSENTIAL_NUTRIENTS: Final[tuple[str, ...]] = (
    "calories",
    "protein",
    "total_fat",
    "carbohydrates",
    "fiber",
    "sugar",
    "sodium",
)

# kcal per gram of protein, fat and carbohydrate
ATWATER_FACTORS: Final[dict[str, Decimal]] = {
    "protein": Decimal("4"),
    "total_fat": Decimal("9"),
    "carbohydrates": Decimal("4"),
}
ENERGY_TOLERANCE: Final[Decimal] = Decimal("0.2")
ENERGY_MISMATCH_PENALTY: Final[Decimal] = Decimal("0.3")
MAX_GRAMS_PER_100G: Final[Decimal] = Decimal("100")
IMPOSSIBLE_VALUE_PENALTY: Final[Decimal] = Decimal("0.2")

FRESH_DAYS: Final[int] = 30
STALE_DAYS: Final[int] = 365
STALE_SCORE: Final[Decimal] = Decimal("0.1")
UNKNOWN_FRESHNESS_SCORE: Final[Decimal] = Decimal("0.5")

SOURCE_RELIABILITY: Final[dict[str, Decimal]] = {
    "usda_fdc": Decimal("0.95"),
    "open_food_facts": Decimal("0.80"),
}
DEFAULT_SOURCE_RELIABILITY: Final[Decimal] = Decimal("0.50")

SCORE_QUANTUM: Final[Decimal] = Decimal("0.0001")

# =============================================================================
# System health
# =============================================================================
RECENT_WINDOW: Final[timedelta] = timedelta(days=1)

# Reliability assumed when no job ran in the window
NO_JOBS_RELIABILITY: Final[Decimal] = Decimal("0.5")

# Each failed job in the window costs this much stability, down to the floor
FAILURE_STABILITY_COST: Final[Decimal] = Decimal("0.05")
MAX_COUNTED_FAILURES: Final[int] = 10
STABILITY_FLOOR: Final[Decimal] = Decimal("0.5")

# Lowest score for each grade, best first; anything lower is an F
HEALTH_GRADES: Final[tuple[tuple[Decimal, str], ...]] = (
    (Decimal("0.9"), "A"),
    (Decimal("0.8"), "B"),
    (Decimal("0.7"), "C"),
    (Decimal("0.6"), "D"),
)
FAILING_GRADE: Final[str] = "F"

MIN_DATA_QUALITY: Final[Decimal] = Decimal("0.7")
MIN_ETL_RELIABILITY: Final[Decimal] = Decimal("0.8")
MAX_RECENT_FAILURES: Final[int] = 5
MIN_STABILITY: Final[Decimal] = Decimal("0.9")

HEALTH_ALERT_MESSAGES: Final[dict[HealthAlert, str]] = {
    HealthAlert.LOW_DATA_QUALITY: "Data quality below acceptable threshold",
    HealthAlert.HIGH_JOB_FAILURE_RATE: "ETL job failure rate is high",
    HealthAlert.REPEATED_JOB_FAILURES: "Multiple recent job failures detected",
    HealthAlert.LOW_STABILITY: "Pipeline stability is below target",
}
