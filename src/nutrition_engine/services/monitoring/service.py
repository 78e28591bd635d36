"""ETL job and data quality monitoring.

Job statistics are read straight from the ``etl_jobs`` audit table. The
ingredient quality score is the mean of four parts, each in [0, 1]:

- completeness: share of essential nutrients that are reported
- consistency: energy agrees with the Atwater estimate from macros, and no
  macro exceeds 100 g per 100 g
- freshness: full score under 30 days, decaying linearly to 0.1 at a year
- reliability: a fixed score per source

System health rolls the stored quality scores and the last day of jobs into
one graded score, with alerts for the factors that fall below target.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

from nutrition_engine.database.repositories.etl_jobs import EtlJobRepository
from nutrition_engine.database.repositories.ingredients import IngredientRepository
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.observability.metrics import HEALTH_ALERTS, record
from nutrition_engine.schemas.enums import EtlJobStatus, HealthAlert
from nutrition_engine.schemas.monitoring import (
    DataQualityReport,
    FailedJobSummary,
    HealthFactors,
    JobStatistics,
    JobStatusCount,
    JobSuccessRate,
    QualityBucket,
    QualityScore,
    SystemHealth,
)
from nutrition_engine.services.monitoring.constants import (
    ATWATER_FACTORS,
    DEFAULT_FAILED_JOBS_LIMIT,
    DEFAULT_SOURCE_RELIABILITY,
    ENERGY_MISMATCH_PENALTY,
    ENERGY_TOLERANCE,
    ESSENTIAL_NUTRIENTS,
    FAILING_GRADE,
    FAILURE_STABILITY_COST,
    FRESH_DAYS,
    HEALTH_ALERT_MESSAGES,
    HEALTH_GRADES,
    IMPOSSIBLE_VALUE_PENALTY,
    MAX_COUNTED_FAILURES,
    MAX_GRAMS_PER_100G,
    MAX_RECENT_FAILURES,
    MIN_DATA_QUALITY,
    MIN_ETL_RELIABILITY,
    MIN_STABILITY,
    NO_JOBS_RELIABILITY,
    RECENT_WINDOW,
    SCORE_QUANTUM,
    SOURCE_RELIABILITY,
    STALE_DAYS,
    STABILITY_FLOOR,
    STALE_SCORE,
    SUCCESS_RATE_WINDOW,
    TIMEFRAMES,
    UNKNOWN_FRESHNESS_SCORE,
)
from nutrition_engine.services.nutrition.exceptions import IngredientNotFoundError


if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from nutrition_engine.schemas.nutrition import NutrientValues


logger = get_logger(__name__)

_ONE = Decimal("1")
_ZERO = Decimal("0")


def completeness_score(nutrients: NutrientValues | None) -> Decimal:
    if nutrients is None:
        return _ZERO
    present = nutrients.present()
    reported = sum(1 for name in ESSENTIAL_NUTRIENTS if name in present)
    return Decimal(reported) / Decimal(len(ESSENTIAL_NUTRIENTS))


def consistency_score(nutrients: NutrientValues | None) -> tuple[Decimal, list[str]]:
    """Score internal consistency and list the issues found."""
    if nutrients is None:
        return _ZERO, ["no_nutrition_data"]

    score = _ONE
    issues: list[str] = []
    values = nutrients.present()

    calories = values.get("calories")
    if calories and all(name in values for name in ATWATER_FACTORS):
        estimated = sum(
            values[name] * factor for name, factor in ATWATER_FACTORS.items()
        )
        if abs(calories - estimated) / calories > ENERGY_TOLERANCE:
            score -= ENERGY_MISMATCH_PENALTY
            issues.append("calories_macros_mismatch")

    for name in ("protein", "total_fat"):
        value = values.get(name)
        if value is not None and value > MAX_GRAMS_PER_100G:
            score -= IMPOSSIBLE_VALUE_PENALTY
            issues.append(f"{name}_over_100g")

    return max(_ZERO, score), issues


def freshness_score(last_updated: datetime | None, now: datetime) -> Decimal:
    if last_updated is None:
        return UNKNOWN_FRESHNESS_SCORE

    age_days = Decimal(str((now - last_updated).total_seconds() / 86400))
    if age_days < FRESH_DAYS:
        return _ONE
    if age_days > STALE_DAYS:
        return STALE_SCORE
    decay = (age_days - FRESH_DAYS) / Decimal(STALE_DAYS - FRESH_DAYS)
    return _ONE - decay * (_ONE - STALE_SCORE)


def reliability_score(source: str) -> Decimal:
    return SOURCE_RELIABILITY.get(source, DEFAULT_SOURCE_RELIABILITY)


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(SCORE_QUANTUM, rounding=ROUND_HALF_UP)


def _success_rates(rows: list[dict[str, Any]]) -> list[JobSuccessRate]:
    totals: dict[str, list[int]] = {}
    for row in rows:
        counts = totals.setdefault(row["job_type"], [0, 0])
        counts[0] += row["jobs"]
        if row["status"] == EtlJobStatus.COMPLETED.value:
            counts[1] += row["jobs"]

    return [
        JobSuccessRate(
            job_type=job_type,
            total=total,
            successful=successful,
            success_rate=_quantize(Decimal(successful) / Decimal(total)),
        )
        for job_type, (total, successful) in totals.items()
        if total
    ]


def etl_reliability(rates: list[JobSuccessRate]) -> Decimal:
    """Mean success rate across job types."""
    if not rates:
        return NO_JOBS_RELIABILITY
    return _quantize(sum(r.success_rate for r in rates) / Decimal(len(rates)))


def stability_score(failures: int) -> Decimal:
    if failures > MAX_COUNTED_FAILURES:
        return STABILITY_FLOOR
    return _ONE - FAILURE_STABILITY_COST * failures


def health_grade(score: Decimal) -> str:
    for threshold, grade in HEALTH_GRADES:
        if score >= threshold:
            return grade
    return FAILING_GRADE


def health_alerts(factors: HealthFactors, failures: int) -> list[HealthAlert]:
    alerts: list[HealthAlert] = []
    if factors.data_quality < MIN_DATA_QUALITY:
        alerts.append(HealthAlert.LOW_DATA_QUALITY)
    if factors.etl_reliability < MIN_ETL_RELIABILITY:
        alerts.append(HealthAlert.HIGH_JOB_FAILURE_RATE)
    if failures > MAX_RECENT_FAILURES:
        alerts.append(HealthAlert.REPEATED_JOB_FAILURES)
    if factors.stability < MIN_STABILITY:
        alerts.append(HealthAlert.LOW_STABILITY)
    return alerts


class EtlMonitor:
    """Reports on ETL job health and scores ingredient data quality."""

    def __init__(
        self,
        job_repository: EtlJobRepository | None = None,
        ingredient_repository: IngredientRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._jobs = job_repository or EtlJobRepository()
        self._ingredients = ingredient_repository or IngredientRepository()
        self._clock = clock or (lambda: datetime.now(UTC))

    async def get_job_statistics(self, timeframe: str = "day") -> JobStatistics:
        """Count jobs by type and status for the last hour, day or week.

        Raises:
            ValueError: If ``timeframe`` is not one of hour, day or week.
        """
        window = TIMEFRAMES.get(timeframe)
        if window is None:
            msg = f"Unknown timeframe {timeframe!r}"
            raise ValueError(msg)

        since = self._clock() - window
        rows = await self._jobs.get_counts_since(since)
        return JobStatistics(
            timeframe=timeframe,
            since=since,
            statistics=[JobStatusCount(**row) for row in rows],
        )

    async def get_failed_jobs(
        self, limit: int = DEFAULT_FAILED_JOBS_LIMIT
    ) -> list[FailedJobSummary]:
        jobs = await self._jobs.get_failed(limit)
        return [
            FailedJobSummary(
                job_id=job.job_id,
                job_type=job.job_type,
                started_at=job.started_at,
                error=job.error_log,
                metadata=job.metadata,
            )
            for job in jobs
        ]

    async def get_success_rates(self) -> list[JobSuccessRate]:
        """Share of completed jobs per job type over the last 24 hours.

        Jobs still running count towards the total but not as successes.
        """
        rows = await self._jobs.get_counts_since(self._clock() - SUCCESS_RATE_WINDOW)
        return _success_rates(rows)

    async def evaluate_ingredient_quality(self, ingredient_id: UUID) -> QualityScore:
        """Score an ingredient and store the result as its data quality.

        Raises:
            IngredientNotFoundError: If the ingredient does not exist.
        """
        ingredient = await self._ingredients.get_by_id(ingredient_id)
        if ingredient is None:
            msg = f"Ingredient {ingredient_id} not found"
            raise IngredientNotFoundError(msg, ingredient_id=ingredient_id)

        fact = await self._ingredients.get_nutrition_fact(ingredient_id)
        nutrients = fact.nutrients if fact is not None else None

        completeness = completeness_score(nutrients)
        consistency, issues = consistency_score(nutrients)
        freshness = freshness_score(ingredient.last_updated, self._clock())
        reliability = reliability_score(ingredient.source)

        parts = (completeness, consistency, freshness, reliability)
        overall = (sum(parts) / Decimal(len(parts))).quantize(
            SCORE_QUANTUM, rounding=ROUND_HALF_UP
        )

        await self._ingredients.update_data_quality(ingredient_id, overall)
        if issues:
            logger.info(
                "Ingredient data quality issues",
                ingredient_id=str(ingredient_id),
                issues=issues,
            )

        return QualityScore(
            ingredient_id=ingredient_id,
            completeness=completeness.quantize(SCORE_QUANTUM, rounding=ROUND_HALF_UP),
            consistency=consistency,
            freshness=freshness.quantize(SCORE_QUANTUM, rounding=ROUND_HALF_UP),
            reliability=reliability,
            overall=overall,
            issues=issues,
        )

    async def generate_data_quality_report(self) -> DataQualityReport:
        """Summarize the data quality scores stored on ingredients."""
        now = self._clock()
        summary = await self._ingredients.get_quality_summary(now - RECENT_WINDOW)
        average = summary["average"]
        recent = summary["recent_average"]
        return DataQualityReport(
            average_score=_quantize(average) if average is not None else None,
            recent_average_score=_quantize(recent) if recent is not None else None,
            total_ingredients=summary["total"],
            distribution=[QualityBucket(**row) for row in summary["distribution"]],
            generated_at=now,
        )

    async def get_system_health(self) -> SystemHealth:
        """Score overall pipeline health from data quality and recent jobs.

        The score is the mean of three factors in [0, 1]: the average stored
        data quality, the mean job success rate over the last day, and a
        stability factor that drops 0.05 per failed job in that day (0.5
        once more than ten failed).
        """
        now = self._clock()
        report = await self.generate_data_quality_report()
        rows = await self._jobs.get_counts_since(now - RECENT_WINDOW)

        rates = _success_rates(rows)
        failures = sum(
            row["jobs"] for row in rows if row["status"] == EtlJobStatus.FAILED.value
        )
        factors = HealthFactors(
            data_quality=report.average_score or _ZERO,
            etl_reliability=etl_reliability(rates),
            stability=stability_score(failures),
        )
        overall = _quantize(
            (factors.data_quality + factors.etl_reliability + factors.stability)
            / Decimal(3)
        )

        return SystemHealth(
            overall=overall,
            grade=health_grade(overall),
            factors=factors,
            success_rates=rates,
            recent_failures=failures,
            data_quality=report,
            alerts=health_alerts(factors, failures),
            checked_at=now,
        )

    async def check_health_alerts(self) -> SystemHealth:
        """Evaluate system health and raise any alerts it reports.

        Alerts are written to the log at warning level and counted in the
        ``nutrition_health_alerts_total`` metric.
        """
        health = await self.get_system_health()
        for alert in health.alerts:
            record(HEALTH_ALERTS, alert=alert.value)
            logger.warning(
                HEALTH_ALERT_MESSAGES[alert],
                alert=alert.value,
                overall=str(health.overall),
                grade=health.grade,
            )

        if not health.alerts:
            logger.info(
                "System health check passed",
                overall=str(health.overall),
                grade=health.grade,
            )
        return health
