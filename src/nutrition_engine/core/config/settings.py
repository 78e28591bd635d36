"""Engine configuration using Pydantic Settings with YAML support.

Configuration is organized by domain in ``config/base/*.yaml`` with
environment-specific overrides in ``config/environments/{APP_ENV}/``.
Secrets (database and Redis passwords, the USDA API key) are read from
environment variables or ``.env`` only and never live in YAML.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_source import MultiYamlConfigSettingsSource


if TYPE_CHECKING:
    from pydantic_settings import PydanticBaseSettingsSource


# =============================================================================
# Nested Configuration Models (from YAML)
# =============================================================================


class AppSettings(BaseModel):
    """Application identity settings."""

    name: str = "Nutrition Engine"
    version: str = "0.1.0"
    debug: bool = False


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "json"
    file: str | None = None


class MetricsSettings(BaseModel):
    """Metrics configuration settings."""
    enabled: bool = True
    port: int = 9108  # Worker-side scrape endpoint
    enabled: bool = True


class ObservabilitySettings(BaseModel):
    """Observability configuration settings."""

    metrics: MetricsSettings = MetricsSettings()


class DatabaseSettings(BaseModel):
    """PostgreSQL database configuration settings."""

    host: str = "localhost"
    port: int = 5432
    name: str = "nutrition_database"
    db_schema: str = "nutrition"  # PostgreSQL schema holding all engine tables
    user: str | None = None
    min_pool_size: int = 2
    max_pool_size: int = 10
    command_timeout: float = 30.0
    ssl: bool = False


class RedisSettings(BaseModel):
    """Redis configuration settings."""

    host: str = "localhost"
    port: int = 6379
    user: str | None = None  # Redis ACL username (Redis 6.0+)
    cache_db: int = 0
    queue_db: int = 1


class ConversionSettings(BaseModel):
    """In-process conversion and density cache settings."""

    cache_max_items: int = 2048


class DiscoverySettings(BaseModel):
    """Discovery queue and ETL runner settings."""

    batch_size: int = 50
    default_priority: int = 5
    search_limit: int = 5
    source_timeout: float = 15.0  # Upper bound on a single adapter call
    source_order: list[str] = ["usda_fdc", "open_food_facts"]


class SourceSettings(BaseModel):
    """Settings shared by all external food-data sources."""

    enabled: bool = True
    base_url: str
    timeout: float = 10.0
    max_retries: int = 2
    cache_ttl: int = 7 * 24 * 60 * 60  # 7 days
    user_agent: str = "NutritionEngine/0.1"
    data_types: list[str] = []


class SourcesSettings(BaseModel):
    """External source configuration."""

    usda: SourceSettings = SourceSettings(
        base_url="https://api.nal.usda.gov/fdc/v1",
        data_types=["Foundation", "SR Legacy", "Survey (FNDDS)"],
    )
    open_food_facts: SourceSettings = SourceSettings(
        base_url="https://world.openfoodfacts.org",
    )


class ArqJobIdsSettings(BaseModel):
    """Fixed job IDs used to deduplicate ARQ jobs."""

    discovery_batch: str = "nutrition_discovery_batch"
    health_check: str = "nutrition_health_check"


class ArqSettings(BaseModel):
    """ARQ background worker configuration."""

    job_ids: ArqJobIdsSettings = ArqJobIdsSettings()
    queue_name: str = "nutrition:queue:jobs"
    health_check_key: str = "nutrition:queue:health-check"
    discovery_cron_minute: int = Field(default=0, ge=0, le=59)
    health_check_cron_minute: int = Field(default=30, ge=0, le=59)


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """Engine settings with YAML + environment variable support.

    Priority (highest to lowest): environment variables, ``.env``,
    environment-specific YAML, base YAML, defaults in code. Nested values can
    be overridden with the ``__`` delimiter, e.g. ``DISCOVERY__BATCH_SIZE=10``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    APP_ENV: str = "development"

    app: AppSettings = AppSettings()
    logging: LoggingSettings = LoggingSettings()
    observability: ObservabilitySettings = ObservabilitySettings()
    database: DatabaseSettings = DatabaseSettings()
    redis: RedisSettings = RedisSettings()
    conversion: ConversionSettings = ConversionSettings()
    discovery: DiscoverySettings = DiscoverySettings()
    sources: SourcesSettings = SourcesSettings()
    arq: ArqSettings = ArqSettings()

    # =========================================================================
    # Secrets (from .env only - never in YAML)
    # =========================================================================
    DATABASE_PASSWORD: str = ""
    REDIS_PASSWORD: str = ""
    USDA_API_KEY: str = ""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Place the YAML source below environment variables and ``.env``."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            MultiYamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def _build_redis_url(self, db: int) -> str:
        """Build a Redis URL of the form ``redis://[user:password@]host:port/db``."""
        auth_part = ""
        if self.redis.user and self.REDIS_PASSWORD:
            auth_part = f"{self.redis.user}:{self.REDIS_PASSWORD}@"
        elif self.REDIS_PASSWORD:
            auth_part = f":{self.REDIS_PASSWORD}@"
        elif self.redis.user:
            auth_part = f"{self.redis.user}@"

        return f"redis://{auth_part}{self.redis.host}:{self.redis.port}/{db}"

    @property
    def redis_cache_url(self) -> str:
        """Redis URL for the adapter response cache."""
        return self._build_redis_url(self.redis.cache_db)

    @property
    def redis_queue_url(self) -> str:
        """Redis URL for the ARQ job queue."""
        return self._build_redis_url(self.redis.queue_db)

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in test environment."""
        return self.APP_ENV == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
