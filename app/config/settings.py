"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.models.enums import HarvestSalesSource


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (dramatiq broker)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Environment
    environment: str = "production"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: str | None = "logs/engine.log"

    # Compensation policy
    harvest_sales_source: HarvestSalesSource = Field(
        default=HarvestSalesSource.STAKES,
        description="Platform sales measure feeding the daily harvest pool",
    )
    incentive_cap_lock: bool = Field(
        default=False,
        description=(
            "Lock the recipient wallet row before clamping an incentive "
            "against the shared reward cap"
        ),
    )

    # Scheduler
    scheduler_timezone: str = "UTC"
    core_harvest_cron_hour: int = Field(default=0, ge=0, le=23)
    reward_credit_cron_hour: int = Field(default=0, ge=0, le=23)
    synergy_cron_hour: int = Field(default=0, ge=0, le=23)
    rank_promote_cron_hour: int = Field(default=0, ge=0, le=23)
    health_host: str = "0.0.0.0"
    health_port: int = Field(default=8081, gt=0, lt=65536)

    # Admin procedures
    backup_dir: str = "backups"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")
        ):
            raise ValueError(
                "DATABASE_URL must start with postgresql://, "
                "postgresql+asyncpg:// or sqlite+aiosqlite://"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver."""
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace(
                "postgresql://", "postgresql+asyncpg://", 1
            )
        return self.database_url

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured store is SQLite."""
        return self.database_url.startswith("sqlite")


# Global settings instance
settings = Settings()
