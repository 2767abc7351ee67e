import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using an absolute path for SQLite to avoid path resolution issues.

    SQLite is only meant for local development. Set DATABASE_URL to a
    PostgreSQL or MySQL connection string for a shared deployment.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "unit_calendar.db"
    db_url = f"sqlite:///{db_path.resolve()}"
    logger.warning(f"Using SQLite database (LOCAL DEV ONLY): {db_url}")
    return db_url


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    admin_user_ids: str = Field(default="", validation_alias="ADMIN_USER_IDS")  # Comma-separated list
    dev_user_id: str = Field(default="", validation_alias="DEV_USER_ID")
    calendar_timezone: str = Field(
        default="UTC",
        validation_alias="CALENDAR_TIMEZONE",
        description="IANA timezone used to read the wall clock for schedule comparisons",
    )
    recurring_horizon_weeks: int = Field(
        default=3,
        ge=1,
        validation_alias="RECURRING_HORIZON_WEEKS",
        description="Number of weeks ahead the recurring materializer looks",
    )
    recurring_default_max_personnel: int = Field(
        default=40,
        ge=1,
        validation_alias="RECURRING_DEFAULT_MAX_PERSONNEL",
    )
    event_duration_hours: int = Field(
        default=3,
        ge=1,
        validation_alias="EVENT_DURATION_HOURS",
        description="Assumed duration of a mission or training when deriving its status",
    )
    recurring_processing_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="RECURRING_PROCESSING_TIMEOUT_SECONDS",
    )
    recurring_scheduler_enabled: bool = Field(
        default=False,
        validation_alias="RECURRING_SCHEDULER_ENABLED",
        description="Run recurring training processing in the background",
    )
    recurring_scheduler_interval_hours: int = Field(
        default=24,
        ge=1,
        validation_alias="RECURRING_SCHEDULER_INTERVAL_HOURS",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("calendar_timezone")
    @classmethod
    def validate_calendar_timezone(cls, value: str) -> str:
        """Fall back to UTC when the configured timezone is unknown."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown CALENDAR_TIMEZONE '{value}'. Defaulting to UTC.")
            return "UTC"
        return value

    @property
    def admin_user_id_list(self) -> list[str]:
        return [uid.strip() for uid in self.admin_user_ids.split(",") if uid.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
