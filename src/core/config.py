"""Application configuration via Pydantic settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration object loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Workshop Planner API"
    debug: bool = False
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(..., alias="DATABASE_URL")
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    jwt_expires_in_minutes: int = Field(60 * 24, alias="JWT_EXPIRES_IN")
    jwt_audience: str | None = Field(None, alias="JWT_AUDIENCE")

    default_timezone: str = Field("Europe/Berlin", alias="DEFAULT_TIMEZONE")
    working_hours_start: int = Field(7, ge=0, le=23, alias="WORKING_HOURS_START")
    working_hours_end: int = Field(18, ge=1, le=24, alias="WORKING_HOURS_END")
    default_aw_capacity: int = Field(80, ge=0, alias="DEFAULT_AW_CAPACITY")
    schedule_grid_minutes: int = Field(15, gt=0, le=60, alias="SCHEDULE_GRID_MINUTES")

    notification_checks_enabled: bool = Field(True, alias="NOTIFICATION_CHECKS_ENABLED")
    reminder_interval_minutes: int = Field(15, gt=0, alias="REMINDER_INTERVAL_MINUTES")
    reminder_lookahead_minutes: int = Field(30, gt=0, alias="REMINDER_LOOKAHEAD_MINUTES")
    overdue_interval_minutes: int = Field(60, gt=0, alias="OVERDUE_INTERVAL_MINUTES")
    overdue_grace_minutes: int = Field(60, ge=0, alias="OVERDUE_GRACE_MINUTES")

    push_webhook_url: str | None = Field(None, alias="PUSH_WEBHOOK_URL")
    push_timeout_seconds: float = Field(5.0, alias="PUSH_TIMEOUT_SECONDS")


@lru_cache(1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings = get_settings()
