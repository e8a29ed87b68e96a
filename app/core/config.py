from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CUSTOMER_SERVICE_URL = "http://localhost:8081"


def _normalize_time_of_day(value: Any) -> str:
    """Accept "H:MM"/"HH:MM" strings and return a zero-padded "HH:MM"."""
    raw = str(value or "").strip()
    try:
        hour_str, minute_str = raw.split(":", 1)
        hour, minute = int(hour_str), int(minute_str)
    except ValueError as exc:
        raise ValueError("EOD_SNAPSHOT_TIME must be formatted as HH:MM") from exc

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError("EOD_SNAPSHOT_TIME must be a valid time of day")

    return f"{hour:02d}:{minute:02d}"


class Settings(BaseSettings):
    """Application settings."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./accounts.db"

    # Application
    ENV: str = "development"
    APP_NAME: str = "Account Service"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Customer directory
    CUSTOMER_SERVICE_URL: str = DEFAULT_CUSTOMER_SERVICE_URL
    CUSTOMER_SERVICE_TIMEOUT_SECONDS: float = 5.0

    # Fault tolerance
    FAULT_TIMEOUT_SECONDS: float = 1.0
    CIRCUIT_WINDOW_SECONDS: float = 60.0
    CIRCUIT_MIN_CALLS: int = 10
    CIRCUIT_FAILURE_RATIO: float = 0.5
    CIRCUIT_DELAY_SECONDS: float = 5.0
    CIRCUIT_SUCCESS_THRESHOLD: int = 1

    # Account creation
    ACCOUNT_NUMBER_MAX_ATTEMPTS: int = 5

    # End-of-day snapshots
    EOD_SNAPSHOT_ENABLED: bool = True
    EOD_SNAPSHOT_TIME: str = "22:00"

    # Pydantic v2 compatible settings: read .env and ignore extra env vars
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("EOD_SNAPSHOT_TIME", mode="before")
    @classmethod
    def parse_snapshot_time(cls, value: Any) -> str:
        return _normalize_time_of_day(value)

    @field_validator("CUSTOMER_SERVICE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


def _validate_security() -> None:
    """Fail fast when running production with development defaults."""
    env = settings.ENV.lower()
    if env != "production":
        return

    if settings.DATABASE_URL.startswith("sqlite"):
        raise ValueError("Use PostgreSQL in production; sqlite is only for local/dev.")

    if settings.CUSTOMER_SERVICE_URL == DEFAULT_CUSTOMER_SERVICE_URL:
        raise ValueError("CUSTOMER_SERVICE_URL must be configured explicitly in production.")


settings = Settings()


_validate_security()
