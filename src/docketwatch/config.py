from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_REMINDER_DAYS = (45, 50, 55, 58, 60)


class Settings(BaseSettings):
    """Application configuration loaded from environment/.env."""

    environment: str = Field(default="dev")
    database_url: str = Field(default="sqlite:///data/docketwatch.db")
    case_store: str = Field(default="sql")
    rest_base_url: str = Field(default="http://localhost:54321/rest/v1")
    rest_api_key: str | None = Field(default=None)
    rest_timeout: float = Field(default=30.0)
    rest_max_retries: int = Field(default=4)
    rest_backoff_seconds: float = Field(default=0.5)
    rest_max_backoff_seconds: float = Field(default=8.0)
    user_agent: str = Field(default="docketwatch/0.1")
    fixture_path: Path = Field(default=Path("data/fixtures/dockets.json"))
    investigation_case_type: str = Field(default="Legal Investigation")
    reminder_days: list[int] = Field(default_factory=lambda: list(DEFAULT_REMINDER_DAYS))
    overdue_interval_days: int = Field(default=30, gt=0)
    urgent_window_days: int = Field(default=5, ge=0)
    cron_secret: str | None = Field(default=None)
    require_cron_secret: bool = Field(default=False)
    run_time_budget_seconds: float | None = Field(default=60.0)
    dedupe_reminders: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="DOCKETWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("reminder_days")
    @classmethod
    def _check_reminder_days(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("reminder_days must contain at least one day")
        if any(day <= 0 for day in value):
            raise ValueError("reminder_days must be positive")
        return sorted(set(value))

    @field_validator("case_store")
    @classmethod
    def _check_case_store(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"sql", "rest"}:
            raise ValueError("case_store must be 'sql' or 'rest'")
        return normalized


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
