"""Centralized settings management for History Sync."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import make_url


class Settings(BaseSettings):
    """
    Application settings powered by pydantic-settings.

    Loads configuration from environment variables and a .env file located
    at the project root.
    """

    # -------------------------------------------------------------------------
    # ENVIRONMENT
    # -------------------------------------------------------------------------
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # -------------------------------------------------------------------------
    # STORAGE
    # -------------------------------------------------------------------------
    # When set, the API persists events to PostgreSQL instead of memory.
    DATABASE_URL: str | None = None
    EVENTS_TABLE: str = "activity_events"

    # -------------------------------------------------------------------------
    # PATHS
    # -------------------------------------------------------------------------
    BASE_DIR: Path = Path(__file__).resolve().parents[2]
    EVENTS_FILE: Path = BASE_DIR / "data" / "events.jsonl"

    # -------------------------------------------------------------------------
    # INGESTION
    # -------------------------------------------------------------------------
    MAX_UPLOAD_BYTES: int = Field(default=50 * 1024 * 1024, gt=0)
    JOB_WORKERS: int = Field(default=2, ge=1)

    # -------------------------------------------------------------------------
    # AGGREGATION
    # -------------------------------------------------------------------------
    DEFAULT_WINDOW_DAYS: int = Field(default=30, ge=1)
    LOCAL_TIMEZONE: str = "UTC"

    # -------------------------------------------------------------------------
    # GITHUB SYNC
    # -------------------------------------------------------------------------
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TOKEN: SecretStr | None = None
    GITHUB_TIMEOUT_SECONDS: float = 15.0

    # -------------------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("LOCAL_TIMEZONE")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        """Zone used to read naive timestamps and to bucket the heatmap."""
        return ZoneInfo(self.LOCAL_TIMEZONE)

    def get_psycopg2_params(self) -> dict:
        """
        Parse DATABASE_URL into psycopg2-compatible connection parameters.

        Returns
        -------
        dict
            psycopg2 connection arguments (host, port, dbname, user, password).

        Raises
        ------
        RuntimeError
            If DATABASE_URL is not configured.
        """
        if not self.DATABASE_URL:
            raise RuntimeError("DATABASE_URL is not set.")
        url = make_url(self.DATABASE_URL)
        return {
            "host": url.host,
            "port": url.port,
            "dbname": url.database,
            "user": url.username,
            "password": url.password,
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns
    -------
    Settings
        The process-wide settings instance.
    """
    return Settings()
