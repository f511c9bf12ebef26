"""Environment-driven settings for rebecca.

``RebeccaSettings`` reads ``REBECCA_*`` environment variables (and a ``.env``
file) so an application can pick its driver and logging without code changes.
The PostgreSQL fields keep the historical ``REBECCA_PG_*`` variable names.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked when settings are built
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** The in-memory driver works out of the box

Examples:
    >>> from rebecca.settings import RebeccaSettings
    >>> RebeccaSettings(driver="sqlite", sqlite_path="app.db").driver
    'sqlite'

Tags:
    settings, configuration, pydantic, environment, rebecca

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RebeccaSettings(BaseSettings):
    """Settings for driver bootstrap and logging.

    Fields
    ──────
    log_level          : Structlog log level
    json_logs          : JSON output (None = auto, JSON when not a tty)
    driver             : "memory" or a name in the adapter registry
    sqlite_path        : Database file for the sqlite driver
    snapshot_id_stride : ID headroom reserved per in-memory transaction
    pg_*               : PostgreSQL connection parameters
    """

    model_config = SettingsConfigDict(
        env_prefix="REBECCA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Driver ───────────────────────────────────────────────────
    driver: str = Field(default="memory", min_length=1)
    sqlite_path: str = ":memory:"
    snapshot_id_stride: int = Field(default=1000, gt=0)

    # ── PostgreSQL ───────────────────────────────────────────────
    pg_url: str = ""
    pg_user: str = "postgres"
    pg_pass: str = ""
    pg_host: str = "127.0.0.1"
    pg_port: int = 5432
    pg_database: str = "postgres"
    pg_sslmode: str = "disable"

    @field_validator("driver")
    @classmethod
    def normalise_driver(cls, value: str) -> str:
        return value.strip().lower()

    def postgres_url(self) -> str:
        """``pg_url`` when set, otherwise a URL composed from the ``pg_*`` fields."""
        if self.pg_url:
            return self.pg_url
        return (
            f"postgres://{self.pg_user}:{self.pg_pass}@{self.pg_host}:{self.pg_port}"
            f"/{self.pg_database}?sslmode={self.pg_sslmode}"
        )


__all__ = [
    "RebeccaSettings",
]
