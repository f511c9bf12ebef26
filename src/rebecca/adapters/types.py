"""Database types and connection configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from rebecca.errors import ConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


@dataclass
class DatabaseConfig:
    """
    Configuration for a database connection.

    Different fields are used by different database types.
    """

    # Common
    db_type: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str | None = None

    # PostgreSQL
    dsn: str | None = None
    host: str = "127.0.0.1"
    port: int = 5432
    database: str = "postgres"
    username: str | None = None
    password: str | None = None
    ssl_mode: str = "disable"  # disable, prefer, require, verify-ca, verify-full

    # Options
    connect_timeout: int = 10
    readonly: bool = False

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    def to_connection_string(self) -> str:
        """Generate connection string for the database type."""
        match self.db_type:
            case DatabaseType.SQLITE:
                return self.path or ":memory:"
            case DatabaseType.POSTGRESQL:
                if self.dsn:
                    return self.dsn
                return (
                    f"postgres://{self.username or ''}:{self.password or ''}"
                    f"@{self.host}:{self.port}/{self.database}?sslmode={self.ssl_mode}"
                )
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
