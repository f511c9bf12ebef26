"""PostgreSQL database adapter."""

from __future__ import annotations

from typing import Any

from rebecca.errors import ConfigError, DriverError

from .base import Connection, DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter.

    Uses psycopg2, imported when the first connection is opened.
    Pass ``dsn`` (a ``postgres://`` URL or libpq key/value string) to
    override the individual connection fields.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 5432,
        database: str = "postgres",
        username: str | None = None,
        password: str | None = None,
        *,
        dsn: str | None = None,
        ssl_mode: str = "disable",
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
            dsn=dsn,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            ssl_mode=ssl_mode,
            options=kwargs,
        )
        super().__init__(config)
        self._conn: Any = None

    def _open(self) -> Any:
        try:
            import psycopg2
        except ImportError:
            raise ConfigError(
                "psycopg2 is required for PostgreSQL. Install with: pip install rebecca[postgresql]"
            ) from None

        try:
            if self._config.dsn:
                return psycopg2.connect(self._config.dsn, connect_timeout=self._config.connect_timeout)
            return psycopg2.connect(
                host=self._config.host,
                port=self._config.port,
                dbname=self._config.database,
                user=self._config.username,
                password=self._config.password,
                sslmode=self._config.ssl_mode,
                connect_timeout=self._config.connect_timeout,
                **self._config.options,
            )
        except psycopg2.Error as e:
            raise DriverError(f"Failed to connect to PostgreSQL: {e}", cause=e) from e

    def connect(self) -> None:
        """Connect to PostgreSQL database."""
        if self._conn is None:
            self._conn = self._open()
            self._connected = True

    def disconnect(self) -> None:
        """Close the shared PostgreSQL connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._connected = False

    def get_connection(self) -> Connection:
        """Get the shared connection."""
        if not self._conn:
            self.connect()
        return self._conn

    def open_connection(self) -> Connection:
        """A dedicated connection for one transaction."""
        return self._open()


__all__ = [
    "PostgreSQLAdapter",
]
