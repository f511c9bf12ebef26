"""SQLite database adapter."""

from __future__ import annotations

import itertools
import sqlite3
from typing import Any

from rebecca.errors import DriverError

from .base import Connection, DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

_memory_ids = itertools.count(1)


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module. Suitable for:
    - Development and testing
    - Single-process applications

    ``":memory:"`` is mapped to a named shared-cache in-memory database so
    transaction connections see the same data as the shared connection.
    The database lives as long as the shared connection stays open.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None
        if path == ":memory:":
            self._target = f"file:rebecca-mem-{next(_memory_ids)}?mode=memory&cache=shared"
        else:
            self._target = path

    def _open(self) -> sqlite3.Connection:
        uri = self._target.startswith("file:")
        try:
            conn = sqlite3.connect(
                self._target,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            # Enable foreign keys
            conn.execute("PRAGMA foreign_keys = ON")

            if self._config.readonly:
                conn.execute("PRAGMA query_only = ON")
        except sqlite3.Error as e:
            raise DriverError(f"Failed to connect to SQLite: {e}", cause=e) from e
        return conn

    def connect(self) -> None:
        """Connect to SQLite database."""
        if self._conn is None:
            self._conn = self._open()
            self._connected = True

    def disconnect(self) -> None:
        """Close SQLite connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._connected = False

    def get_connection(self) -> Connection:
        """Get the shared SQLite connection."""
        if not self._conn:
            self.connect()
        return self._conn

    def open_connection(self) -> Connection:
        """A dedicated connection to the same database."""
        if not self._conn:
            self.connect()
        return self._open()


__all__ = [
    "SQLiteAdapter",
]
