"""Database adapter base class.

Manifesto:
    The SQL driver needs two things from a database: a long-lived shared
    connection for work outside transactions, and a fresh dedicated
    connection per transaction.  Adapters provide both behind one
    interface so the driver never depends on a specific vendor module.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``get_connection()``, ``open_connection()``
    - Property-based dialect and connection-state introspection
    - Context-manager protocol for connection lifecycle
    - Config-driven construction from ``DatabaseConfig``

Tags:
    rebecca, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from rebecca.dialect import Dialect, get_dialect

from .types import DatabaseConfig, DatabaseType


@runtime_checkable
class Connection(Protocol):
    """Minimal DB-API 2.0 connection surface used by the SQL driver."""

    def cursor(self) -> Any:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def close(self) -> None:
        ...


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Provides common functionality and defines the interface
    that all adapters must implement.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        """Whether the shared connection is open."""
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Open the shared connection."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close the shared connection."""
        ...

    @abstractmethod
    def get_connection(self) -> Connection:
        """The shared connection, connecting first if needed."""
        ...

    @abstractmethod
    def open_connection(self) -> Connection:
        """A new dedicated connection; the caller closes it."""
        ...

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(db_type={self.db_type.value!r}, connected={self._connected})"


__all__ = [
    "Connection",
    "DatabaseAdapter",
]
