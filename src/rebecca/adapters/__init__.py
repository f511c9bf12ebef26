"""Database adapters for the SQL driver.

Manifesto:
    The SQL driver talks DB-API 2.0 and nothing else.  Adapters own the
    vendor-specific part: how to open a connection and which SQL dialect
    the engine speaks.

    Each adapter is **import-guarded**: the database driver is only required
    when a connection is opened, not at import time.  Install the
    corresponding extra::

        pip install rebecca[postgresql]   # psycopg2-binary

Architecture::

    DatabaseAdapter (base.py)        Abstract base: shared + dedicated connections
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- PostgreSQLAdapter        psycopg2 (optional)

    AdapterRegistry (registry.py)    backend name -> settings factory
    DatabaseConfig (types.py)        Connection parameters
    DatabaseType (types.py)          Enum of supported backends

Guardrails:
    ❌ ``conn.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``cursor.execute("SELECT * FROM t WHERE id=?", [user_input])``
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at connect time with clear ``ConfigError``

Tags:
    rebecca, database, adapters, import-guarded, registry-pattern,
    postgresql, sqlite

Doc-Types:
    package-overview, module-index
"""

from rebecca.dialect import Dialect, get_dialect

from .base import Connection, DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterFactory, AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    # Protocols / Abstractions
    "Connection",
    "Dialect",
    "get_dialect",
    # Base class
    "DatabaseAdapter",
    # Implementations
    "SQLiteAdapter",
    "PostgreSQLAdapter",
    # Registry
    "AdapterFactory",
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
