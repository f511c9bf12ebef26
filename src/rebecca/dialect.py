"""SQL dialects for the database-backed driver.

The SQL driver builds every statement from a handful of fragments whose
syntax differs between engines: parameter placeholders and the
LIMIT/OFFSET tail.  A ``Dialect`` supplies those fragments so the driver
never branches on the engine itself.

Architecture::

    SQLDriver
        sql = f"SELECT ... WHERE id = {d.placeholder(0)}"
        sql += query_suffix(context, d)   # uses d.limit_offset()
                      │
            ┌─────────┴──────────┐
            ▼                    ▼
      SQLiteDialect        PostgreSQLDialect
      ?, ?, ?              %s, %s, %s
      LIMIT -1 OFFSET n    OFFSET n

Examples:
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.limit_offset(0, 20)
    'LIMIT -1 OFFSET 20'

Guardrails:
    ❌ DON'T: Interpolate values into SQL
    ✅ DO: Use placeholders and pass values as parameters

Tags:
    dialect, sql, portability, rebecca

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from rebecca.errors import ConfigError


@runtime_checkable
class Dialect(Protocol):
    """SQL fragment contract used by the SQL driver."""

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index).

        ``index`` is ignored by dialects that use anonymous placeholders.
        """
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def limit_offset(self, limit: int, offset: int) -> str:
        """``LIMIT``/``OFFSET`` tail; zero means "not set" for both.

        Returns an empty string when neither is set.
        """
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, OFFSET needs a LIMIT."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def limit_offset(self, limit: int, offset: int) -> str:
        parts = []
        if limit:
            parts.append(f"LIMIT {limit}")
        elif offset:
            parts.append("LIMIT -1")
        if offset:
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)


class PostgreSQLDialect:
    """PostgreSQL dialect: ``%s`` placeholders (psycopg2)."""

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def limit_offset(self, limit: int, offset: int) -> str:
        parts = []
        if limit:
            parts.append(f"LIMIT {limit}")
        if offset:
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)


# =========================================================================
# Registry / Factory
# =========================================================================

# Dialects are stateless
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ConfigError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ConfigError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "get_dialect",
]
