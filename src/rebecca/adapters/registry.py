"""Adapter factories keyed by driver name.

Manifesto:
    Bootstrap should not hard-code adapter classes.  Each backend name in
    ``REBECCA_DRIVER`` maps to a factory that builds a configured adapter
    from :class:`~rebecca.settings.RebeccaSettings`, and applications can
    register their own factory under a new name.

Examples:
    >>> adapter = get_adapter("sqlite", RebeccaSettings(sqlite_path="app.db"))
    >>> adapter.config.path
    'app.db'

Tags:
    rebecca, database, registry, factory

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable

from rebecca.errors import ConfigError
from rebecca.settings import RebeccaSettings

from .base import DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType

AdapterFactory = Callable[[RebeccaSettings], DatabaseAdapter]


def _sqlite(settings: RebeccaSettings) -> DatabaseAdapter:
    return SQLiteAdapter(settings.sqlite_path)


def _postgresql(settings: RebeccaSettings) -> DatabaseAdapter:
    return PostgreSQLAdapter(dsn=settings.postgres_url())


class AdapterRegistry:
    """
    Backend name to adapter factory.

    Pre-registered: ``sqlite``, ``postgresql`` and its alias ``postgres``.
    Names are case-insensitive.
    """

    def __init__(self):
        self._factories: dict[str, AdapterFactory] = {
            DatabaseType.SQLITE.value: _sqlite,
            DatabaseType.POSTGRESQL.value: _postgresql,
            "postgres": _postgresql,
        }

    def register(self, name: str, factory: AdapterFactory) -> None:
        self._factories[name.lower()] = factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def create(self, name: str, settings: RebeccaSettings) -> DatabaseAdapter:
        """Build the adapter registered under ``name``.

        Raises:
            ConfigError: no factory is registered under ``name``.
        """
        factory = self._factories.get(name.lower())
        if factory is None:
            raise ConfigError(f"Unknown database adapter: {name}").with_context(
                available=self.names()
            )
        return factory(settings)


adapter_registry = AdapterRegistry()


def get_adapter(
    name: DatabaseType | str,
    settings: RebeccaSettings | None = None,
) -> DatabaseAdapter:
    """Adapter for ``name`` from the global registry, configured by ``settings``."""
    key = name.value if isinstance(name, DatabaseType) else name
    return adapter_registry.create(key, settings or RebeccaSettings())


__all__ = [
    "AdapterFactory",
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
