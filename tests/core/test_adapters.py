"""Tests for ``rebecca.adapters``."""

from __future__ import annotations

import sqlite3
import sys
from unittest.mock import MagicMock, patch

import pytest

from rebecca.adapters import (
    AdapterRegistry,
    DatabaseConfig,
    DatabaseType,
    PostgreSQLAdapter,
    SQLiteAdapter,
    get_adapter,
)
from rebecca.errors import ConfigError, DriverError
from rebecca.settings import RebeccaSettings


class TestDatabaseConfig:
    def test_sqlite_connection_string(self):
        assert DatabaseConfig(path="app.db").to_connection_string() == "app.db"
        assert DatabaseConfig().to_connection_string() == ":memory:"

    def test_postgresql_connection_string(self):
        config = DatabaseConfig(db_type=DatabaseType.POSTGRESQL, username="postgres", password="")
        assert config.to_connection_string() == (
            "postgres://postgres:@127.0.0.1:5432/postgres?sslmode=disable"
        )

    def test_postgresql_dsn_wins(self):
        config = DatabaseConfig(db_type=DatabaseType.POSTGRESQL, dsn="postgres://u:p@db/x")
        assert config.to_connection_string() == "postgres://u:p@db/x"


class TestSQLiteAdapter:
    def test_not_connected_initially(self):
        adapter = SQLiteAdapter()
        assert adapter.db_type is DatabaseType.SQLITE
        assert adapter.is_connected is False
        assert adapter.dialect.name == "sqlite"

    def test_connect_and_disconnect(self, tmp_path):
        adapter = SQLiteAdapter(str(tmp_path / "a.db"))
        adapter.connect()
        assert adapter.is_connected is True
        adapter.disconnect()
        assert adapter.is_connected is False

    def test_disconnect_when_not_connected(self):
        adapter = SQLiteAdapter()
        adapter.disconnect()
        assert adapter.is_connected is False

    def test_context_manager(self, tmp_path):
        with SQLiteAdapter(str(tmp_path / "a.db")) as adapter:
            assert adapter.is_connected is True
        assert adapter.is_connected is False

    def test_get_connection_connects_lazily(self, tmp_path):
        adapter = SQLiteAdapter(str(tmp_path / "a.db"))
        assert adapter.get_connection() is adapter.get_connection()
        assert adapter.is_connected is True
        adapter.disconnect()

    def test_open_connection_is_dedicated(self, tmp_path):
        adapter = SQLiteAdapter(str(tmp_path / "a.db"))
        dedicated = adapter.open_connection()
        assert dedicated is not adapter.get_connection()
        dedicated.close()
        adapter.disconnect()

    def test_memory_database_shared_between_connections(self):
        adapter = SQLiteAdapter()
        shared = adapter.get_connection()
        shared.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")
        shared.commit()
        dedicated = adapter.open_connection()
        rows = dedicated.execute("SELECT name FROM sqlite_master WHERE name = 't'").fetchall()
        assert len(rows) == 1
        dedicated.close()
        adapter.disconnect()

    def test_foreign_keys_enabled(self, tmp_path):
        adapter = SQLiteAdapter(str(tmp_path / "a.db"))
        assert adapter.get_connection().execute("PRAGMA foreign_keys").fetchone()[0] == 1
        adapter.disconnect()

    @patch("sqlite3.connect", side_effect=sqlite3.OperationalError("unable to open database"))
    def test_connect_failure_raises(self, mock_connect):
        adapter = SQLiteAdapter(path="/nonexistent/path.db")
        with pytest.raises(DriverError, match="Failed to connect to SQLite"):
            adapter.connect()


class TestPostgreSQLAdapter:
    def test_psycopg2_missing(self):
        adapter = PostgreSQLAdapter()
        with patch.dict(sys.modules, {"psycopg2": None}):
            with pytest.raises(ConfigError, match="psycopg2 is required"):
                adapter.connect()

    def test_connect_with_fields(self):
        fake = MagicMock()
        fake.Error = Exception
        adapter = PostgreSQLAdapter(host="db", port=5433, database="app", username="u", password="p")
        with patch.dict(sys.modules, {"psycopg2": fake}):
            adapter.connect()
        assert adapter.is_connected is True
        kwargs = fake.connect.call_args.kwargs
        assert (kwargs["host"], kwargs["port"], kwargs["dbname"]) == ("db", 5433, "app")
        assert kwargs["sslmode"] == "disable"

    def test_connect_with_dsn(self):
        fake = MagicMock()
        fake.Error = Exception
        adapter = PostgreSQLAdapter(dsn="postgres://u:p@db:5432/app")
        with patch.dict(sys.modules, {"psycopg2": fake}):
            conn = adapter.open_connection()
        assert conn is fake.connect.return_value
        assert fake.connect.call_args.args == ("postgres://u:p@db:5432/app",)

    def test_connect_failure(self):
        fake = MagicMock()
        fake.Error = RuntimeError
        fake.connect.side_effect = RuntimeError("refused")
        adapter = PostgreSQLAdapter()
        with patch.dict(sys.modules, {"psycopg2": fake}):
            with pytest.raises(DriverError, match="Failed to connect to PostgreSQL: refused"):
                adapter.connect()

    def test_dialect(self):
        assert PostgreSQLAdapter().dialect.placeholders(2) == "%s, %s"


class TestAdapterRegistry:
    def test_defaults(self):
        assert AdapterRegistry().names() == ["postgres", "postgresql", "sqlite"]

    def test_sqlite_from_settings(self, tmp_path):
        path = str(tmp_path / "app.db")
        adapter = get_adapter(DatabaseType.SQLITE, RebeccaSettings(sqlite_path=path))
        assert isinstance(adapter, SQLiteAdapter)
        assert adapter.config.path == path

    def test_postgres_alias_uses_url(self):
        adapter = get_adapter("Postgres", RebeccaSettings(pg_url="postgres://x@db/y"))
        assert isinstance(adapter, PostgreSQLAdapter)
        assert adapter.config.to_connection_string() == "postgres://x@db/y"

    def test_unknown(self):
        with pytest.raises(ConfigError, match="Unknown database adapter: mongo") as exc_info:
            get_adapter("mongo")
        assert exc_info.value.context.metadata["available"] == ["postgres", "postgresql", "sqlite"]

    def test_register_custom(self, tmp_path):
        registry = AdapterRegistry()
        registry.register("Lite", lambda settings: SQLiteAdapter(str(tmp_path / "lite.db")))
        adapter = registry.create("lite", RebeccaSettings())
        assert adapter.config.path == str(tmp_path / "lite.db")
