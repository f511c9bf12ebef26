"""
Shared pytest fixtures for rebecca tests.

This module provides:
- A fresh reference driver installed in a private registry
- A reference driver installed in the process-wide default registry
- A SQLite-backed SQL driver on a temporary database file
"""

from collections.abc import Generator

import pytest

from rebecca.adapters import SQLiteAdapter
from rebecca.drivers import DriverRegistry, MemoryDriver, SQLDriver, default_registry
from tests._support.models import PEOPLE_SCHEMA, age_between, name_is


# =============================================================================
# Reference Driver Fixtures
# =============================================================================


@pytest.fixture
def memory_driver() -> MemoryDriver:
    """MemoryDriver with the predicates used by the tests registered."""
    driver = MemoryDriver()
    driver.register_where("age BETWEEN ? AND ?", age_between)
    driver.register_where("name = ?", name_is)
    return driver


@pytest.fixture
def registry(memory_driver: MemoryDriver) -> DriverRegistry:
    """Private registry with ``memory_driver`` installed."""
    return DriverRegistry(memory_driver)


@pytest.fixture
def default_driver(memory_driver: MemoryDriver) -> Generator[MemoryDriver, None, None]:
    """
    Install ``memory_driver`` in the default registry for one test.

    The previously installed driver (usually none) is restored afterwards.
    """
    previous = default_registry._driver
    default_registry.setup(memory_driver)
    yield memory_driver
    default_registry._driver = previous


# =============================================================================
# SQL Driver Fixtures
# =============================================================================


@pytest.fixture
def sqlite_adapter(tmp_path) -> Generator[SQLiteAdapter, None, None]:
    """Connected SQLiteAdapter on a temporary file with the people table."""
    adapter = SQLiteAdapter(str(tmp_path / "rebecca.db"))
    adapter.connect()
    conn = adapter.get_connection()
    conn.execute(PEOPLE_SCHEMA)
    conn.commit()
    yield adapter
    adapter.disconnect()


@pytest.fixture
def sql_registry(sqlite_adapter: SQLiteAdapter) -> DriverRegistry:
    """Private registry with a SQLDriver over ``sqlite_adapter``."""
    return DriverRegistry(SQLDriver(sqlite_adapter))
