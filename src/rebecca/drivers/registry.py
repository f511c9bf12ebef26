"""Driver registry: the holder of the active driver.

Manifesto:
    Data operations never hard-code a driver.  They ask a
    :class:`DriverRegistry` for the current one.  Any number of operations may
    read the pointer at once; installing a new driver waits until in-flight
    readers have taken their reference.  The lock guards only that hand-off,
    not the driver call that follows.

Features:
    - ``DriverRegistry``: one active driver behind a reader/writer lock
    - ``default_registry``: process-wide instance used when no registry is passed
    - ``setup_driver()``: the single configuration call

Examples:
    >>> from rebecca.drivers.memory import MemoryDriver
    >>> registry = DriverRegistry()
    >>> registry.setup(MemoryDriver())
    >>> registry.current().name
    'MemoryDriver'

Tags:
    rebecca, driver, registry, singleton, rwlock

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from rebecca.drivers.base import Driver
from rebecca.errors import DriverNotConfiguredError
from rebecca.logging import get_logger

logger = get_logger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer.

    Writers take priority once waiting, so a steady stream of readers cannot
    starve reconfiguration.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class DriverRegistry:
    """Holds exactly one active driver."""

    def __init__(self, driver: Driver | None = None):
        self._driver = driver
        self._lock = ReadWriteLock()

    def setup(self, driver: Driver) -> None:
        """Install or replace the active driver."""
        with self._lock.write():
            previous = self._driver
            self._driver = driver
        logger.info(
            "driver_installed",
            driver=driver.name,
            replaced=previous.name if previous is not None else None,
        )

    def current(self) -> Driver:
        """The active driver; DriverNotConfiguredError when none is installed."""
        with self._lock.read():
            driver = self._driver
        if driver is None:
            raise DriverNotConfiguredError()
        return driver

    @property
    def is_configured(self) -> bool:
        with self._lock.read():
            return self._driver is not None


# Global registry
default_registry = DriverRegistry()


def setup_driver(driver: Driver, registry: DriverRegistry | None = None) -> None:
    """Install ``driver`` in ``registry`` (the default registry when omitted)."""
    (registry or default_registry).setup(driver)


def get_driver(registry: DriverRegistry | None = None) -> Driver:
    """The active driver of ``registry`` (the default registry when omitted)."""
    return (registry or default_registry).current()


__all__ = [
    "ReadWriteLock",
    "DriverRegistry",
    "default_registry",
    "setup_driver",
    "get_driver",
]
