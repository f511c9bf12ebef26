"""Build and install a driver from settings.

Examples:
    >>> # REBECCA_DRIVER=sqlite REBECCA_SQLITE_PATH=app.db
    >>> driver = setup_from_settings()
    >>> driver.name
    'SQLDriver'
"""

from __future__ import annotations

from rebecca.adapters import AdapterRegistry, adapter_registry
from rebecca.drivers.base import Driver
from rebecca.drivers.memory import MemoryDriver
from rebecca.drivers.registry import DriverRegistry, setup_driver
from rebecca.drivers.sql import SQLDriver
from rebecca.logging import configure_logging, get_logger
from rebecca.settings import RebeccaSettings

logger = get_logger(__name__)


def driver_from_settings(
    settings: RebeccaSettings,
    adapters: AdapterRegistry | None = None,
) -> Driver:
    """The driver ``settings.driver`` selects, not yet installed.

    ``memory`` builds the reference driver; any other name is looked up in
    ``adapters`` (the global adapter registry by default) and wrapped in a
    :class:`SQLDriver`.

    Raises:
        ConfigError: the name is neither ``memory`` nor a registered adapter.
    """
    if settings.driver == "memory":
        return MemoryDriver(id_stride=settings.snapshot_id_stride)
    return SQLDriver((adapters or adapter_registry).create(settings.driver, settings))


def setup_from_settings(
    settings: RebeccaSettings | None = None,
    registry: DriverRegistry | None = None,
    adapters: AdapterRegistry | None = None,
) -> Driver:
    """Configure logging, then build and install the selected driver.

    ``settings`` defaults to one read from the ``REBECCA_*`` environment.
    """
    settings = settings or RebeccaSettings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)

    driver = driver_from_settings(settings, adapters)
    setup_driver(driver, registry)
    logger.info("bootstrap_complete", driver=driver.name, backend=settings.driver)
    return driver


__all__ = [
    "driver_from_settings",
    "setup_from_settings",
]
