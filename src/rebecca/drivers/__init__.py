"""Storage drivers.

Modules
-------
base        Driver ABC and transaction token variants
registry    DriverRegistry holding the active driver
memory      Reference in-memory driver with snapshot transactions
sql         SQL driver over a database adapter
"""

from .base import BackendToken, Driver, SnapshotToken, TxToken
from .memory import MemoryDriver, ReceivedExec
from .registry import DriverRegistry, ReadWriteLock, default_registry, get_driver, setup_driver
from .sql import SQLDriver, query_suffix

__all__ = [
    "Driver",
    "TxToken",
    "SnapshotToken",
    "BackendToken",
    "MemoryDriver",
    "ReceivedExec",
    "SQLDriver",
    "query_suffix",
    "DriverRegistry",
    "ReadWriteLock",
    "default_registry",
    "setup_driver",
    "get_driver",
]
