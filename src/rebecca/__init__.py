"""rebecca -- a small storage-agnostic object mapper for dataclasses.

Manifesto:
    Application code should describe its records once, as plain dataclasses,
    and move them in and out of storage without knowing which engine sits
    underneath.  rebecca keeps the mapping (dataclass <-> named field
    values) separate from storage (drivers), so the same models and calls
    work against the in-memory reference driver in tests and a SQL
    database in production.

    - **Explicit models:** ``ModelMetadata`` marker + ``column()`` per field
    - **One active driver:** installed once via ``setup_driver``
    - **Unit of work:** ``begin()`` / ``transact()`` with snapshot semantics
    - **Typed errors:** every failure is a ``RebeccaError`` subclass

Architecture::

    Layer 1 -- Types & Errors
        errors.py          RebeccaError hierarchy with categories + context
        field.py           FieldDescriptor (name, storage name, primary, value)
        context.py         Immutable QueryContext (order/group/limit/skip/tx)

    Layer 2 -- Mapping
        metadata.py        ModelMetadata, column(), resolve() -> ModelDescriptor
        mapping.py         extract / populate / is_new / populate_many

    Layer 3 -- Drivers
        drivers/base.py    Driver ABC, SnapshotToken / BackendToken
        drivers/registry   DriverRegistry behind a reader/writer lock
        drivers/memory     Reference in-memory driver
        drivers/sql        SQL driver over adapters/ + dialect.py

    Layer 4 -- Operations
        operations.py      Shared get/save/remove/all/where/first
        api.py             Top-level calls (and raw exec) outside a transaction
        transaction.py     Transaction, begin(), transact()

    Layer 5 -- Cross-Cutting Concerns
        logging.py         Structured logging (structlog)
        settings.py        RebeccaSettings (pydantic-settings, REBECCA_*)
        bootstrap.py       Settings -> installed driver

Examples:
    >>> from dataclasses import dataclass
    >>> from typing import ClassVar
    >>> import rebecca
    >>> @dataclass
    ... class Person:
    ...     __table__: ClassVar[rebecca.ModelMetadata] = rebecca.ModelMetadata(tablename="people")
    ...     id: int = rebecca.column("id", primary=True, default=0)
    ...     name: str = rebecca.column("name", default="")
    ...     age: int = 0
    >>> rebecca.setup_driver(rebecca.MemoryDriver())
    >>> person = rebecca.save(Person(name="John", age=31))
    >>> rebecca.get(Person, person.id).name
    'John'

Tags:
    rebecca, orm, dataclasses, drivers, transactions

Doc-Types:
    package-overview, architecture-map, module-index
"""

__version__ = "0.1.0"

from rebecca.api import all, exec, first, get, remove, save, where  # noqa: A004
from rebecca.context import QueryContext
from rebecca.drivers import (
    BackendToken,
    Driver,
    DriverRegistry,
    MemoryDriver,
    ReceivedExec,
    SnapshotToken,
    SQLDriver,
    TxToken,
    default_registry,
    get_driver,
    setup_driver,
)
from rebecca.errors import (
    ConfigError,
    DriverError,
    DriverNotConfiguredError,
    ErrorCategory,
    ErrorContext,
    FieldNotFoundError,
    FieldNotSettableError,
    InvalidQueryContextError,
    MappingError,
    MissingMetadataMarkerError,
    MissingTableNameError,
    NoPrimaryFieldError,
    NotADataclassError,
    NotFoundError,
    PrimaryKeyError,
    QueryNotRegisteredError,
    RebeccaError,
    RecoveredFault,
    ResolutionError,
    TransactionAlreadyFinishedError,
    TransactionError,
    ValidationError,
)
from rebecca.field import FieldDescriptor
from rebecca.metadata import ModelDescriptor, ModelMetadata, column, resolve
from rebecca.transaction import Transaction, TransactionState, begin, transact

__all__ = [
    "__version__",
    # Models
    "ModelMetadata",
    "ModelDescriptor",
    "FieldDescriptor",
    "column",
    "resolve",
    # Operations
    "get",
    "save",
    "remove",
    "all",
    "where",
    "first",
    "exec",
    "QueryContext",
    # Transactions
    "Transaction",
    "TransactionState",
    "begin",
    "transact",
    # Drivers
    "Driver",
    "TxToken",
    "SnapshotToken",
    "BackendToken",
    "MemoryDriver",
    "ReceivedExec",
    "SQLDriver",
    "DriverRegistry",
    "default_registry",
    "setup_driver",
    "get_driver",
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "RebeccaError",
    "ResolutionError",
    "NotADataclassError",
    "MissingMetadataMarkerError",
    "MissingTableNameError",
    "MappingError",
    "FieldNotFoundError",
    "FieldNotSettableError",
    "PrimaryKeyError",
    "NoPrimaryFieldError",
    "NotFoundError",
    "QueryNotRegisteredError",
    "TransactionError",
    "TransactionAlreadyFinishedError",
    "DriverError",
    "RecoveredFault",
    "ConfigError",
    "DriverNotConfiguredError",
    "ValidationError",
    "InvalidQueryContextError",
]
