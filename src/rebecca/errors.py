"""
Structured error types for rebecca.

Every failure raised by the mapping layer, the transaction manager, or a
driver is a :class:`RebeccaError`.  Errors carry a category, a structured
context (operation, table, model, driver) and the chained underlying
exception, so a caller can diagnose a failure without inspecting the layer
that produced it.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure kind, grouped by layer
    - **Rich Context:** Errors carry the operation and table they occurred in
    - **Error Chaining:** Lower-layer exceptions are preserved as ``cause``
    - **No silent failures:** Only rollback of a finished transaction is a no-op

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       RebeccaError                               │
        │            (category, context, cause)                            │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ResolutionError        MappingError         PrimaryKeyError     │
        │       │                      │                     │             │
        │  NotADataclassError     FieldNotFoundError   NoPrimaryFieldError │
        │  MissingMetadataMarker  FieldNotSettableError                    │
        │  MissingTableNameError                                           │
        │                                                                  │
        │  NotFoundError          QueryNotRegisteredError                  │
        │  TransactionError       DriverError          RecoveredFault      │
        │       │                                                          │
        │  TransactionAlreadyFinishedError                                 │
        │                                                                  │
        │  ConfigError            ValidationError                          │
        │       │                      │                                   │
        │  DriverNotConfigured    InvalidQueryContextError                 │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    Adding context while propagating:

    >>> error = NotFoundError("Unable to find record with id=7")
    >>> error.with_context(operation="get", table="people").context.table
    'people'

    Chaining a backend failure:

    >>> try:
    ...     raise OSError("disk full")
    ... except OSError as e:
    ...     raise DriverError("Unable to create record", cause=e)
    Traceback (most recent call last):
    ...
    DriverError: Unable to create record

Guardrails:
    ❌ DON'T: Raise bare Exception from a driver
    ✅ DO: Raise NotFoundError / DriverError so callers can branch on type

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, rebecca

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories, one per layer of the library.

    Categories let callers route or report errors without matching on every
    concrete class.

    Attributes:
        RESOLUTION: Model declaration cannot be resolved
        MAPPING: Values cannot be read from or written to a record
        PRIMARY_KEY: Primary key required but not declared
        NOT_FOUND: No matching row
        QUERY: Predicate unknown to the driver
        TRANSACTION: Transaction lifecycle misuse
        DRIVER: Opaque backend failure
        FAULT: Callback fault recovered by ``transact``
        CONFIG: Missing or invalid configuration
        VALIDATION: Invalid argument values
    """

    RESOLUTION = "RESOLUTION"
    MAPPING = "MAPPING"
    PRIMARY_KEY = "PRIMARY_KEY"
    NOT_FOUND = "NOT_FOUND"
    QUERY = "QUERY"
    TRANSACTION = "TRANSACTION"
    DRIVER = "DRIVER"
    FAULT = "FAULT"
    CONFIG = "CONFIG"
    VALIDATION = "VALIDATION"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that were set are serialised by :meth:`to_dict`.  Anything
    that has no dedicated field goes into ``metadata``.

    Attributes:
        operation: Top-level operation that failed (``get``, ``save``, ...)
        table: Table name of the record involved
        model: Qualified name of the record's class
        driver: Class name of the driver that raised
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    table: str | None = None
    model: str | None = None
    driver: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["operation", "table", "model", "driver"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RebeccaError(Exception):
    """
    Base exception for all rebecca errors.

    Subclasses set ``default_category``.  The ``cause`` keyword chains the
    underlying exception (also set as ``__cause__``).

    Examples:
        >>> error = RebeccaError("boom", category=ErrorCategory.DRIVER)
        >>> error.category
        <ErrorCategory.DRIVER: 'DRIVER'>
        >>> error.to_dict()["error_type"]
        'RebeccaError'
    """

    default_category: ErrorCategory = ErrorCategory.DRIVER

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RebeccaError:
        """
        Add context to this error (fluent API).

        Fields already set by a lower layer are kept, so the innermost,
        most specific value wins.

        Usage:
            raise NotFoundError("missing").with_context(operation="get", table="people")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                if getattr(self.context, key) is None:
                    setattr(self.context, key, value)
            else:
                self.context.metadata.setdefault(key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# RESOLUTION ERRORS
# =============================================================================


class ResolutionError(RebeccaError):
    """A record shape cannot be resolved into a model descriptor."""

    default_category = ErrorCategory.RESOLUTION


class NotADataclassError(ResolutionError):
    """The record's shape is not a dataclass."""

    pass


class MissingMetadataMarkerError(ResolutionError):
    """The record's class declares no ``ModelMetadata`` marker."""

    pass


class MissingTableNameError(ResolutionError):
    """The ``ModelMetadata`` marker carries no table name."""

    pass


# =============================================================================
# MAPPING ERRORS
# =============================================================================


class MappingError(RebeccaError):
    """Values cannot be moved between a record and a field list."""

    default_category = ErrorCategory.MAPPING


class FieldNotFoundError(MappingError):
    """A field named by the descriptor does not exist on the record."""

    def __init__(self, name: str, record: Any, message: str | None = None):
        super().__init__(message or f"Field {name} not found on record {record!r}")
        self.field_name = name


class FieldNotSettableError(MappingError):
    """The field exists but the record refuses assignment (e.g. frozen)."""

    def __init__(self, name: str, record: Any, cause: BaseException | None = None):
        super().__init__(
            f"Unable to set field {name} on record {record!r}. "
            "It is required to be a mutable instance",
            cause=cause,
        )
        self.field_name = name


# =============================================================================
# PRIMARY KEY / LOOKUP ERRORS
# =============================================================================


class PrimaryKeyError(RebeccaError):
    """Primary-key problems."""

    default_category = ErrorCategory.PRIMARY_KEY


class NoPrimaryFieldError(PrimaryKeyError):
    """The model declares no primary field but the operation needs one."""

    def __init__(self, tablename: str):
        super().__init__(f"Model for table {tablename} declares no primary field")
        self.tablename = tablename


class NotFoundError(RebeccaError):
    """No row matches the primary key or predicate."""

    default_category = ErrorCategory.NOT_FOUND


class QueryNotRegisteredError(RebeccaError):
    """The reference driver has no callback for a predicate string."""

    default_category = ErrorCategory.QUERY

    def __init__(self, predicate: str):
        super().__init__(
            f"MemoryDriver has no '{predicate}' where query registered, "
            "please register it with register_where"
        )
        self.predicate = predicate


# =============================================================================
# TRANSACTION / DRIVER ERRORS
# =============================================================================


class TransactionError(RebeccaError):
    """Transaction lifecycle error."""

    default_category = ErrorCategory.TRANSACTION


class TransactionAlreadyFinishedError(TransactionError):
    """Commit attempted on a committed or rolled back transaction."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message or "Unable to commit transaction - Current transaction is already finished"
        )


class DriverError(RebeccaError):
    """Opaque backend failure, described by the attempted operation."""

    default_category = ErrorCategory.DRIVER


class RecoveredFault(RebeccaError):
    """
    A callback fault converted into an error by ``transact``.

    The message is the fault's message tagged ``(recovered)``; the fault
    itself is the ``cause``.

    Examples:
        >>> RecoveredFault(ValueError("I have a panic!")).message
        'I have a panic! (recovered)'
    """

    default_category = ErrorCategory.FAULT
    recovered = True

    def __init__(self, fault: BaseException):
        super().__init__(f"{fault} (recovered)", cause=fault)
        self.fault = fault


# =============================================================================
# CONFIG / VALIDATION ERRORS
# =============================================================================


class ConfigError(RebeccaError):
    """Missing or invalid configuration."""

    default_category = ErrorCategory.CONFIG


class DriverNotConfiguredError(ConfigError):
    """No driver has been installed in the registry."""

    def __init__(self) -> None:
        super().__init__("No driver configured - call setup_driver() first")


class ValidationError(RebeccaError):
    """Invalid argument values."""

    default_category = ErrorCategory.VALIDATION


class InvalidQueryContextError(ValidationError):
    """Negative limit or skip on a query context."""

    pass


__all__ = [
    # Category / context
    "ErrorCategory",
    "ErrorContext",
    # Base
    "RebeccaError",
    # Resolution
    "ResolutionError",
    "NotADataclassError",
    "MissingMetadataMarkerError",
    "MissingTableNameError",
    # Mapping
    "MappingError",
    "FieldNotFoundError",
    "FieldNotSettableError",
    # Primary key / lookup
    "PrimaryKeyError",
    "NoPrimaryFieldError",
    "NotFoundError",
    "QueryNotRegisteredError",
    # Transaction / driver
    "TransactionError",
    "TransactionAlreadyFinishedError",
    "DriverError",
    "RecoveredFault",
    # Config / validation
    "ConfigError",
    "DriverNotConfiguredError",
    "ValidationError",
    "InvalidQueryContextError",
]
