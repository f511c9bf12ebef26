"""Driver contract.

Manifesto:
    Every storage backend implements the same small operation set, so the
    mapping and transaction layers never depend on a specific engine.  A
    SQL backend, the in-memory reference driver, or anything else that
    satisfies :class:`Driver` is interchangeable without changing callers.

Architecture::

    Driver (ABC)
        get / create / update / remove      ← take an explicit TxToken
        all / where / first                 ← take a QueryContext (token inside)
        exec                                ← optional raw statement
        has_transactions / begin / commit / rollback

    TxToken (tagged variant, absent = None)
        SnapshotToken(snapshot)    ← MemoryDriver
        BackendToken(connection)   ← SQLDriver

    Drivers ``match`` on the token and reject foreign variants with
    DriverError instead of downcasting blindly.

Guardrails:
    ❌ DON'T: Let ``rollback`` raise
    ✅ DO: Log rollback failures and return

    ❌ DON'T: Let callers choose new primary values
    ✅ DO: Return the value the backend assigned from ``create``

Tags:
    rebecca, driver, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rebecca.context import QueryContext
from rebecca.errors import DriverError, NotFoundError
from rebecca.field import FieldDescriptor, Row

if TYPE_CHECKING:
    from rebecca.drivers.memory import MemoryDriver


@dataclass(frozen=True)
class SnapshotToken:
    """Transaction token of the reference driver: its private snapshot."""

    snapshot: MemoryDriver


@dataclass(frozen=True)
class BackendToken:
    """Transaction token of a database-backed driver: a dedicated connection."""

    connection: Any


TxToken = SnapshotToken | BackendToken


class Driver(ABC):
    """
    Abstract base class for storage drivers.

    ``fields`` is the model's field list in declaration order; ``primary`` is
    the primary field descriptor carrying the key value.  Rows are returned as
    ``list[FieldDescriptor]`` in the order of ``fields``.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def get(
        self,
        tx: TxToken | None,
        table: str,
        fields: Sequence[FieldDescriptor],
        primary: FieldDescriptor,
    ) -> Row:
        """Fetch one row by primary key; NotFoundError when absent."""
        ...

    @abstractmethod
    def create(
        self,
        tx: TxToken | None,
        table: str,
        fields: Sequence[FieldDescriptor],
        primary: FieldDescriptor,
    ) -> Any:
        """Insert a row and return the primary value the backend assigned."""
        ...

    @abstractmethod
    def update(
        self,
        tx: TxToken | None,
        table: str,
        fields: Sequence[FieldDescriptor],
        primary: FieldDescriptor,
    ) -> None:
        """Replace the row with ``primary``'s value; NotFoundError when absent."""
        ...

    @abstractmethod
    def all(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        context: QueryContext,
    ) -> list[Row]:
        """All rows of ``table``."""
        ...

    @abstractmethod
    def where(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        context: QueryContext,
        predicate: str,
        args: Sequence[Any] = (),
    ) -> list[Row]:
        """Rows matching the opaque ``predicate`` with positional ``args``."""
        ...

    def first(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        context: QueryContext,
        predicate: str,
        args: Sequence[Any] = (),
    ) -> Row:
        """First row matching ``predicate``; NotFoundError when none does."""
        rows = self.where(table, fields, context.set_limit(1), predicate, args)
        if not rows:
            raise NotFoundError(f"Record not found with where query '{predicate}'")
        return rows[0]

    @abstractmethod
    def remove(
        self,
        tx: TxToken | None,
        table: str,
        primary: FieldDescriptor,
    ) -> None:
        """Delete the row with ``primary``'s value; NotFoundError when absent."""
        ...

    def exec(
        self,
        tx: TxToken | None,
        query: str,
        args: Sequence[Any] = (),
    ) -> None:
        """Run a raw statement that returns no rows.

        Optional capability; drivers without a statement language raise
        DriverError.
        """
        raise DriverError(f"{self.name} does not support exec")

    @abstractmethod
    def has_transactions(self) -> bool:
        ...

    @abstractmethod
    def begin(self) -> TxToken:
        """Start a transaction; DriverError when unsupported or failing."""
        ...

    @abstractmethod
    def rollback(self, tx: TxToken) -> None:
        """Best-effort rollback. Must never raise."""
        ...

    @abstractmethod
    def commit(self, tx: TxToken) -> None:
        """Make the transaction's writes visible; DriverError on failure."""
        ...


__all__ = [
    "Driver",
    "SnapshotToken",
    "BackendToken",
    "TxToken",
]
