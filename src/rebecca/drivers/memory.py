"""
Reference in-memory driver with snapshot-isolated transactions.

``MemoryDriver`` keeps tables as ordered lists of rows and implements the
whole :class:`~rebecca.drivers.base.Driver` contract, so the mapping and
transaction layers can be exercised without a database engine.

Manifesto:
    A test double is only useful if it behaves like the real thing where it
    matters.  Transactions here are genuinely isolated: each one works on a
    private deep copy of every table and touches the parent only when it
    commits.  Rows are deep-copied on every write and every read, so
    mutating a record never reaches a stored row without a save.

Architecture:
    ::

        MemoryDriver (parent)
          tables:  {"people": [row, row, ...]}
          max_id:  41 ──begin()──► 1041        (stride reserved for the tx)
                     │
                     ▼ deep copy
        MemoryDriver (snapshot, behind SnapshotToken)
          tables:  private copy, max_id starts at 41
          created: {42, 43}
          updated: {7}
          removed: [(9, "people")]
                     │
                     ▼ commit(token) replays, in order:
          1. append rows whose id is in ``created``
          2. parent.update for rows whose id is in ``updated``
          3. parent.remove for every (id, table) in ``removed``

Guardrails:
    ❌ DON'T: Expect order/group/limit/skip to be honoured
    ✅ DO: Rely on insertion order; the reference driver ignores them

    ❌ DON'T: Expect write-write conflict detection
    ✅ DO: Know that the later commit's replay wins

    ❌ DON'T: Pass arbitrary SQL to where/first
    ✅ DO: Register a callback per predicate string with ``register_where``

    ❌ DON'T: Expect ``exec`` to change any table
    ✅ DO: Inspect ``received_exec``; statements are recorded, not run

Performance:
    - ``begin()``: O(total rows), full deep copy
    - get/update/remove: O(rows in table), linear scan
    - Not internally synchronised; single writer at a time

Tags:
    rebecca, driver, in-memory, snapshot-isolation, test-double

Doc-Types:
    - API Reference
    - Testing Guide
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from rebecca.context import QueryContext
from rebecca.drivers.base import Driver, SnapshotToken, TxToken
from rebecca.errors import (
    DriverError,
    NotFoundError,
    QueryNotRegisteredError,
    RebeccaError,
)
from rebecca.field import FieldDescriptor, Row, primary_of
from rebecca.logging import get_logger

logger = get_logger(__name__)

WhereCallback = Callable[..., bool]


@dataclass(frozen=True)
class ReceivedExec:
    """A raw statement passed to :meth:`MemoryDriver.exec`."""

    tx: TxToken | None
    query: str
    args: tuple[Any, ...]


class MemoryDriver(Driver):
    """In-memory driver; also serves as the private snapshot of a transaction."""

    SNAPSHOT_ID_STRIDE = 1000

    def __init__(self, *, id_stride: int = SNAPSHOT_ID_STRIDE):
        self._tables: dict[str, list[Row]] = {}
        self._max_id = 0
        self._id_stride = id_stride
        self._where_registry: dict[str, WhereCallback] = {}
        self._received_exec: ReceivedExec | None = None

        # Only used by snapshots
        self._parent: MemoryDriver | None = None
        self._finished = False
        self._created: set[Any] = set()
        self._updated: set[Any] = set()
        self._removed: list[tuple[Any, str]] = []

    # -- Predicates --------------------------------------------------------

    def register_where(self, predicate: str, fn: WhereCallback) -> None:
        """Register ``fn(row, *args) -> bool`` as the meaning of ``predicate``."""
        self._where_registry[predicate] = fn

    # -- Reads -------------------------------------------------------------

    def get(
        self,
        tx: TxToken | None,
        table: str,
        fields: Sequence[FieldDescriptor],
        primary: FieldDescriptor,
    ) -> Row:
        target = self._target(tx)
        for row in target._table(table):
            if _has_key(row, primary):
                return _detached(row)
        raise NotFoundError(f"Unable to find record with {primary.storage_name}={primary.value!r}")

    def all(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        context: QueryContext,
    ) -> list[Row]:
        target = self._target(context.get_tx())
        return [_detached(row) for row in target._table(table)]

    def where(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        context: QueryContext,
        predicate: str,
        args: Sequence[Any] = (),
    ) -> list[Row]:
        fn = self._where_registry.get(predicate)
        if fn is None:
            raise QueryNotRegisteredError(predicate)

        target = self._target(context.get_tx())
        result = []
        for row in target._table(table):
            try:
                matches = fn(row, *args)
            except RebeccaError:
                raise
            except Exception as e:
                raise DriverError(
                    f"Registered query '{predicate}' returned error - {e}", cause=e
                ) from e
            if matches:
                result.append(_detached(row))
        return result

    # -- Writes ------------------------------------------------------------

    def create(
        self,
        tx: TxToken | None,
        table: str,
        fields: Sequence[FieldDescriptor],
        primary: FieldDescriptor,
    ) -> Any:
        target = self._target(tx)
        target._max_id += 1
        new_id = target._max_id
        key = primary.with_value(new_id)
        row = _detached([key if f.primary else f for f in fields])
        target._table(table).append(row)
        if target._parent is not None:
            target._created.add(new_id)
        return new_id

    def update(
        self,
        tx: TxToken | None,
        table: str,
        fields: Sequence[FieldDescriptor],
        primary: FieldDescriptor,
    ) -> None:
        target = self._target(tx)
        target._replace(table, _detached(fields), primary)
        if target._parent is not None and primary.value not in target._created:
            target._updated.add(primary.value)

    def remove(
        self,
        tx: TxToken | None,
        table: str,
        primary: FieldDescriptor,
    ) -> None:
        target = self._target(tx)
        target._delete(table, primary)
        if target._parent is None:
            return
        if primary.value in target._created:
            target._created.discard(primary.value)
            return
        target._updated.discard(primary.value)
        target._removed.append((primary.value, table))

    # -- Raw statements ----------------------------------------------------

    def exec(
        self,
        tx: TxToken | None,
        query: str,
        args: Sequence[Any] = (),
    ) -> None:
        """Record the statement without running it; see :attr:`received_exec`."""
        self._target(tx)
        self._received_exec = ReceivedExec(tx, query, tuple(args))
        logger.debug("exec_received", query=query, in_transaction=tx is not None)

    @property
    def received_exec(self) -> ReceivedExec | None:
        """The last statement passed to ``exec``, if any."""
        return self._received_exec

    # -- Transactions ------------------------------------------------------

    def has_transactions(self) -> bool:
        return True

    def begin(self) -> SnapshotToken:
        if self._parent is not None:
            raise DriverError("MemoryDriver does not support nested transactions")

        snapshot = MemoryDriver(id_stride=self._id_stride)
        snapshot._tables = copy.deepcopy(self._tables)
        snapshot._max_id = self._max_id
        snapshot._where_registry = self._where_registry
        snapshot._parent = self

        self._max_id += self._id_stride
        logger.debug("snapshot_begun", tables=len(snapshot._tables), base_id=snapshot._max_id)
        return SnapshotToken(snapshot)

    def rollback(self, tx: TxToken) -> None:
        match tx:
            case SnapshotToken(snapshot=snapshot) if snapshot._parent is self:
                snapshot._finished = True
            case _:
                logger.warning("rollback_ignored", driver=self.name, token=type(tx).__name__)

    def commit(self, tx: TxToken) -> None:
        snapshot = self._snapshot(tx)

        try:
            for table, rows in snapshot._tables.items():
                for row in rows:
                    key = primary_of(row)
                    if key is not None and key.value in snapshot._created:
                        self._table(table).append(_detached(row))

            for table, rows in snapshot._tables.items():
                for row in rows:
                    key = primary_of(row)
                    if key is not None and key.value in snapshot._updated:
                        self._replace(table, _detached(row), key)

            for key_value, table in snapshot._removed:
                self._delete_value(table, key_value)
        except NotFoundError as e:
            raise DriverError(f"Unable to commit transaction - {e}", cause=e) from e
        finally:
            snapshot._finished = True
            self._max_id = max(self._max_id, snapshot._max_id)

        logger.debug(
            "snapshot_committed",
            created=len(snapshot._created),
            updated=len(snapshot._updated),
            removed=len(snapshot._removed),
        )

    # -- Internals ---------------------------------------------------------

    def _target(self, tx: TxToken | None) -> MemoryDriver:
        if tx is None:
            return self
        return self._snapshot(tx)

    def _snapshot(self, tx: TxToken | None) -> MemoryDriver:
        match tx:
            case SnapshotToken(snapshot=snapshot) if snapshot._parent is self:
                if snapshot._finished:
                    raise DriverError("MemoryDriver transaction is already finished")
                return snapshot
            case SnapshotToken():
                raise DriverError("Transaction token belongs to a different MemoryDriver")
            case _:
                raise DriverError(f"MemoryDriver cannot use transaction token {tx!r}")

    def _table(self, name: str) -> list[Row]:
        return self._tables.setdefault(name, [])

    def _replace(self, table: str, row: Row, primary: FieldDescriptor) -> None:
        rows = self._table(table)
        for i, existing in enumerate(rows):
            if _has_key(existing, primary):
                rows[i] = row
                return
        raise NotFoundError(
            f"Unable to find record with {primary.storage_name}={primary.value!r} in table {table}"
        )

    def _delete(self, table: str, primary: FieldDescriptor) -> None:
        rows = self._table(table)
        for i, existing in enumerate(rows):
            if _has_key(existing, primary):
                del rows[i]
                return
        raise NotFoundError(
            f"Unable to find record with {primary.storage_name}={primary.value!r} in table {table}"
        )

    def _delete_value(self, table: str, key_value: Any) -> None:
        rows = self._table(table)
        for i, existing in enumerate(rows):
            key = primary_of(existing)
            if key is not None and key.value == key_value:
                del rows[i]
                return
        raise NotFoundError(f"Unable to find record with primary key {key_value!r} in table {table}")


def _detached(row: Sequence[FieldDescriptor]) -> Row:
    return copy.deepcopy(list(row))


def _has_key(row: Row, primary: FieldDescriptor) -> bool:
    for f in row:
        if f.storage_name == primary.storage_name:
            return f.value == primary.value
    return False


__all__ = [
    "MemoryDriver",
    "ReceivedExec",
    "WhereCallback",
]
