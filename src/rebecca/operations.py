"""Shared implementation of the top-level record operations.

The public entry points (``rebecca.get``, ``Transaction.save``, ...) are thin
wrappers around the functions here.  Each one resolves the model
descriptor, moves values through the field value bag, and delegates to the
driver currently installed in the registry.

``exec_statement`` is the one operation without a model: it hands a raw
statement straight to the driver.

Errors raised by lower layers keep their type and gain the operation,
table and model in their context.  Anything a driver raises that is not a
``RebeccaError`` becomes a ``DriverError`` describing the attempted operation.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from rebecca.context import QueryContext
from rebecca.drivers.base import Driver, TxToken
from rebecca.drivers.registry import DriverRegistry, default_registry
from rebecca.errors import DriverError, RebeccaError
from rebecca.mapping import blank, extract, field_value, is_new, populate, populate_many
from rebecca.metadata import ModelDescriptor, model_type, resolve

T = TypeVar("T")


def _driver(registry: DriverRegistry | None) -> Driver:
    return (registry or default_registry).current()


@contextmanager
def _describe(operation: str, failure: str, target: Any, table: str | None = None) -> Iterator[None]:
    """Attach context to library errors; wrap everything else as DriverError."""
    cls = model_type(target)
    try:
        yield
    except RebeccaError as e:
        e.with_context(operation=operation, table=table, model=cls.__qualname__)
        raise
    except Exception as e:
        raise DriverError(f"{failure} - {e}", cause=e).with_context(
            operation=operation, table=table, model=cls.__qualname__
        ) from e


def get_record(
    target: type[T] | T,
    primary_value: Any,
    *,
    tx: TxToken | None = None,
    registry: DriverRegistry | None = None,
) -> T:
    """Fetch the record whose primary key is ``primary_value``.

    ``target`` is either the model class (a new instance is returned) or an
    instance, which is populated in place and returned.
    """
    meta = _resolve_for("get", "Unable to find record", target)
    with _describe("get", "Unable to find record", target, meta.tablename):
        key = meta.primary_field().with_value(primary_value)
        driver = _driver(registry)
        row = driver.get(tx, meta.tablename, meta.fields, key)
        record = blank(target) if isinstance(target, type) else target
        return populate(record, row)


def save_record(
    record: T,
    *,
    tx: TxToken | None = None,
    registry: DriverRegistry | None = None,
) -> T:
    """Create the record when its primary key is the zero value, else update it.

    On create, the primary value assigned by the driver is written back onto
    ``record``.
    """
    meta = _resolve_for("save", "Unable to save record", record)
    with _describe("save", "Unable to save record", record, meta.tablename):
        primary = meta.primary_field()
        fields = extract(record, meta)
        driver = _driver(registry)
        if is_new(record, primary):
            new_value = driver.create(tx, meta.tablename, fields, primary)
            populate(record, [primary.with_value(new_value)])
        else:
            driver.update(tx, meta.tablename, fields, field_value(record, primary))
    return record


def remove_record(
    record: Any,
    *,
    tx: TxToken | None = None,
    registry: DriverRegistry | None = None,
) -> None:
    """Delete the row holding ``record``'s primary key."""
    meta = _resolve_for("remove", "Unable to remove record", record)
    with _describe("remove", "Unable to remove record", record, meta.tablename):
        key = field_value(record, meta.primary_field())
        _driver(registry).remove(tx, meta.tablename, key)


def all_records(
    model: type[T],
    context: QueryContext | None = None,
    *,
    registry: DriverRegistry | None = None,
) -> list[T]:
    """Every record of ``model``'s table."""
    meta = _resolve_for("all", "Unable to fetch all records", model)
    with _describe("all", "Unable to fetch all records", model, meta.tablename):
        rows = _driver(registry).all(meta.tablename, meta.fields, context or QueryContext())
        return populate_many([], model, rows)


def where_records(
    model: type[T],
    predicate: str,
    args: Sequence[Any] = (),
    context: QueryContext | None = None,
    *,
    registry: DriverRegistry | None = None,
) -> list[T]:
    """Records matching ``predicate``, an opaque string only the driver interprets."""
    meta = _resolve_for("where", "Unable to fetch specific records", model)
    with _describe("where", "Unable to fetch specific records", model, meta.tablename):
        rows = _driver(registry).where(
            meta.tablename, meta.fields, context or QueryContext(), predicate, tuple(args)
        )
        return populate_many([], model, rows)


def first_record(
    target: type[T] | T,
    predicate: str,
    args: Sequence[Any] = (),
    context: QueryContext | None = None,
    *,
    registry: DriverRegistry | None = None,
) -> T:
    """The first record matching ``predicate``; NotFoundError when none does."""
    meta = _resolve_for("first", "Unable to fetch specific record", target)
    with _describe("first", "Unable to fetch specific record", target, meta.tablename):
        row = _driver(registry).first(
            meta.tablename, meta.fields, context or QueryContext(), predicate, tuple(args)
        )
        record = blank(target) if isinstance(target, type) else target
        return populate(record, row)


def exec_statement(
    query: str,
    args: Sequence[Any] = (),
    *,
    tx: TxToken | None = None,
    registry: DriverRegistry | None = None,
) -> None:
    """Pass a raw statement and its positional ``args`` to the active driver."""
    driver = _driver(registry)
    try:
        driver.exec(tx, query, tuple(args))
    except RebeccaError as e:
        e.with_context(operation="exec", driver=driver.name)
        raise
    except Exception as e:
        raise DriverError(f"Unable to execute '{query}' - {e}", cause=e).with_context(
            operation="exec", driver=driver.name
        ) from e


def _resolve_for(
operation: str, failure: str, target: Any) -> ModelDescriptor:
    with _describe(operation, failure, target):
        return resolve(target)


__all__ = [
    "get_record",
    "save_record",
    "remove_record",
    "all_records",
    "where_records",
    "first_record",
    "exec_statement",
]
