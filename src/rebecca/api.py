"""Top-level record operations outside any transaction.

Each function resolves the model, talks to the active driver of the given
registry (the default registry when omitted) and maps rows back onto
dataclass instances.

Examples:
    >>> setup_driver(MemoryDriver())
    >>> person = save(Person(name="John", age=31))
    >>> person.id
    1
    >>> get(Person, person.id).name
    'John'
"""

from __future__ import annotations

from typing import Any, TypeVar

from rebecca.context import QueryContext
from rebecca.drivers.registry import DriverRegistry
from rebecca.operations import (
    all_records,
    exec_statement,
    first_record,
    get_record,
    remove_record,
    save_record,
    where_records,
)

T = TypeVar("T")


def get(target: type[T] | T, primary_value: Any, *, registry: DriverRegistry | None = None) -> T:
    """Fetch by primary key into a new instance (class given) or in place (instance given)."""
    return get_record(target, primary_value, registry=registry)


def save(record: T, *, registry: DriverRegistry | None = None) -> T:
    """Create the record if its primary key is zero, otherwise update it."""
    return save_record(record, registry=registry)


def remove(record: Any, *, registry: DriverRegistry | None = None) -> None:
    return remove_record(record, registry=registry)


def all(  # noqa: A001
    model: type[T],
    context: QueryContext | None = None,
    *,
    registry: DriverRegistry | None = None,
) -> list[T]:
    return all_records(model, context, registry=registry)


def where(
    model: type[T],
    predicate: str,
    *args: Any,
    context: QueryContext | None = None,
    registry: DriverRegistry | None = None,
) -> list[T]:
    """Records matching ``predicate``; ``args`` are passed to the driver positionally."""
    return where_records(model, predicate, args, context, registry=registry)


def first(
    target: type[T] | T,
    predicate: str,
    *args: Any,
    context: QueryContext | None = None,
    registry: DriverRegistry | None = None,
) -> T:
    return first_record(target, predicate, args, context, registry=registry)


def exec(query: str, *args: Any, registry: DriverRegistry | None = None) -> None:  # noqa: A001
    """Run a raw statement, e.g. ``exec("UPDATE counters SET value = value + 1 WHERE id = ?", 25)``."""
    exec_statement(query, args, registry=registry)


__all__ = [
    "get",
    "save",
    "remove",
    "all",
    "where",
    "first",
    "exec",
]
