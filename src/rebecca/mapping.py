"""Moving values between record instances and field lists.

``extract`` reads a record into a row, ``populate`` writes a row back onto a
record, ``is_new`` decides between insert and update, and ``populate_many``
builds one record per row for bulk reads.

These functions only touch the record passed to them; callers sharing one
mutable record between threads must serialise access themselves.
"""

from __future__ import annotations

import dataclasses
import typing
from collections.abc import Iterable, Sequence
from types import NoneType, UnionType
from typing import Any, TypeVar

from rebecca.errors import FieldNotFoundError, FieldNotSettableError
from rebecca.field import FieldDescriptor
from rebecca.metadata import ModelDescriptor

T = TypeVar("T")


def extract(record: Any, descriptor: ModelDescriptor) -> list[FieldDescriptor]:
    """Read every declared field's current value off ``record``, in descriptor order."""
    return [field_value(record, f) for f in descriptor.fields]


def field_value(record: Any, f: FieldDescriptor) -> FieldDescriptor:
    """Copy of ``f`` carrying the record's current value for it."""
    if not hasattr(record, f.name):
        raise FieldNotFoundError(f.name, record)
    return f.with_value(getattr(record, f.name))


def populate(record: Any, fields: Iterable[FieldDescriptor]) -> Any:
    """Write each field's value onto the matching attribute of ``record``."""
    known = _field_names(record)
    for f in fields:
        if f.name not in known:
            raise FieldNotFoundError(f.name, record)
        try:
            setattr(record, f.name, f.value)
        except (dataclasses.FrozenInstanceError, AttributeError) as e:
            raise FieldNotSettableError(f.name, record, cause=e) from e
    return record


def is_new(record: Any, primary: FieldDescriptor) -> bool:
    """True iff the record's primary value is the zero value of its declared type."""
    if not hasattr(record, primary.name):
        raise FieldNotFoundError(primary.name, record)
    return getattr(record, primary.name) == zero_value(primary.declared_type)


def zero_value(declared_type: Any) -> Any:
    """Zero/default value of a declared type.

    ``int -> 0``, ``str -> ""``, ``Optional[X] -> None``; types that cannot be
    constructed without arguments have ``None`` as their zero value.
    """
    origin = typing.get_origin(declared_type)
    if origin is typing.Union or origin is UnionType:
        if NoneType in typing.get_args(declared_type):
            return None
        declared_type = typing.get_args(declared_type)[0]
        origin = typing.get_origin(declared_type)
    if origin is not None:
        declared_type = origin
    if not isinstance(declared_type, type) or declared_type is NoneType:
        return None
    try:
        return declared_type()
    except TypeError:
        return None


def blank(model: type[T]) -> T:
    """An instance of ``model`` with no field set, ready for ``populate``."""
    return model.__new__(model)


def populate_many(target: list[T], model: type[T], rows: Iterable[Sequence[FieldDescriptor]]) -> list[T]:
    """Append one populated ``model`` instance per row to ``target``, in row order."""
    for row in rows:
        target.append(populate(blank(model), row))
    return target


def _field_names(record: Any) -> set[str]:
    if dataclasses.is_dataclass(record):
        return {f.name for f in dataclasses.fields(record)}
    return set(vars(record)) if hasattr(record, "__dict__") else set()


__all__ = [
    "extract",
    "field_value",
    "populate",
    "is_new",
    "zero_value",
    "blank",
    "populate_many",
]
