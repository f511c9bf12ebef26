"""Field value bag: the interchange record between the mapper and drivers.

A row travelling to or from a driver is a ``list[FieldDescriptor]`` in model
declaration order.  Descriptors are frozen; a value is attached with
:meth:`FieldDescriptor.with_value`, which returns a fresh copy, so no
descriptor carries identity across calls.

Tags:
    rebecca, field, row, interchange
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

Row = list["FieldDescriptor"]


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One field of a record.

    Attributes:
        name: Logical (attribute) name on the record class
        storage_name: Column name used by drivers
        primary: Whether this field is the primary key
        declared_type: Resolved type annotation of the field
        value: Current value (``None`` in descriptors fresh from resolution)
    """

    name: str
    storage_name: str
    primary: bool = False
    declared_type: Any = None
    value: Any = None

    def with_value(self, value: Any) -> FieldDescriptor:
        """Return a copy of this descriptor carrying ``value``."""
        return replace(self, value=value)


def find_field(fields: Sequence[FieldDescriptor], storage_name: str) -> FieldDescriptor | None:
    """Return the field stored under ``storage_name``, or None.

    Handy inside reference-driver predicate callbacks::

        driver.register_where("age < ?", lambda row, age: find_field(row, "age").value < age)
    """
    for f in fields:
        if f.storage_name == storage_name:
            return f
    return None


def primary_of(fields: Sequence[FieldDescriptor]) -> FieldDescriptor | None:
    """Return the primary field of a row, or None."""
    for f in fields:
        if f.primary:
            return f
    return None


__all__ = [
    "FieldDescriptor",
    "Row",
    "find_field",
    "primary_of",
]
