"""
Model descriptor resolution.

Turns a record class into a :class:`ModelDescriptor`: its table name, its
ordered field list and its primary field.  Records are plain dataclasses that
declare a :class:`ModelMetadata` marker and, optionally, per-field
:func:`column` annotations.

Manifesto:
    Drivers never look at record classes.  They receive table names and
    field lists, so the declaration surface can evolve without touching any
    backend.  Resolution depends only on the class, never on an instance,
    which makes the per-class cache safe.

Architecture:
    ::

        @dataclass
        class Person:
            __table__: ClassVar[ModelMetadata] = ModelMetadata("people")
            id: int = column("id", primary=True, default=0)
            name: str = column("name", default="")
            age: int = 0
                    │
                    ▼  resolve(Person)
        ModelDescriptor(
            tablename="people",
            fields=(id*, name, age),     # declaration order, marker excluded
            primary=id,
        )

Examples:
    >>> descriptor = resolve(Person)
    >>> descriptor.tablename
    'people'
    >>> [f.storage_name for f in descriptor.fields]
    ['id', 'name', 'age']

Guardrails:
    ❌ DON'T: Report a missing primary key at resolve time
    ✅ DO: Call ``primary_field()`` where a key is actually required

Tags:
    rebecca, metadata, descriptor, dataclass, resolution

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import dataclasses
import functools
import typing
from dataclasses import MISSING, dataclass
from typing import Any

from rebecca.errors import (
    MissingMetadataMarkerError,
    MissingTableNameError,
    NoPrimaryFieldError,
    NotADataclassError,
    ResolutionError,
)
from rebecca.field import FieldDescriptor

COLUMN_KEY = "rebecca"


@dataclass(frozen=True)
class ModelMetadata:
    """Table-level marker declared as a ``ClassVar`` on every model."""

    tablename: str = ""


@dataclass(frozen=True)
class ColumnSpec:
    """Per-field mapping stored in dataclass field metadata under ``COLUMN_KEY``."""

    storage_name: str | None = None
    primary: bool = False


def column(
    storage_name: str | None = None,
    *,
    primary: bool = False,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    **kwargs: Any,
) -> Any:
    """Declare a mapped dataclass field.

    Args:
        storage_name: Column name; the attribute name is used when omitted.
        primary: Mark the field as the primary key.
        default, default_factory, **kwargs: Forwarded to ``dataclasses.field``.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[COLUMN_KEY] = ColumnSpec(storage_name=storage_name, primary=primary)
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **kwargs,
    )


@dataclass(frozen=True)
class ModelDescriptor:
    """Resolved, read-only metadata for one record class."""

    tablename: str
    fields: tuple[FieldDescriptor, ...]
    primary: FieldDescriptor | None = None

    def primary_field(self) -> FieldDescriptor:
        """The primary field; raises ``NoPrimaryFieldError`` when none is declared."""
        if self.primary is None:
            raise NoPrimaryFieldError(self.tablename)
        return self.primary


def model_type(shape: Any) -> type:
    """Class of ``shape``, which may be a model class or an instance."""
    return shape if isinstance(shape, type) else type(shape)


def resolve(shape: Any) -> ModelDescriptor:
    """Resolve the descriptor for a model class or instance.

    Raises:
        NotADataclassError: shape is not a dataclass
        MissingMetadataMarkerError: no ModelMetadata marker declared
        MissingTableNameError: marker has an empty table name
    """
    return _resolve_type(model_type(shape))


@functools.lru_cache(maxsize=None)
def _resolve_type(cls: type) -> ModelDescriptor:
    if not dataclasses.is_dataclass(cls):
        raise NotADataclassError(
            f"rebecca's model is required to be a dataclass, but got: {cls!r}"
        )

    marker = _find_marker(cls)
    if marker is None:
        raise MissingMetadataMarkerError(
            f"rebecca's model is required to declare a ModelMetadata marker: {cls.__qualname__}"
        )
    if not marker.tablename:
        raise MissingTableNameError(
            f"tablename is missing on the ModelMetadata marker of {cls.__qualname__}"
        )

    try:
        hints = typing.get_type_hints(cls)
    except NameError as e:
        raise ResolutionError(
            f"Unable to resolve type annotations of {cls.__qualname__} - {e}", cause=e
        ) from e

    fields: list[FieldDescriptor] = []
    primary: FieldDescriptor | None = None
    for f in dataclasses.fields(cls):
        spec = f.metadata.get(COLUMN_KEY) or ColumnSpec()
        descriptor = FieldDescriptor(
            name=f.name,
            storage_name=spec.storage_name or f.name,
            primary=spec.primary,
            declared_type=hints.get(f.name, f.type),
        )
        if descriptor.primary:
            if primary is not None:
                raise ResolutionError(
                    f"{cls.__qualname__} declares more than one primary field: "
                    f"{primary.name}, {descriptor.name}"
                )
            primary = descriptor
        fields.append(descriptor)

    return ModelDescriptor(tablename=marker.tablename, fields=tuple(fields), primary=primary)


def _find_marker(cls: type) -> ModelMetadata | None:
    for klass in cls.__mro__:
        for value in vars(klass).values():
            if isinstance(value, ModelMetadata):
                return value
    return None


__all__ = [
    "COLUMN_KEY",
    "ModelMetadata",
    "ColumnSpec",
    "column",
    "ModelDescriptor",
    "model_type",
    "resolve",
]
