"""Immutable query context.

A :class:`QueryContext` bundles ordering, grouping, limit, skip and the
transaction token a read should run under.  Every setter returns a new
context with exactly one field changed; the token travels along.

Drivers read the context through the ``get_*`` accessors.  Backends that
render SQL compose the clauses in the fixed order group → order → limit →
skip and leave out empty or zero clauses, so identical contexts mean the
same thing on every driver.

Examples:
    >>> base = QueryContext()
    >>> paged = base.set_order("age ASC").set_limit(30).set_skip(90)
    >>> base.get_limit(), paged.get_limit()
    (0, 30)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from rebecca.errors import InvalidQueryContextError

if TYPE_CHECKING:
    from rebecca.drivers.base import TxToken


@dataclass(frozen=True)
class QueryContext:
    """Ordering, grouping, limit, skip and an optional transaction token."""

    order: str = ""
    group: str = ""
    limit: int = 0
    skip: int = 0
    tx: TxToken | None = None

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise InvalidQueryContextError(f"limit must be >= 0, got {self.limit}")
        if self.skip < 0:
            raise InvalidQueryContextError(f"skip must be >= 0, got {self.skip}")

    # -- Accessors (used by drivers) ---------------------------------------

    def get_order(self) -> str:
        return self.order

    def get_group(self) -> str:
        return self.group

    def get_limit(self) -> int:
        return self.limit

    def get_skip(self) -> int:
        return self.skip

    def get_tx(self) -> TxToken | None:
        return self.tx

    # -- Copy-on-write setters ---------------------------------------------

    def set_order(self, order: str) -> QueryContext:
        return replace(self, order=order)

    def set_group(self, group: str) -> QueryContext:
        return replace(self, group=group)

    def set_limit(self, limit: int) -> QueryContext:
        return replace(self, limit=limit)

    def set_skip(self, skip: int) -> QueryContext:
        return replace(self, skip=skip)

    def bind_tx(self, tx: TxToken | None) -> QueryContext:
        """Copy of this context running under transaction token ``tx``."""
        return replace(self, tx=tx)


__all__ = [
    "QueryContext",
]
