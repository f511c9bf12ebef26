"""
Transactions over the active driver.

A :class:`Transaction` wraps the opaque token a driver hands out from
``begin()`` and tracks whether it is still usable.  Record operations
issued through the transaction run under its token; ``commit`` makes their
effects visible, ``rollback`` discards them.

Manifesto:
    Finishing a transaction twice is a programming error on commit and a
    harmless no-op on rollback, so cleanup code can always call
    ``rollback()`` without checking state first.

    Code that wants all-or-nothing semantics should not hand-roll
    begin/commit/rollback.  :func:`transact` does it once, correctly:
    library errors come back unchanged, anything else is reported as a
    recovered fault, and the transaction is always finished.

Architecture:
    ::

        begin(registry) ──► driver.begin() ──► Transaction(ACTIVE)
                                                   │
                          get/save/remove/all/where/first/exec (token bound)
                                                   │
                             ┌─────────────────────┴────────────────┐
                             ▼                                      ▼
                        commit()                               rollback()
                     ACTIVE → COMMITTED                  ACTIVE → ROLLED_BACK
                     else AlreadyFinished                else no-op

        transact(fn):
            fn(tx) returns         → commit, return result
            fn raises RebeccaError → rollback, re-raise unchanged
            fn raises Exception    → rollback, RecoveredFault("<msg> (recovered)")
            KeyboardInterrupt etc. → rollback, propagate

Examples:
    >>> with begin() as tx:
    ...     person = tx.get(Person, 1)
    ...     person.name = "John Smith"
    ...     tx.save(person)
    ...     tx.commit()

    >>> def rename(tx):
    ...     person = tx.get(Person, 1)
    ...     person.name = "John Smith"
    ...     return tx.save(person)
    >>> transact(rename)

Guardrails:
    ❌ DON'T: Reuse a transaction after commit
    ✅ DO: Begin a new one; commit on a finished transaction raises

    ❌ DON'T: Catch exceptions inside ``fn`` just to roll back
    ✅ DO: Let them escape; ``transact`` rolls back for you

Tags:
    rebecca, transaction, unit-of-work, rollback, fault-recovery

Doc-Types:
    - API Reference
    - Usage Guide
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from rebecca.context import QueryContext
from rebecca.drivers.base import Driver, TxToken
from rebecca.drivers.registry import DriverRegistry, default_registry
from rebecca.errors import (
    DriverError,
    RebeccaError,
    RecoveredFault,
    TransactionAlreadyFinishedError,
)
from rebecca.logging import get_logger
from rebecca.operations import (
    all_records,
    exec_statement,
    first_record,
    get_record,
    remove_record,
    save_record,
    where_records,
)

logger = get_logger(__name__)

T = TypeVar("T")


class TransactionState(str, Enum):
    """Lifecycle of a transaction."""

    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """
    A unit of work bound to the driver that started it.

    Use as a context manager to guarantee cleanup: leaving the block rolls
    back, which does nothing if ``commit()`` already succeeded.
    """

    def __init__(self, token: TxToken, driver: Driver, registry: DriverRegistry | None = None):
        self._token = token
        self._driver = driver
        self._registry = registry
        self._state = TransactionState.ACTIVE

    @property
    def token(self) -> TxToken:
        return self._token

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._state is not TransactionState.ACTIVE

    # -- Lifecycle ---------------------------------------------------------

    def commit(self) -> None:
        """Make the transaction's writes visible.

        Raises:
            TransactionAlreadyFinishedError: if already committed or rolled back.
            DriverError: if the driver fails; the transaction stays ACTIVE.
        """
        if self.finished:
            raise TransactionAlreadyFinishedError()

        try:
            self._driver.commit(self._token)
        except RebeccaError:
            raise
        except Exception as e:
            raise DriverError(f"Unable to commit transaction - {e}", cause=e) from e

        self._state = TransactionState.COMMITTED
        logger.debug("transaction_committed", driver=self._driver.name)

    def rollback(self) -> None:
        """Discard the transaction's writes. No-op when already finished."""
        if self.finished:
            return
        self._driver.rollback(self._token)
        self._state = TransactionState.ROLLED_BACK
        logger.debug("transaction_rolled_back", driver=self._driver.name)

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.rollback()

    # -- Record operations -------------------------------------------------

    def context(self, ctx: QueryContext | None = None) -> QueryContext:
        """``ctx`` (or an empty context) bound to this transaction's token."""
        return (ctx or QueryContext()).bind_tx(self._token)

    def get(self, target: type[T] | T, primary_value: Any) -> T:
        return get_record(target, primary_value, tx=self._token, registry=self._registry)

    def save(self, record: T) -> T:
        return save_record(record, tx=self._token, registry=self._registry)

    def remove(self, record: Any) -> None:
        remove_record(record, tx=self._token, registry=self._registry)

    def all(self, model: type[T], context: QueryContext | None = None) -> list[T]:
        return all_records(model, self.context(context), registry=self._registry)

    def where(
        self,
        model: type[T],
        predicate: str,
        *args: Any,
        context: QueryContext | None = None,
    ) -> list[T]:
        return where_records(model, predicate, args, self.context(context), registry=self._registry)

    def first(
        self,
        target: type[T] | T,
        predicate: str,
        *args: Any,
        context: QueryContext | None = None,
    ) -> T:
        return first_record(target, predicate, args, self.context(context), registry=self._registry)

    def exec(self, query: str, *args: Any) -> None:
        exec_statement(query, args, tx=self._token, registry=self._registry)

    def __repr__(self) -> str:
        return f"Transaction(driver={self._driver.name!r}, state={self._state.value})"


def begin(registry: DriverRegistry | None = None) -> Transaction:
    """Start a transaction on the active driver of ``registry``."""
    driver = (registry or default_registry).current()
    try:
        token = driver.begin()
    except Exception as e:
        raise DriverError(f"Unable to begin transaction - {e}", cause=e).with_context(
            operation="begin", driver=driver.name
        ) from e

    logger.debug("transaction_begun", driver=driver.name)
    return Transaction(token, driver, registry)


def transact(fn: Callable[[Transaction], T], registry: DriverRegistry | None = None) -> T:
    """
    Run ``fn`` inside a transaction and commit if it returns.

    A ``RebeccaError`` raised by ``fn`` rolls back and propagates unchanged.
    Any other ``Exception`` rolls back and is raised as ``RecoveredFault``
    with the original chained.  ``KeyboardInterrupt`` and friends roll back
    and propagate as they are.

    Application errors that should come back unchanged rather than as a
    recovered fault must subclass ``RebeccaError``.
    """
    tx = begin(registry)
    try:
        result = fn(tx)
    except RebeccaError:
        tx.rollback()
        raise
    except Exception as e:
        tx.rollback()
        logger.warning("transaction_fault_recovered", error=str(e), error_type=type(e).__name__)
        raise RecoveredFault(e) from e
    except BaseException:
        tx.rollback()
        raise

    tx.commit()
    return result


__all__ = [
    "TransactionState",
    "Transaction",
    "begin",
    "transact",
]
