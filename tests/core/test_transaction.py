"""Tests for ``rebecca.transaction``: Transaction, begin and transact."""

from __future__ import annotations

import pytest

from rebecca import all, get, save
from rebecca.context import QueryContext
from rebecca.drivers.base import Driver
from rebecca.drivers.registry import DriverRegistry
from rebecca.errors import (
    DriverError,
    NotFoundError,
    RebeccaError,
    RecoveredFault,
    TransactionAlreadyFinishedError,
)
from rebecca.operations import exec_statement
from rebecca.transaction import Transaction, TransactionState, begin, transact
from tests._support.models import Person


class NoTransactionsDriver(Driver):
    """Driver whose begin() always fails."""

    def get(self, tx, table, fields, primary):
        raise NotImplementedError

    def create(self, tx, table, fields, primary):
        raise NotImplementedError

    def update(self, tx, table, fields, primary):
        raise NotImplementedError

    def all(self, table, fields, context):
        return []

    def where(self, table, fields, context, predicate, args=()):
        return []

    def remove(self, tx, table, primary):
        raise NotImplementedError

    def has_transactions(self):
        return False

    def begin(self):
        raise RuntimeError("transactions are not supported")

    def rollback(self, tx):
        pass

    def commit(self, tx):
        raise RuntimeError("transactions are not supported")


class TestTransactionLifecycle:
    def test_begin_is_active(self, registry):
        tx = begin(registry)
        assert isinstance(tx, Transaction)
        assert tx.state is TransactionState.ACTIVE
        assert tx.finished is False

    def test_commit(self, registry):
        tx = begin(registry)
        tx.commit()
        assert tx.state is TransactionState.COMMITTED

    def test_commit_twice(self, registry):
        tx = begin(registry)
        tx.commit()
        with pytest.raises(TransactionAlreadyFinishedError) as exc_info:
            tx.commit()
        assert str(exc_info.value) == (
            "Unable to commit transaction - Current transaction is already finished"
        )

    def test_commit_after_rollback(self, registry):
        tx = begin(registry)
        tx.rollback()
        with pytest.raises(TransactionAlreadyFinishedError):
            tx.commit()

    def test_rollback_after_commit_is_noop(self, registry):
        tx = begin(registry)
        tx.commit()
        tx.rollback()
        assert tx.state is TransactionState.COMMITTED

    def test_rollback_twice_is_noop(self, registry):
        tx = begin(registry)
        tx.rollback()
        tx.rollback()
        assert tx.state is TransactionState.ROLLED_BACK

    def test_begin_failure_wrapped(self):
        registry = DriverRegistry(NoTransactionsDriver())
        with pytest.raises(DriverError, match="Unable to begin transaction - transactions are not supported"):
            begin(registry)

    def test_driver_commit_failure_keeps_active(self, registry, memory_driver, monkeypatch):
        tx = begin(registry)

        def failing_commit(token):
            raise RuntimeError("disk full")

        monkeypatch.setattr(memory_driver, "commit", failing_commit)
        with pytest.raises(DriverError, match="Unable to commit transaction - disk full"):
            tx.commit()
        assert tx.state is TransactionState.ACTIVE


class TestTransactionContextManager:
    def test_exit_without_commit_rolls_back(self, registry):
        with begin(registry) as tx:
            tx.save(Person(name="John", age=31))
        assert tx.state is TransactionState.ROLLED_BACK
        assert all(Person, registry=registry) == []

    def test_exit_after_commit_keeps_writes(self, registry):
        with begin(registry) as tx:
            tx.save(Person(name="John", age=31))
            tx.commit()
        assert tx.state is TransactionState.COMMITTED
        assert [p.name for p in all(Person, registry=registry)] == ["John"]

    def test_exception_in_block_rolls_back(self, registry):
        with pytest.raises(ValueError):
            with begin(registry) as tx:
                tx.save(Person(name="John"))
                raise ValueError("stop")
        assert all(Person, registry=registry) == []


class TestTransactionOperations:
    def test_writes_visible_inside_only(self, registry):
        tx = begin(registry)
        person = tx.save(Person(name="John", age=31))
        assert tx.get(Person, person.id) == person
        assert [p.name for p in tx.all(Person)] == ["John"]
        assert all(Person, registry=registry) == []
        with pytest.raises(NotFoundError):
            get(Person, person.id, registry=registry)
        tx.commit()
        assert get(Person, person.id, registry=registry) == person

    def test_where_and_first(self, registry):
        tx = begin(registry)
        tx.save(Person(name="John", age=31))
        tx.save(Person(name="Jane", age=22))
        assert [p.name for p in tx.where(Person, "age BETWEEN ? AND ?", 30, 40)] == ["John"]
        assert tx.first(Person, "name = ?", "Jane").age == 22

    def test_remove(self, registry):
        person = save(Person(name="John"), registry=registry)
        tx = begin(registry)
        tx.remove(person)
        assert tx.all(Person) == []
        assert len(all(Person, registry=registry)) == 1
        tx.commit()
        assert all(Person, registry=registry) == []

    def test_context_binds_token(self, registry):
        tx = begin(registry)
        ctx = tx.context(QueryContext().set_limit(3))
        assert ctx.get_tx() is tx.token
        assert ctx.get_limit() == 3

    def test_context_default(self, registry):
        tx = begin(registry)
        assert tx.context().get_tx() is tx.token

    def test_exec_carries_token(self, registry, memory_driver):
        tx = begin(registry)
        tx.exec("SOME QUERY ?, ?", 42, "hello")
        received = memory_driver.received_exec
        assert received.tx is tx.token
        assert (received.query, received.args) == ("SOME QUERY ?, ?", (42, "hello"))

    def test_exec_after_commit_rejected(self, registry):
        tx = begin(registry)
        tx.commit()
        with pytest.raises(DriverError, match="already finished"):
            tx.exec("SOME QUERY")

    def test_exec_unsupported_by_driver(self):
        with pytest.raises(DriverError, match="NoTransactionsDriver does not support exec"):
            exec_statement("SOME QUERY", registry=DriverRegistry(NoTransactionsDriver()))


class TestTransact:
    def test_commits_and_returns_result(self, registry):
        result = transact(lambda tx: tx.save(Person(name="John", age=31)), registry)
        assert result.id == 1
        assert get(Person, 1, registry=registry).name == "John"

    def test_library_error_propagates_unchanged(self, registry):
        error = NotFoundError("nothing here")

        def fn(tx):
            tx.save(Person(name="John"))
            raise error

        with pytest.raises(NotFoundError) as exc_info:
            transact(fn, registry)
        assert exc_info.value is error
        assert all(Person, registry=registry) == []

    def test_application_error_subclass_propagates_unchanged(self, registry):
        class OutOfStock(RebeccaError):
            pass

        error = OutOfStock("no more widgets")

        def fn(tx):
            tx.save(Person(name="John"))
            raise error

        with pytest.raises(OutOfStock) as exc_info:
            transact(fn, registry)
        assert exc_info.value is error
        assert all(Person, registry=registry) == []

    def test_error_from_operation_propagates(self, registry):
        with pytest.raises(NotFoundError):
            transact(lambda tx: tx.get(Person, 99), registry)

    def test_fault_is_recovered(self, registry):
        def fn(tx):
            tx.save(Person(name="John"))
            raise ValueError("I have a panic!")

        with pytest.raises(RecoveredFault) as exc_info:
            transact(fn, registry)
        fault = exc_info.value
        assert str(fault) == "I have a panic! (recovered)"
        assert fault.recovered is True
        assert isinstance(fault.__cause__, ValueError)
        assert isinstance(fault, RebeccaError)
        assert all(Person, registry=registry) == []

    def test_keyboard_interrupt_not_masked(self, registry):
        def fn(tx):
            tx.save(Person(name="John"))
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            transact(fn, registry)
        assert all(Person, registry=registry) == []

    def test_default_registry(self, default_driver):
        person = transact(lambda tx: tx.save(Person(name="John")))
        assert get(Person, person.id).name == "John"
