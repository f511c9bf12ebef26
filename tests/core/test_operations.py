"""End-to-end tests for the top-level operations in ``rebecca.api``."""

from __future__ import annotations

import pytest

import rebecca
from rebecca.context import QueryContext
from rebecca.drivers.memory import ReceivedExec
from rebecca.drivers.registry import DriverRegistry
from rebecca.errors import (
    DriverError,
    DriverNotConfiguredError,
    FieldNotSettableError,
    MissingMetadataMarkerError,
    NoPrimaryFieldError,
    NotFoundError,
    QueryNotRegisteredError,
)
from tests._support.models import FrozenPerson, Note, Person, Unmarked


class TestSave:
    def test_create_assigns_primary(self, registry):
        person = rebecca.save(Person(name="John", age=31), registry=registry)
        assert person.id == 1

    def test_save_returns_same_record(self, registry):
        person = Person(name="John")
        assert rebecca.save(person, registry=registry) is person

    def test_nonzero_primary_updates(self, registry):
        person = rebecca.save(Person(name="John", age=31), registry=registry)
        person.name = "John Smith"
        rebecca.save(person, registry=registry)
        people = rebecca.all(Person, registry=registry)
        assert [(p.id, p.name) for p in people] == [(1, "John Smith")]

    def test_update_unknown_primary(self, registry):
        with pytest.raises(NotFoundError):
            rebecca.save(Person(id=77, name="Ghost"), registry=registry)

    def test_model_without_primary(self, registry):
        with pytest.raises(NoPrimaryFieldError):
            rebecca.save(Note(text="hi"), registry=registry)


class TestGet:
    def test_round_trip(self, registry):
        saved = rebecca.save(Person(name="John", age=31), registry=registry)
        assert rebecca.get(Person, saved.id, registry=registry) == Person(1, "John", 31)

    def test_into_existing_instance(self, registry):
        rebecca.save(Person(name="John", age=31), registry=registry)
        target = Person()
        result = rebecca.get(target, 1, registry=registry)
        assert result is target
        assert target.name == "John"

    def test_missing(self, registry):
        with pytest.raises(NotFoundError):
            rebecca.get(Person, 5, registry=registry)

    def test_frozen_model(self, registry):
        rebecca.save(Person(name="John"), registry=registry)
        with pytest.raises(FieldNotSettableError):
            rebecca.get(FrozenPerson, 1, registry=registry)


class TestRemove:
    def test_remove(self, registry):
        person = rebecca.save(Person(name="John"), registry=registry)
        rebecca.remove(person, registry=registry)
        assert rebecca.all(Person, registry=registry) == []

    def test_remove_missing(self, registry):
        with pytest.raises(NotFoundError):
            rebecca.remove(Person(id=3), registry=registry)


class TestQueries:
    @pytest.fixture
    def people(self, registry):
        for name, age in [("John", 31), ("Jane", 22), ("Joe", 45)]:
            rebecca.save(Person(name=name, age=age), registry=registry)
        return registry

    def test_all(self, people):
        assert [p.name for p in rebecca.all(Person, registry=people)] == ["John", "Jane", "Joe"]

    def test_all_with_context(self, people):
        ctx = QueryContext().set_order("age").set_limit(1)
        assert len(rebecca.all(Person, ctx, registry=people)) == 3

    def test_where(self, people):
        found = rebecca.where(Person, "age BETWEEN ? AND ?", 20, 35, registry=people)
        assert [p.name for p in found] == ["John", "Jane"]

    def test_where_no_match(self, people):
        assert rebecca.where(Person, "name = ?", "Nobody", registry=people) == []

    def test_where_unregistered(self, people):
        with pytest.raises(QueryNotRegisteredError):
            rebecca.where(Person, "age > ?", 10, registry=people)

    def test_first(self, people):
        assert rebecca.first(Person, "name = ?", "Joe", registry=people).age == 45

    def test_first_into_instance(self, people):
        target = Person()
        rebecca.first(target, "name = ?", "Jane", registry=people)
        assert target.id == 2

    def test_first_not_found(self, people):
        with pytest.raises(NotFoundError, match="Record not found with where query"):
            rebecca.first(Person, "name = ?", "Nobody", registry=people)


class TestErrorContext:
    def test_operation_table_and_model_attached(self, registry):
        with pytest.raises(NotFoundError) as exc_info:
            rebecca.get(Person, 5, registry=registry)
        ctx = exc_info.value.context
        assert (ctx.operation, ctx.table, ctx.model) == ("get", "people", "Person")

    def test_resolution_error_has_operation(self, registry):
        with pytest.raises(MissingMetadataMarkerError) as exc_info:
            rebecca.save(Unmarked(), registry=registry)
        assert exc_info.value.context.operation == "save"
        assert exc_info.value.context.model == "Unmarked"

    def test_foreign_exception_becomes_driver_error(self, registry, memory_driver, monkeypatch):
        def failing_all(table, fields, context):
            raise OSError("connection reset")

        monkeypatch.setattr(memory_driver, "all", failing_all)
        with pytest.raises(DriverError, match="Unable to fetch all records - connection reset") as exc_info:
            rebecca.all(Person, registry=registry)
        assert isinstance(exc_info.value.cause, OSError)
        assert exc_info.value.context.operation == "all"

    def test_no_driver_configured(self):
        with pytest.raises(DriverNotConfiguredError):
            rebecca.get(Person, 1, registry=DriverRegistry())


class TestExec:
    def test_statement_passed_to_driver(self, registry, memory_driver):
        rebecca.exec("SOME QUERY ?, ?", 42, "hello", registry=registry)
        assert memory_driver.received_exec == ReceivedExec(None, "SOME QUERY ?, ?", (42, "hello"))

    def test_default_registry(self, default_driver):
        rebecca.exec("UPDATE counters SET value = value + 1 WHERE id = ?", 25)
        assert default_driver.received_exec.args == (25,)

    def test_foreign_exception_becomes_driver_error(self, registry, memory_driver, monkeypatch):
        def failing_exec(tx, query, args=()):
            raise OSError("connection reset")

        monkeypatch.setattr(memory_driver, "exec", failing_exec)
        with pytest.raises(DriverError, match="Unable to execute 'VACUUM' - connection reset") as exc_info:
            rebecca.exec("VACUUM", registry=registry)
        assert exc_info.value.context.operation == "exec"
        assert exc_info.value.context.driver == "MemoryDriver"


class TestEndToEnd:
    def test_create_rename_in_transaction(self, default_driver):
        """Create John (31), rename him to John Smith in a transaction, read him back."""
        person = rebecca.save(Person(name="John", age=31))
        assert person.id == 1

        with rebecca.begin() as tx:
            loaded = tx.get(Person, person.id)
            loaded.name = "John Smith"
            tx.save(loaded)
            assert rebecca.get(Person, person.id).name == "John"
            tx.commit()

        assert rebecca.get(Person, person.id) == Person(1, "John Smith", 31)

    def test_rolled_back_rename_is_discarded(self, default_driver):
        person = rebecca.save(Person(name="John", age=31))
        tx = rebecca.begin()
        loaded = tx.get(Person, person.id)
        loaded.name = "John Smith"
        tx.save(loaded)
        tx.rollback()
        assert rebecca.get(Person, person.id).name == "John"
