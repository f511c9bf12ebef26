"""Tests for ``rebecca.errors``."""

import pytest

from rebecca.errors import (
    DriverError,
    DriverNotConfiguredError,
    ErrorCategory,
    ErrorContext,
    FieldNotFoundError,
    InvalidQueryContextError,
    MissingTableNameError,
    NoPrimaryFieldError,
    NotFoundError,
    QueryNotRegisteredError,
    RebeccaError,
    RecoveredFault,
    TransactionAlreadyFinishedError,
)


class TestErrorContext:
    def test_empty(self):
        ctx = ErrorContext()
        assert ctx.operation is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_skips_unset(self):
        ctx = ErrorContext(operation="get", table="people", metadata={"attempt": 1})
        assert ctx.to_dict() == {"operation": "get", "table": "people", "attempt": 1}


class TestRebeccaError:
    def test_default_category(self):
        assert RebeccaError("boom").category == ErrorCategory.DRIVER

    def test_cause_chained(self):
        cause = OSError("io")
        error = DriverError("wrapped", cause=cause)
        assert error.cause is cause
        assert error.__cause__ is cause

    def test_with_context_is_fluent(self):
        error = NotFoundError("missing")
        assert error.with_context(operation="get") is error
        assert error.context.operation == "get"

    def test_with_context_keeps_inner_values(self):
        error = NotFoundError("missing").with_context(operation="first")
        error.with_context(operation="get", table="people")
        assert error.context.operation == "first"
        assert error.context.table == "people"

    def test_with_context_unknown_keys_go_to_metadata(self):
        error = DriverError("x").with_context(statement="SELECT 1")
        assert error.context.metadata == {"statement": "SELECT 1"}

    def test_to_dict(self):
        error = DriverError("bad", cause=ValueError("v")).with_context(driver="SQLDriver")
        assert error.to_dict() == {
            "error_type": "DriverError",
            "message": "bad",
            "category": "DRIVER",
            "context": {"driver": "SQLDriver"},
            "cause": "v",
        }

    def test_repr(self):
        assert repr(NotFoundError("gone")) == "NotFoundError('gone', category=NOT_FOUND)"


class TestErrorCategories:
    @pytest.mark.parametrize(
        ("error", "category"),
        [
            (MissingTableNameError("x"), ErrorCategory.RESOLUTION),
            (FieldNotFoundError("age", object()), ErrorCategory.MAPPING),
            (NoPrimaryFieldError("people"), ErrorCategory.PRIMARY_KEY),
            (NotFoundError("x"), ErrorCategory.NOT_FOUND),
            (QueryNotRegisteredError("p"), ErrorCategory.QUERY),
            (TransactionAlreadyFinishedError(), ErrorCategory.TRANSACTION),
            (RecoveredFault(ValueError("v")), ErrorCategory.FAULT),
            (DriverNotConfiguredError(), ErrorCategory.CONFIG),
            (InvalidQueryContextError("x"), ErrorCategory.VALIDATION),
        ],
    )
    def test_category(self, error, category):
        assert error.category == category
        assert isinstance(error, RebeccaError)


class TestMessages:
    def test_transaction_already_finished(self):
        assert str(TransactionAlreadyFinishedError()) == (
            "Unable to commit transaction - Current transaction is already finished"
        )

    def test_query_not_registered(self):
        error = QueryNotRegisteredError("age < ?")
        assert error.predicate == "age < ?"
        assert "'age < ?'" in str(error)
        assert "register_where" in str(error)

    def test_recovered_fault(self):
        fault = ValueError("I have a panic!")
        error = RecoveredFault(fault)
        assert str(error) == "I have a panic! (recovered)"
        assert error.recovered is True
        assert error.fault is fault
