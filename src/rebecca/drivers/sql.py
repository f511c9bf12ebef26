"""
Database-backed driver over a DB-API 2.0 adapter.

``SQLDriver`` renders each driver operation as one parameterised SQL
statement and runs it through a :class:`~rebecca.adapters.DatabaseAdapter`.
Column names are the fields' storage names; the table name is the model's
table name.  ``where`` predicates are SQL boolean expressions written with
the adapter dialect's placeholders.

Architecture:
    ::

        get     SELECT <cols> FROM t WHERE <pk> = ? LIMIT 1
        create  INSERT INTO t (<cols - pk>) VALUES (...) RETURNING <pk>
        update  UPDATE t SET a = ?, b = ? WHERE <pk> = ?
        remove  DELETE FROM t WHERE <pk> = ?
        all     SELECT <cols> FROM t [GROUP BY] [ORDER BY] [LIMIT] [OFFSET]
        where   SELECT <cols> FROM t WHERE (<predicate>) [suffix]
        exec    <query> as given

        tx is None         → adapter's shared connection, commit per statement
        BackendToken(conn) → the transaction's dedicated connection

Examples:
    >>> adapter = SQLiteAdapter("app.db")
    >>> setup_driver(SQLDriver(adapter))
    >>> where(Person, "age > ?", 30, context=QueryContext().set_order("age DESC"))

Guardrails:
    ❌ DON'T: Format user values into the predicate
    ✅ DO: Use placeholders and pass values as ``args``

    ❌ DON'T: Keep using a token after commit or rollback
    ✅ DO: Begin a new transaction; the old connection is closed

Tags:
    rebecca, driver, sql, sqlite, postgresql, db-api

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from rebecca.adapters.base import Connection, DatabaseAdapter
from rebecca.context import QueryContext
from rebecca.dialect import Dialect
from rebecca.drivers.base import BackendToken, Driver, TxToken
from rebecca.errors import DriverError, NotFoundError, RebeccaError
from rebecca.field import FieldDescriptor, Row
from rebecca.logging import get_logger

logger = get_logger(__name__)

R = TypeVar("R")


def query_suffix(context: QueryContext, dialect: Dialect) -> str:
    """``GROUP BY``, ``ORDER BY``, ``LIMIT`` and ``OFFSET`` clauses, in that order.

    Empty strings and zero values leave their clause out.

    >>> query_suffix(QueryContext(order="age DESC", limit=10), SQLiteDialect())
    'ORDER BY age DESC LIMIT 10'
    """
    parts = []
    if context.get_group():
        parts.append(f"GROUP BY {context.get_group()}")
    if context.get_order():
        parts.append(f"ORDER BY {context.get_order()}")
    tail = dialect.limit_offset(context.get_limit(), context.get_skip())
    if tail:
        parts.append(tail)
    return " ".join(parts)


class SQLDriver(Driver):
    """Driver that stores each model in a SQL table."""

    def __init__(self, adapter: DatabaseAdapter):
        self._adapter = adapter
        self._dialect = adapter.dialect
        self._active: set[int] = set()
        self._active_lock = threading.Lock()

    @property
    def adapter(self) -> DatabaseAdapter:
        return self._adapter

    # -- Reads -------------------------------------------------------------

    def get(
        self,
        tx: TxToken | None,
        table: str,
        fields: Sequence[FieldDescriptor],
        primary: FieldDescriptor,
    ) -> Row:
        sql = (
            f"SELECT {_columns(fields)} FROM {table} "
            f"WHERE {primary.storage_name} = {self._dialect.placeholder(0)} LIMIT 1"
        )
        row = self._run(tx, sql, (primary.value,), lambda cursor: cursor.fetchone())
        if row is None:
            raise NotFoundError(f"Unable to find record with {primary.storage_name}={primary.value!r}")
        return _to_row(fields, row)

    def all(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        context: QueryContext,
    ) -> list[Row]:
        sql = self._select(table, fields, context)
        rows = self._run(context.get_tx(), sql, (), lambda cursor: cursor.fetchall())
        return [_to_row(fields, row) for row in rows]

    def where(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        context: QueryContext,
        predicate: str,
        args: Sequence[Any] = (),
    ) -> list[Row]:
        sql = self._select(table, fields, context, predicate)
        rows = self._run(context.get_tx(), sql, tuple(args), lambda cursor: cursor.fetchall())
        return [_to_row(fields, row) for row in rows]

    # -- Writes ------------------------------------------------------------

    def create(
        self,
        tx: TxToken | None,
        table: str,
        fields: Sequence[FieldDescriptor],
        primary: FieldDescriptor,
    ) -> Any:
        values = [f for f in fields if not f.primary]
        if values:
            sql = (
                f"INSERT INTO {table} ({_columns(values)}) "
                f"VALUES ({self._dialect.placeholders(len(values))}) "
                f"RETURNING {primary.storage_name}"
            )
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES RETURNING {primary.storage_name}"
        row = self._run(tx, sql, tuple(f.value for f in values), lambda cursor: cursor.fetchone())
        if row is None:
            raise DriverError(f"Insert into {table} returned no primary key")
        return row[0]

    def update(
        self,
        tx: TxToken | None,
        table: str,
        fields: Sequence[FieldDescriptor],
        primary: FieldDescriptor,
    ) -> None:
        values = [f for f in fields if not f.primary]
        if not values:
            return
        assignments = ", ".join(
            f"{f.storage_name} = {self._dialect.placeholder(i)}" for i, f in enumerate(values)
        )
        sql = (
            f"UPDATE {table} SET {assignments} "
            f"WHERE {primary.storage_name} = {self._dialect.placeholder(len(values))}"
        )
        params = (*(f.value for f in values), primary.value)
        count = self._run(tx, sql, params, lambda cursor: cursor.rowcount)
        if count == 0:
            raise NotFoundError(
                f"Unable to find record with {primary.storage_name}={primary.value!r} in table {table}"
            )

    def remove(
        self,
        tx: TxToken | None,
        table: str,
        primary: FieldDescriptor,
    ) -> None:
        sql = f"DELETE FROM {table} WHERE {primary.storage_name} = {self._dialect.placeholder(0)}"
        count = self._run(tx, sql, (primary.value,), lambda cursor: cursor.rowcount)
        if count == 0:
            raise NotFoundError(
                f"Unable to find record with {primary.storage_name}={primary.value!r} in table {table}"
            )

    # -- Raw statements ----------------------------------------------------

    def exec(
        self,
        tx: TxToken | None,
        query: str,
        args: Sequence[Any] = (),
    ) -> None:
        """Run ``query`` as written, binding ``args`` to the dialect's placeholders."""
        self._run(tx, query, tuple(args), lambda cursor: None)

    # -- Transactions ------------------------------------------------------

    def has_transactions(self) -> bool:
        return True

    def begin(self) -> BackendToken:
        try:
            conn = self._adapter.open_connection()
        except RebeccaError:
            raise
        except Exception as e:
            raise DriverError(f"Unable to open transaction connection - {e}", cause=e) from e
        with self._active_lock:
            self._active.add(id(conn))
        return BackendToken(conn)

    def commit(self, tx: TxToken) -> None:
        conn = self._connection(tx)
        try:
            conn.commit()
        except Exception as e:
            raise DriverError(f"Unable to commit transaction - {e}", cause=e) from e
        finally:
            self._release(conn)

    def rollback(self, tx: TxToken) -> None:
        match tx:
            case BackendToken(connection=conn) if self._is_active(conn):
                try:
                    conn.rollback()
                except Exception as e:
                    logger.warning("rollback_failed", driver=self.name, error=str(e))
                finally:
                    self._release(conn)
            case _:
                logger.warning("rollback_ignored", driver=self.name, token=type(tx).__name__)

    # -- Internals ---------------------------------------------------------

    def _select(
        self,
        table: str,
        fields: Sequence[FieldDescriptor],
        context: QueryContext,
        predicate: str | None = None,
    ) -> str:
        parts = [f"SELECT {_columns(fields)} FROM {table}"]
        if predicate:
            parts.append(f"WHERE ({predicate})")
        suffix = query_suffix(context, self._dialect)
        if suffix:
            parts.append(suffix)
        return " ".join(parts)

    def _run(
        self,
        tx: TxToken | None,
        sql: str,
        params: tuple,
        fetch: Callable[[Any], R],
    ) -> R:
        conn = self._adapter.get_connection() if tx is None else self._connection(tx)
        cursor = conn.cursor()
        try:
            cursor.execute(sql, params)
            result = fetch(cursor)
            if tx is None:
                conn.commit()
        except Exception as e:
            if tx is None:
                conn.rollback()
            raise DriverError(f"Unable to execute '{sql}' - {e}", cause=e) from e
        finally:
            cursor.close()

        logger.debug("sql_executed", statement=sql, in_transaction=tx is not None)
        return result

    def _connection(self, tx: TxToken | None) -> Connection:
        match tx:
            case BackendToken(connection=conn) if self._is_active(conn):
                return conn
            case BackendToken():
                raise DriverError("SQLDriver transaction is already finished")
            case _:
                raise DriverError(f"SQLDriver cannot use transaction token {tx!r}")

    def _is_active(self, conn: Any) -> bool:
        with self._active_lock:
            return id(conn) in self._active

    def _release(self, conn: Any) -> None:
        with self._active_lock:
            self._active.discard(id(conn))
        try:
            conn.close()
        except Exception as e:
            logger.warning("connection_close_failed", driver=self.name, error=str(e))


def _columns(fields: Sequence[FieldDescriptor]) -> str:
    return ", ".join(f.storage_name for f in fields)


def _to_row(fields: Sequence[FieldDescriptor], values: Sequence[Any]) -> Row:
    return [f.with_value(v) for f, v in zip(fields, values, strict=True)]


__all__ = [
    "SQLDriver",
    "query_suffix",
]
