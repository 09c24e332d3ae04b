"""
SQL Executor

Public entry point for running statements and queries.

Every call has two phases: a binder callback fills the statement's
parameters, then the statement runs and, for queries, the rows are turned
into values by a mapper or by the adapter registered for a result type.

Connection selection:
- Inside a transaction block, the transaction's connection is reused and
  nothing is committed until the block ends; a statement failing there
  marks the whole transaction for rollback
- Otherwise one connection is borrowed from the connector per call and the
  statement is committed before the connection is released

Asynchronous variants submit the synchronous call to the current executor:
the worker pool outside a transaction, the transaction's same-thread
executor inside one, so every statement of a transaction runs in order on
its one connection.
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar, Union

from sqlbridge.connector.interface import DatabaseConnector
from sqlbridge.core.exceptions import SQLBridgeException, StatementError, TransactionError
from sqlbridge.core.logging import statement_timer
from sqlbridge.core.setting import settings
from sqlbridge.executor.adapters import AdapterRegistry, ResultAdapter, default_adapters
from sqlbridge.executor.batch import BatchBuilder, StatementBinder
from sqlbridge.executor.statement import ResultSet, Statement
from sqlbridge.executor.transaction import (
    CurrentThreadExecutor,
    TransactionHolder,
    bind_transaction,
    get_transaction,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RowConsumer = Callable[[ResultSet], None]
RowMapper = Callable[[ResultSet], Optional[T]]

_shared_executor: Optional[ThreadPoolExecutor] = None
_shared_executor_lock = threading.Lock()


def EMPTY_STATEMENT(statement: Statement) -> None:
    """Binder for statements without parameters."""


def get_shared_executor() -> ThreadPoolExecutor:
    """
    Get the process-wide worker pool used by default for async calls.

    Created on first use with settings.EXECUTOR_WORKERS threads.
    """
    global _shared_executor
    with _shared_executor_lock:
        if _shared_executor is None:
            _shared_executor = ThreadPoolExecutor(
                max_workers=settings.EXECUTOR_WORKERS,
                thread_name_prefix="sqlbridge-worker",
            )
        return _shared_executor


class SQLExecutor:
    """
    Statement and query execution over a DatabaseConnector.

    Adapters are registered per instance:

        executor.register_adapter(User, lambda result: User(result.get("id"), result.get("name")))
        users = executor.query_many("SELECT id, name FROM users", User)
    """

    def __init__(
        self,
        connector: DatabaseConnector,
        adapters: Union[AdapterRegistry, Mapping[type, ResultAdapter], None] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Args:
            connector: Connection source; must be connected before the first call
            adapters: Result adapters, copied into this executor's registry
                (ResultSet and dict adapters when omitted)
            executor: Worker pool for async calls (shared pool when omitted)
        """
        self.connector = connector
        if isinstance(adapters, AdapterRegistry):
            self.adapters = adapters.copy()
        else:
            self.adapters = AdapterRegistry(default_adapters() if adapters is None else adapters)
        self._executor = executor

    # Executor / connection selection

    @property
    def executor(self) -> Executor:
        return self._executor if self._executor is not None else get_shared_executor()

    def set_executor(self, executor: Executor) -> None:
        """Set the worker pool used for async calls outside transactions."""
        self._executor = executor

    def current_executor(self) -> Executor:
        """The transaction's same-thread executor if one is active, else the worker pool."""
        holder = self._current_transaction()
        if holder is None:
            return self.executor
        return holder.executor

    def current_connection(self) -> Optional[Any]:
        """
        The connection of the active transaction, or None outside transactions.

        A transaction opened by an executor over a different connector is
        not visible here: its connection belongs to another database.
        """
        holder = self._current_transaction()
        return holder.connection if holder is not None else None

    def run_with_connection(self, block: Callable[[Any], T]) -> T:
        """
        Run block with the current connection.

        Inside a transaction the transaction's connection is used as is.
        Otherwise a connection is borrowed, committed when block succeeds,
        rolled back when it raises, and released in both cases.
        """
        holder = self._current_transaction()
        if holder is not None:
            return block(holder.connection)

        def autocommit(connection: Any) -> T:
            try:
                result = block(connection)
            except Exception:
                self._rollback(connection)
                raise
            connection.commit()
            return result

        return self.connector.run(autocommit)

    # Adapters

    def get_adapter(self, result_type: type[T]) -> Callable[[ResultSet], Optional[T]]:
        """
        Raises:
            AdapterNotFoundError: If result_type has no registered adapter
        """
        return self.adapters.get(result_type)

    def register_adapter(self, result_type: type[T], adapter: Callable[[ResultSet], Optional[T]]) -> "SQLExecutor":
        self.adapters.register(result_type, adapter)
        return self

    # Execute

    def execute(
        self,
        sql: str,
        binder: Optional[StatementBinder] = None,
        row_consumer: Optional[RowConsumer] = None,
    ) -> None:
        """
        Run a statement that does not return mapped values.

        Args:
            sql: SQL text, placeholders in the driver's paramstyle
            binder: Fills the statement's parameters
            row_consumer: Receives the ResultSet after execution (generated
                key via last_row_id, or rows of a RETURNING clause)

        Raises:
            StatementError: If the statement fails
        """
        binder = binder or EMPTY_STATEMENT

        def run(cursor: Any) -> None:
            statement = Statement(cursor, sql)
            binder(statement)
            statement.execute()
            if row_consumer is not None:
                row_consumer(ResultSet(cursor))

        self._run_statement(sql, "EXECUTE", run)

    def execute_async(
        self,
        sql: str,
        binder: Optional[StatementBinder] = None,
        row_consumer: Optional[RowConsumer] = None,
    ) -> Future:
        return self.current_executor().submit(self.execute, sql, binder, row_consumer)

    # Query

    def query(
        self,
        sql: str,
        mapper: Union[type[T], RowMapper[T]],
        binder: Optional[StatementBinder] = None,
    ) -> Optional[T]:
        """
        Run a query and map its result to at most one value.

        Args:
            sql: SQL text
            mapper: A result type with a registered adapter (applied to the
                first row), or a function receiving the whole ResultSet
            binder: Fills the statement's parameters

        Returns:
            The mapped value, or None when there is no row

        Raises:
            AdapterNotFoundError: If mapper is a type without adapter (before
                any connection is borrowed)
            StatementError: If the query fails
        """
        binder = binder or EMPTY_STATEMENT
        if isinstance(mapper, type):
            adapter = self.get_adapter(mapper)

            def function(result: ResultSet) -> Optional[T]:
                return adapter(result) if result.next() else None
        else:
            function = mapper

        def run(cursor: Any) -> Optional[T]:
            statement = Statement(cursor, sql)
            binder(statement)
            return function(statement.execute_query())

        return self._run_statement(sql, "QUERY", run)

    def query_async(
        self,
        sql: str,
        mapper: Union[type[T], RowMapper[T]],
        binder: Optional[StatementBinder] = None,
    ) -> Future:
        return self.current_executor().submit(self.query, sql, mapper, binder)

    def query_many(
        self,
        sql: str,
        result_type: type[T],
        binder: Optional[StatementBinder] = None,
    ) -> list[T]:
        """
        Run a query and adapt every row to result_type.

        Returns:
            Values in row order; rows the adapter maps to None are skipped

        Raises:
            AdapterNotFoundError: If result_type has no registered adapter
            StatementError: If the query fails
        """
        adapter = self.get_adapter(result_type)

        def collect(result: ResultSet) -> list[T]:
            elements = []
            while result.next():
                value = adapter(result)
                if value is not None:
                    elements.append(value)
            return elements

        return self.query(sql, collect, binder) or []

    def query_many_async(
        self,
        sql: str,
        result_type: type[T],
        binder: Optional[StatementBinder] = None,
    ) -> Future:
        return self.current_executor().submit(self.query_many, sql, result_type, binder)

    def query_rows(self, sql: str, binder: Optional[StatementBinder] = None) -> list[dict[str, Any]]:
        """Run a query and return its rows as dicts, in row order."""
        return self.query(sql, lambda result: list(result), binder) or []

    def query_rows_async(self, sql: str, binder: Optional[StatementBinder] = None) -> Future:
        return self.current_executor().submit(self.query_rows, sql, binder)

    # Batch

    def batch(self, sql: str) -> BatchBuilder:
        return BatchBuilder(sql, self)

    def execute_batch(self, builder: BatchBuilder, row_consumer: Optional[RowConsumer] = None) -> None:
        """
        Run every binder of builder against its statement in one round trip.

        A batch with a single binder runs as a plain execute(). The binders
        that ran are removed from the builder once the batch succeeds; on
        failure the builder is left untouched.

        Raises:
            StatementError: If the batch fails
        """
        handlers = list(builder.handlers)
        if not handlers:
            return

        if len(handlers) == 1:
            self.execute(builder.statement, handlers[0], row_consumer)
        else:
            sql = builder.statement

            def run(cursor: Any) -> None:
                statement = Statement(cursor, sql)
                parameter_sets = []
                for handler in handlers:
                    statement.clear()
                    handler(statement)
                    parameter_sets.append(statement.parameters)
                statement.execute_many(parameter_sets)
                if row_consumer is not None:
                    row_consumer(ResultSet(cursor))

            self._run_statement(sql, f"BATCH[{len(handlers)}]", run)

        del builder.handlers[:len(handlers)]

    def execute_batch_async(self, builder: BatchBuilder, row_consumer: Optional[RowConsumer] = None) -> Future:
        return self.current_executor().submit(self.execute_batch, builder, row_consumer)

    # Transactions

    @contextmanager
    def transaction(self) -> Iterator[TransactionHolder]:
        """
        Run the block in a transaction on one borrowed connection.

        Every executor call made in the block, directly or through nested
        functions, uses the transaction's connection. The transaction commits
        when the block ends normally and rolls back when it raises.

        A block opened while a transaction on the same connector is already
        active joins it: no new connection, no commit of its own. If a joined
        block raises, or any statement of the transaction fails (including
        async calls whose futures are never read), the outer transaction is
        marked rollback-only.

        Raises:
            TransactionError: Wrapping the block's exception, after rollback,
                when a statement or joined block failed, or when the commit fails
        """
        outer = self._current_transaction()
        if outer is not None:
            try:
                yield outer
            except Exception as e:
                outer.mark_rollback_only(e)
                raise
            return

        with self.connector.acquire() as connection:
            holder = TransactionHolder(
                connection=connection,
                executor=CurrentThreadExecutor(),
                connector=self.connector,
            )
            with bind_transaction(holder):
                logger.debug("Transaction started")
                try:
                    yield holder
                except Exception as e:
                    self._rollback(connection)
                    logger.warning(f"Transaction rolled back: {e}")
                    raise TransactionError(str(e), original_error=e) from e

                if holder.rollback_only:
                    self._rollback(connection)
                    logger.warning(f"Transaction rolled back: {holder.error}")
                    raise TransactionError(
                        f"a statement or nested transaction block failed: {holder.error}",
                        original_error=holder.error,
                    ) from holder.error

                try:
                    connection.commit()
                except Exception as e:
                    self._rollback(connection)
                    raise TransactionError(f"commit failed: {e}", original_error=e) from e
                logger.debug("Transaction committed")

    def run_in_transaction(self, body: Callable[[], T]) -> T:
        """Synchronous form of with_transaction()."""
        with self.transaction():
            return body()

    def with_transaction(self, body: Callable[[], T]) -> Future:
        """
        Run body in a transaction on the current executor.

        Args:
            body: Zero-argument callable; its return value becomes the future's result

        Returns:
            Future completed with body's result, or failed with TransactionError
        """
        return self.current_executor().submit(self.run_in_transaction, body)

    # Internals

    def _current_transaction(self) -> Optional[TransactionHolder]:
        holder = get_transaction()
        if holder is None or not holder.belongs_to(self.connector):
            return None
        return holder

    def _run_statement(self, sql: str, verb: str, run: Callable[[Any], T]) -> T:
        def with_cursor(connection: Any) -> T:
            cursor = connection.cursor()
            try:
                return run(cursor)
            finally:
                cursor.close()

        holder = self._current_transaction()
        try:
            with statement_timer(sql, verb):
                return self.run_with_connection(with_cursor)
        except SQLBridgeException as e:
            if holder is not None:
                holder.mark_rollback_only(e)
            raise
        except Exception as e:
            error = StatementError(sql, e)
            # A failed statement dooms the enclosing transaction
            if holder is not None:
                holder.mark_rollback_only(error)
            raise error from e

    @staticmethod
    def _rollback(connection: Any) -> None:
        try:
            connection.rollback()
        except Exception as e:
            logger.error(f"Rollback failed: {e}", exc_info=True)
