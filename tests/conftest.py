"""
Shared test fixtures.

Provides:
- A real SQLite connector/executor on a temporary file
- A fake DB-API connector that records every acquire, release, commit,
  rollback and cursor call, for tests that assert on connection identity
  and driver round trips
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import pytest
from sqlalchemy import event
from sqlalchemy.pool import QueuePool

from sqlbridge.connector.interface import DatabaseConnector
from sqlbridge.connector.sqlite_connector import SQLiteConnector
from sqlbridge.executor.sql_executor import SQLExecutor


class FakeCursor:
    def __init__(self, connection: "FakeConnection"):
        self.connection = connection
        self.description = None
        self.lastrowid = None
        self.rowcount = -1
        self._rows: list[tuple] = []

    def execute(self, sql, params=None):
        self.connection.calls.append(("execute", sql, params))
        if self.connection.fail_on and self.connection.fail_on in sql:
            raise RuntimeError(f"driver rejected: {sql}")
        self._load_result()

    def executemany(self, sql, param_sets):
        self.connection.calls.append(("executemany", sql, list(param_sets)))
        self._load_result()

    def _load_result(self):
        columns, rows = self.connection.result
        self.description = [(name, None, None, None, None, None, None) for name in columns] or None
        self._rows = list(rows)
        self.rowcount = len(self._rows)

    def fetchone(self):
        if not self._rows:
            return None
        return self._rows.pop(0)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, owner: "FakeConnector"):
        self.owner = owner
        self.calls: list[tuple] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.fail_on: Optional[str] = owner.fail_on
        self.result: tuple[list[str], list[tuple]] = owner.result

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


class FakeConnector(DatabaseConnector):
    """
    Connector handing out a new FakeConnection per acquisition.

    Attributes:
        connections: Every connection handed out, in order
        acquired / released: Checkout and check-in counters
        result: (columns, rows) returned by every statement
        fail_on: Statements containing this text raise a driver error
    """

    driver_name = "fake"

    def __init__(self):
        super().__init__()
        self.connections: list[FakeConnection] = []
        self.acquired = 0
        self.released = 0
        self.result: tuple[list[str], list[tuple]] = ([], [])
        self.fail_on: Optional[str] = None
        self._lock = threading.Lock()

    def get_database_url(self) -> str:
        return "fake://"

    def get_pool_class(self):
        return QueuePool

    def get_connect_args(self) -> dict[str, Any]:
        return {}

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {}

    def get_dialect_name(self) -> str:
        return "fake"

    def connect(self) -> "FakeConnector":
        return self

    @contextmanager
    def acquire(self) -> Iterator[FakeConnection]:
        connection = FakeConnection(self)
        with self._lock:
            self.connections.append(connection)
            self.acquired += 1
        try:
            yield connection
        finally:
            connection.close()
            with self._lock:
                self.released += 1


class PoolCounter:
    """Counts pool checkouts and check-ins of a real engine."""

    def __init__(self, engine):
        self.checkouts = 0
        self.checkins = 0
        event.listen(engine, "checkout", self._on_checkout)
        event.listen(engine, "checkin", self._on_checkin)

    def _on_checkout(self, dbapi_connection, connection_record, connection_proxy):
        self.checkouts += 1

    def _on_checkin(self, dbapi_connection, connection_record):
        self.checkins += 1


@pytest.fixture
def sqlite_connector(tmp_path) -> Iterator[SQLiteConnector]:
    connector = SQLiteConnector(tmp_path / "data" / "test.db").connect()
    yield connector
    connector.dispose()


@pytest.fixture
def worker_pool() -> Iterator[ThreadPoolExecutor]:
    pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="test-worker")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def executor(sqlite_connector, worker_pool) -> SQLExecutor:
    return SQLExecutor(sqlite_connector, executor=worker_pool)


@pytest.fixture
def fake_connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def other_fake_connector() -> FakeConnector:
    """A second, independent database."""
    return FakeConnector()


@pytest.fixture
def fake_executor(fake_connector, worker_pool) -> SQLExecutor:
    return SQLExecutor(fake_connector, executor=worker_pool)


@pytest.fixture
def pool_counter(sqlite_connector) -> PoolCounter:
    return PoolCounter(sqlite_connector.engine)
