from concurrent.futures import Executor
from typing import Callable, Optional, TypeVar

from sqlbridge.connector.interface import DatabaseConnector
from sqlbridge.executor.adapters import AdapterRegistry, default_adapters
from sqlbridge.executor.sql_executor import SQLExecutor
from sqlbridge.executor.statement import ResultSet

T = TypeVar("T")


class SQLExecutorBuilder:
    """Collects adapters and a worker pool, then builds an SQLExecutor."""

    def __init__(self, connector: DatabaseConnector):
        self.connector = connector
        self.adapters = AdapterRegistry(default_adapters())
        self._executor: Optional[Executor] = None

    def set_executor(self, executor: Executor) -> "SQLExecutorBuilder":
        self._executor = executor
        return self

    def register_adapter(self, result_type: type[T], adapter: Callable[[ResultSet], Optional[T]]) -> "SQLExecutorBuilder":
        self.adapters.register(result_type, adapter)
        return self

    def build(self) -> SQLExecutor:
        # The executor gets its own copy; later builder changes do not leak into it
        return SQLExecutor(self.connector, adapters=self.adapters, executor=self._executor)
