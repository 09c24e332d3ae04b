"""
Batch Builder

Buffers parameter binders for one parameterized statement so they can be
sent in a single round trip:

    builder = executor.batch("INSERT INTO t VALUES (?, ?)")
    builder.batch(lambda s: s.bind("a", 1)).batch(lambda s: s.bind("b", 2))
    builder.execute()

Binders run in insertion order. A builder can be reused after reset().
"""

from concurrent.futures import Future
from typing import TYPE_CHECKING, Callable, Optional

from sqlbridge.executor.statement import ResultSet, Statement

if TYPE_CHECKING:
    from sqlbridge.executor.sql_executor import SQLExecutor

StatementBinder = Callable[[Statement], None]


class BatchBuilder:
    """Ordered list of binders sharing one SQL text."""

    def __init__(self, statement: str, executor: "SQLExecutor"):
        self.statement = statement
        self.executor = executor
        self.handlers: list[StatementBinder] = []

    def batch(self, handler: StatementBinder) -> "BatchBuilder":
        """Append a binder; it runs after every binder added before it."""
        self.handlers.append(handler)
        return self

    def reset(self) -> "BatchBuilder":
        """Drop all binders so the builder can be reused."""
        self.handlers.clear()
        return self

    def execute(self, row_consumer: Optional[Callable[[ResultSet], None]] = None) -> None:
        self.executor.execute_batch(self, row_consumer)

    def execute_async(self, row_consumer: Optional[Callable[[ResultSet], None]] = None) -> Future:
        return self.executor.execute_batch_async(self, row_consumer)

    def __len__(self) -> int:
        return len(self.handlers)
