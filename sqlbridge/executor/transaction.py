"""
Transaction Context

Holds the (connection, executor) pair of the transaction running in the
current thread of control, so that every executor call made inside a
transaction block reuses the same borrowed connection.

Design Decisions:
- The slot is a ContextVar: each OS thread and each asyncio task sees its
  own value, and worker threads never inherit the caller's transaction
- Exactly zero or one entry per thread of control; the entry records its
  connector, so executors over other connectors never borrow its connection
- The entry is always removed with the token returned by set_transaction(),
  inside a finally block, so nothing stale survives a failed body
- Inside a transaction, "async" work runs on a CurrentThreadExecutor, which
  keeps every statement of the transaction on one thread and one connection
"""

import contextvars
from concurrent.futures import Executor, Future
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional


class CurrentThreadExecutor(Executor):
    """Executor that runs submitted work immediately on the calling thread."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        if not future.set_running_or_notify_cancel():
            return future
        try:
            result = fn(*args, **kwargs)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)
        return future


@dataclass
class TransactionHolder:
    """
    The connection and executor bound to one running transaction.

    Only executors sharing the holder's connector join the transaction;
    calls on another connector run on their own connections.

    rollback_only is set when a statement or a joined (nested) block fails,
    so the outermost block rolls back even if the failure was caught in
    between or left unread in a future. error keeps the first such failure.
    """
    connection: Any
    executor: Executor
    connector: Any = None
    rollback_only: bool = False
    error: Optional[BaseException] = None

    def mark_rollback_only(self, error: BaseException) -> None:
        if self.error is None:
            self.error = error
        self.rollback_only = True

    def belongs_to(self, connector: Any) -> bool:
        return self.connector is None or self.connector is connector


_CURRENT_TRANSACTION: contextvars.ContextVar[Optional[TransactionHolder]] = contextvars.ContextVar(
    "sqlbridge_transaction", default=None
)


def get_transaction() -> Optional[TransactionHolder]:
    return _CURRENT_TRANSACTION.get()


def set_transaction(holder: TransactionHolder) -> contextvars.Token:
    """Bind holder to the current thread of control; keep the token for removal."""
    return _CURRENT_TRANSACTION.set(holder)


def remove_transaction(token: Optional[contextvars.Token] = None) -> None:
    """
    Clear the current thread of control's transaction.

    Args:
        token: Token from set_transaction(); restores the previous value when
            given, otherwise the slot is emptied
    """
    if token is not None:
        _CURRENT_TRANSACTION.reset(token)
    else:
        _CURRENT_TRANSACTION.set(None)


def in_transaction() -> bool:
    return _CURRENT_TRANSACTION.get() is not None


@contextmanager
def bind_transaction(holder: TransactionHolder) -> Iterator[TransactionHolder]:
    """Bind holder for the duration of the block, removing it on every exit path."""
    token = set_transaction(holder)
    try:
        yield holder
    finally:
        remove_transaction(token)
