"""
Custom Exceptions

This module defines the error taxonomy shared by connectors and the executor.

Design Decisions:
- One base class so callers can catch everything raised by the library
- Connector errors surface environment problems (driver, file, server)
- Statement errors wrap driver errors so every backend fails the same way
- Adapter errors are programmer errors and are raised immediately
- Transaction errors are raised after the rollback has been performed
"""

from typing import Optional


class SQLBridgeException(Exception):
    """Base exception for the sqlbridge library."""
    pass


class ConnectorError(SQLBridgeException):
    """Raised when a connection source cannot be opened or a connection cannot be borrowed."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        self.original_error = original_error
        super().__init__(f"Connector error: {message}")


class StatementError(SQLBridgeException):
    """Raised when a statement fails while being prepared, executed or read."""

    def __init__(self, sql: str, original_error: BaseException):
        self.sql = sql
        self.original_error = original_error
        super().__init__(f"Statement failed ({original_error}): {sql}")


class AdapterNotFoundError(SQLBridgeException):
    """Raised when a declared result type has no registered adapter."""

    def __init__(self, result_type: type):
        self.result_type = result_type
        name = getattr(result_type, "__name__", repr(result_type))
        super().__init__(f"The adapter for class {name} was not found")


class TransactionError(SQLBridgeException):
    """Raised when a transaction body fails (after rollback) or the commit fails."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        self.original_error = original_error
        super().__init__(f"Transaction failed: {message}")
