"""
Database Connector Interface

This module defines the connector abstraction that allows switching between
different database backends (SQLite, MySQL, MariaDB) without changing the
rest of the codebase.

A connector owns a connection source (a SQLAlchemy engine and its pool) and
exposes a single operation to the rest of the library: run a block against a
live DB-API connection, releasing the connection afterwards.

Design Decisions:
- SQLAlchemy owns pooling (acquisition, recycling, timeouts); connectors only
  configure it
- Connections are handed out as raw DB-API connections; closing one returns
  it to the pool
- Release happens in a finally block, so every exit path returns the connection
- Long checkouts are reported through pool events (leak detection)
"""

import logging
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchModuleError, SQLAlchemyError
from sqlalchemy.pool import Pool

from sqlbridge.core.exceptions import ConnectorError

logger = logging.getLogger(__name__)

T = TypeVar("T")


_CHECKOUT_TIME_KEY = "sqlbridge_checkout_time"


class DatabaseConnector(ABC):
    """
    Abstract base class for database connectors.

    This interface defines the contract that all connection sources
    must follow. Subclasses describe their backend (URL, pool class,
    driver arguments); the base class builds the engine and implements
    the checkout / use / check-in discipline.

    To add a new database backend:
    1. Create a new class inheriting from DatabaseConnector
    2. Implement all abstract methods
    3. Register it in sqlbridge.connector.factory
    """

    #: SQLAlchemy "dialect+driver" prefix of the connection URL
    driver_name: str = ""

    #: Connection URL template for backends that format their URL from one
    url_template: str = ""

    def __init__(self, leak_detection_threshold: Optional[float] = None):
        """
        Args:
            leak_detection_threshold: Seconds a connection may stay checked
                out before a warning is logged on check-in (None disables it)
        """
        self.leak_detection_threshold = leak_detection_threshold
        self._engine_overrides: dict[str, Any] = {}
        self._engine: Optional[Engine] = None

    @abstractmethod
    def get_database_url(self) -> str:
        """
        Build the SQLAlchemy connection URL for this backend.

        Returns:
            SQLAlchemy connection URL
        """
        pass

    @abstractmethod
    def get_pool_class(self) -> type[Pool]:
        """
        Get the connection pool class for this database type.

        Returns:
            Pool class (QueuePool for every built-in backend)
        """
        pass

    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        """
        Get driver-level connection arguments.

        Returns:
            Dictionary passed to the DB-API connect() call
        """
        pass

    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        """
        Get pool and engine configuration specific to this database type.

        Returns:
            Dictionary of create_engine() keyword arguments
        """
        pass

    @abstractmethod
    def get_dialect_name(self) -> str:
        """
        Get the SQLAlchemy dialect name for this database.

        Returns:
            Dialect name (e.g., 'sqlite', 'mysql', 'mariadb')
        """
        pass

    def prepare(self) -> None:
        """Hook run by connect() before the engine is created."""

    def install_events(self, engine: Engine) -> None:
        """Hook to register extra pool events on a freshly created engine."""

    @property
    def engine(self) -> Optional[Engine]:
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def configure_engine(self, **overrides: Any) -> "DatabaseConnector":
        """
        Override engine/pool keyword arguments before connect().

        Args:
            **overrides: create_engine() keyword arguments that replace the defaults

        Returns:
            This connector
        """
        if self.is_connected:
            raise ConnectorError("engine options cannot change after connect()")
        self._engine_overrides.update(overrides)
        return self

    def create_engine(self) -> Engine:
        """
        Create and configure the engine for this connector.

        Returns:
            Configured Engine with leak detection and backend hooks installed

        Raises:
            ConnectorError: If the database driver is not installed
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(self._engine_overrides)
        try:
            engine = create_engine(
                self.get_database_url(),
                poolclass=self.get_pool_class(),
                connect_args=self.get_connect_args(),
                **engine_kwargs
            )
        except (ImportError, NoSuchModuleError) as e:
            raise ConnectorError(
                f"driver '{self.driver_name}' is not available", original_error=e
            ) from e

        if self.leak_detection_threshold:
            self._install_leak_detection(engine)
        self.install_events(engine)
        return engine

    def connect(self) -> "DatabaseConnector":
        """
        Open the connection source and verify it with a probe connection.

        A connection is borrowed and released immediately so an unreachable
        backend fails here rather than on the first statement.

        Returns:
            This connector, ready for run()

        Raises:
            ConnectorError: If the driver is missing or no connection can be established
        """
        if self.is_connected:
            return self

        self.prepare()
        engine = self.create_engine()
        try:
            engine.raw_connection().close()
        except SQLAlchemyError as e:
            engine.dispose()
            raise ConnectorError(
                f"cannot connect to {self.get_dialect_name()} database", original_error=e
            ) from e

        self._engine = engine
        logger.info(f"Connected to {self.get_dialect_name()} database ({engine.url!r})")
        return self

    @contextmanager
    def acquire(self) -> Iterator[Any]:
        """
        Borrow one connection for the duration of the block.

        The connection is returned to the pool when the block exits, whether
        it finished normally or raised.

        Raises:
            ConnectorError: If the connector is not connected or the pool cannot
                provide a connection
        """
        engine = self._engine
        if engine is None:
            raise ConnectorError("connector is not connected, call connect() first")

        try:
            connection = engine.raw_connection()
        except SQLAlchemyError as e:
            raise ConnectorError("cannot acquire a connection from the pool", original_error=e) from e

        try:
            yield connection
        finally:
            connection.close()

    def run(self, block: Callable[[Any], T]) -> T:
        """
        Borrow one connection, run block with it and release it.

        Args:
            block: Callable receiving the DB-API connection

        Returns:
            Whatever block returns

        Raises:
            ConnectorError: If no connection can be borrowed. Errors raised by
                block propagate unchanged.
        """
        with self.acquire() as connection:
            return block(connection)

    def dispose(self) -> None:
        """Close every pooled connection and forget the engine."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        logger.info(f"Disposed {self.get_dialect_name()} connection pool")

    def __enter__(self) -> "DatabaseConnector":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _install_leak_detection(self, engine: Engine) -> None:
        threshold = self.leak_detection_threshold

        @event.listens_for(engine, "checkout")
        def _on_checkout(dbapi_connection, connection_record, connection_proxy):
            connection_record.info[_CHECKOUT_TIME_KEY] = time.monotonic()

        @event.listens_for(engine, "checkin")
        def _on_checkin(dbapi_connection, connection_record):
            checked_out_at = connection_record.info.pop(_CHECKOUT_TIME_KEY, None)
            if checked_out_at is None:
                return
            held = time.monotonic() - checked_out_at
            if held > threshold:
                logger.warning(
                    f"Connection leak detection: connection held for {held:.2f}s "
                    f"(threshold {threshold}s)"
                )
