"""
SQLite Database Connector

This module implements the DatabaseConnector interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

SQLite is a file-based database that's perfect for:
- Local development
- Testing
- Single-instance deployments

Key characteristics:
- File-based (single .db file, created on first use)
- No server required
- Single writer at a time (file locking)

Design Decisions:
- One long-lived connection, held by a pool of size 1. Concurrent callers
  wait for it (up to the connection timeout) instead of opening more handles
- Engine tuning (page size, synchronous mode, temp store, journal mode) is
  applied to every new DB-API connection through a pool "connect" event
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool

from sqlbridge.connector.interface import DatabaseConnector
from sqlbridge.core.exceptions import ConnectorError
from sqlbridge.core.setting import settings

logger = logging.getLogger(__name__)


class SQLiteConnector(DatabaseConnector):
    """
    SQLite database connector implementation.

    This connector handles all SQLite-specific configuration. The database
    file and its parent directory are created if they do not exist.
    """

    driver_name = "sqlite+pysqlite"
    url_template = "sqlite+pysqlite:///{file}"

    def __init__(
        self,
        file: Union[str, Path],
        page_size: Optional[int] = None,
        synchronous: Optional[str] = None,
        temp_store: Optional[str] = None,
        journal_mode: Optional[str] = None,
        connection_timeout: Optional[float] = None,
        leak_detection_threshold: Optional[float] = None,
    ):
        """
        Args:
            file: Path of the database file
            page_size: PRAGMA page_size (default from settings)
            synchronous: PRAGMA synchronous (default from settings)
            temp_store: PRAGMA temp_store (default from settings)
            journal_mode: PRAGMA journal_mode (default from settings)
            connection_timeout: Seconds to wait for the single connection
            leak_detection_threshold: Seconds before a long checkout is reported
        """
        super().__init__(leak_detection_threshold=leak_detection_threshold)
        self.file = Path(file)
        self.page_size = page_size or settings.SQLITE_PAGE_SIZE
        self.synchronous = synchronous or settings.SQLITE_SYNCHRONOUS
        self.temp_store = temp_store or settings.SQLITE_TEMP_STORE
        self.journal_mode = journal_mode or settings.SQLITE_JOURNAL_MODE
        self.connection_timeout = connection_timeout or settings.POOL_CONNECTION_TIMEOUT

    def get_database_url(self) -> str:
        return self.url_template.format(file=self.file.resolve().as_posix())

    def get_pool_class(self) -> type[QueuePool]:
        """
        Get the connection pool class for SQLite.

        SQLite uses a QueuePool of exactly one connection because:
        - File-based database doesn't benefit from more handles
        - SQLite handles one writer at a time (file locking)
        - A single handle keeps PRAGMA state and WAL readers consistent

        Returns:
            QueuePool class
        """
        return QueuePool

    def get_connect_args(self) -> dict[str, Any]:
        """
        Get SQLite-specific connection arguments.

        check_same_thread=False lets the pooled connection move between
        worker threads; the pool guarantees one user at a time.

        Returns:
            Dictionary with SQLite connection arguments
        """
        return {
            "check_same_thread": False,
            "timeout": self.connection_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        """
        Get SQLite-specific pool configuration.

        Returns:
            Dictionary with SQLite engine options
        """
        return {
            "pool_size": 1,
            "max_overflow": 0,
            "pool_timeout": self.connection_timeout,
            "echo": False,  # Set to True only for SQL debugging in development
        }

    def get_dialect_name(self) -> str:
        return "sqlite"

    def get_pragmas(self) -> list[str]:
        """PRAGMA statements applied to every new connection, in order."""
        return [
            f"PRAGMA page_size = {int(self.page_size)}",
            f"PRAGMA synchronous = {self.synchronous}",
            f"PRAGMA temp_store = {self.temp_store}",
            f"PRAGMA journal_mode = {self.journal_mode}",
        ]

    def prepare(self) -> None:
        """
        Create the database folder and file if they are missing.

        Raises:
            ConnectorError: If the folder or the file cannot be created
        """
        parent = self.file.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConnectorError(
                f"the database folder cannot be created: {parent}", original_error=e
            ) from e

        if self.file.exists():
            return
        try:
            self.file.touch()
        except OSError as e:
            raise ConnectorError(
                f"the database file cannot be created: {self.file}", original_error=e
            ) from e
        logger.info(f"Created SQLite database file {self.file}")

    def install_events(self, engine: Engine) -> None:
        pragmas = self.get_pragmas()

        @event.listens_for(engine, "connect")
        def _apply_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            try:
                for pragma in pragmas:
                    cursor.execute(pragma)
            finally:
                cursor.close()
