"""
MySQL / MariaDB Database Connector

This module implements the DatabaseConnector interface for networked
MySQL-compatible servers, using PyMySQL as the DB-API driver.

Design Decisions:
- QueuePool keeps `minimum_idle` connections open and allows bursts up to
  `maximum_pool_size` (2 x cpu_count + 1 by default)
- Connections are recycled after 30 minutes so server-side timeouts never
  hand out a dead handle; pool_pre_ping covers the rest
- A 10 second timeout bounds both TCP connect and pool checkout
- connect() borrows one connection immediately so a wrong address or
  credentials fail at configuration time
"""

import logging
from typing import Any, Optional

from sqlalchemy.engine import URL
from sqlalchemy.pool import QueuePool

from sqlbridge.connector.interface import DatabaseConnector
from sqlbridge.core.exceptions import ConnectorError
from sqlbridge.core.setting import Settings, settings as default_settings

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3306


def split_address(address: str) -> tuple[str, int]:
    """
    Split a "host[:port]" address.

    Args:
        address: Server address, port optional

    Returns:
        (host, port) tuple

    Raises:
        ConnectorError: If the port is not a number
    """
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, DEFAULT_PORT
    try:
        return host, int(port)
    except ValueError as e:
        raise ConnectorError(f"invalid port in address '{address}'", original_error=e) from e


class MySQLConnector(DatabaseConnector):
    """
    Pooled connector for MySQL servers.

    The pool is owned by this connector and torn down by dispose().
    """

    driver_name = "mysql+pymysql"

    def __init__(
        self,
        address: str,
        username: str,
        password: str,
        database: str,
        maximum_pool_size: Optional[int] = None,
        minimum_idle: Optional[int] = None,
        max_lifetime: Optional[int] = None,
        connection_timeout: Optional[int] = None,
        leak_detection_threshold: Optional[float] = None,
        socket_timeout: Optional[int] = None,
        config: Optional[Settings] = None,
    ):
        """
        Args:
            address: Server address as host[:port]
            username: Database user
            password: Database password
            database: Database (schema) name
            maximum_pool_size: Upper bound of open connections
            minimum_idle: Connections kept open while idle
            max_lifetime: Seconds before a connection is recycled
            connection_timeout: Seconds to wait for connect / checkout
            leak_detection_threshold: Seconds before a long checkout is reported
            socket_timeout: Seconds a read or write may block
            config: Settings providing the defaults (module settings if omitted)
        """
        config = config or default_settings
        super().__init__(
            leak_detection_threshold=(
                leak_detection_threshold
                if leak_detection_threshold is not None
                else config.POOL_LEAK_DETECTION_THRESHOLD
            )
        )
        if not address:
            raise ConnectorError("address is required")
        if not username:
            raise ConnectorError("username is required")
        if not database:
            raise ConnectorError("database is required")

        self.host, self.port = split_address(address)
        self.username = username
        self.password = password
        self.database = database

        self.maximum_pool_size = maximum_pool_size or config.POOL_MAXIMUM_SIZE
        self.minimum_idle = min(
            minimum_idle or config.POOL_MINIMUM_IDLE or 10,
            self.maximum_pool_size,
        )
        self.max_lifetime = max_lifetime or config.POOL_MAX_LIFETIME
        self.connection_timeout = connection_timeout or config.POOL_CONNECTION_TIMEOUT
        self.socket_timeout = socket_timeout or config.POOL_SOCKET_TIMEOUT

    def get_database_url(self) -> str:
        url = URL.create(
            drivername=self.driver_name,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )
        return url.render_as_string(hide_password=False)

    def get_pool_class(self) -> type[QueuePool]:
        return QueuePool

    def get_connect_args(self) -> dict[str, Any]:
        """
        Get PyMySQL connection arguments.

        Returns:
            Dictionary with driver timeouts and character set
        """
        return {
            "connect_timeout": self.connection_timeout,
            "read_timeout": self.socket_timeout,
            "write_timeout": self.socket_timeout,
            "charset": "utf8mb4",
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        """
        Get pool sizing for a networked server.

        Returns:
            Dictionary with QueuePool options
        """
        return {
            "pool_size": self.minimum_idle,
            "max_overflow": self.maximum_pool_size - self.minimum_idle,
            "pool_recycle": self.max_lifetime,
            "pool_timeout": self.connection_timeout,
            "pool_pre_ping": True,
            "echo": False,
        }

    def get_dialect_name(self) -> str:
        return "mysql"


class MariaDBConnector(MySQLConnector):
    """Pooled connector for MariaDB servers (same driver, MariaDB dialect)."""

    driver_name = "mariadb+pymysql"

    def get_dialect_name(self) -> str:
        return "mariadb"
