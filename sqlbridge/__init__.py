"""
sqlbridge: connection multiplexing, statement execution and transaction
scoping over SQLite, MySQL and MariaDB.

Typical use:

    connector = SQLiteConnector("data/app.db").connect()
    executor = SQLExecutor(connector)
    executor.execute("CREATE TABLE IF NOT EXISTS t(id TEXT PRIMARY KEY, v INT)")
"""

from sqlbridge.connector import (
    DatabaseConnector,
    MariaDBConnector,
    MySQLConnector,
    SQLiteConnector,
    connector_from_settings,
    get_connector,
)
from sqlbridge.core.exceptions import (
    AdapterNotFoundError,
    ConnectorError,
    SQLBridgeException,
    StatementError,
    TransactionError,
)
from sqlbridge.executor import (
    BatchBuilder,
    Dao,
    ResultSet,
    SQLExecutor,
    SQLExecutorBuilder,
    Statement,
    model_adapter,
)

__version__ = "1.0.0"

__all__ = [
    "AdapterNotFoundError",
    "BatchBuilder",
    "ConnectorError",
    "Dao",
    "DatabaseConnector",
    "MariaDBConnector",
    "MySQLConnector",
    "ResultSet",
    "SQLBridgeException",
    "SQLExecutor",
    "SQLExecutorBuilder",
    "SQLiteConnector",
    "Statement",
    "StatementError",
    "TransactionError",
    "connector_from_settings",
    "get_connector",
    "model_adapter",
]
