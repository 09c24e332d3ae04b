"""
Connector module with backend abstraction.

This module provides:
- DatabaseConnector interface: Abstract base class for connection sources
- SQLiteConnector: embedded file database (single long-lived connection)
- MySQLConnector / MariaDBConnector: networked databases behind a connection pool
- get_connector / connector_from_settings: factory helpers

To add a new database backend:
1. Create a new connector class inheriting from DatabaseConnector
2. Implement all abstract methods
3. Register it in get_connector()
"""

from sqlbridge.connector.factory import connector_from_settings, get_connector
from sqlbridge.connector.interface import DatabaseConnector
from sqlbridge.connector.mysql_connector import MariaDBConnector, MySQLConnector
from sqlbridge.connector.sqlite_connector import SQLiteConnector

__all__ = [
    "DatabaseConnector",
    "SQLiteConnector",
    "MySQLConnector",
    "MariaDBConnector",
    "get_connector",
    "connector_from_settings",
]
