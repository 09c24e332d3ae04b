from __future__ import annotations

from typing import Any, Optional, Union

from sqlbridge.connector.interface import DatabaseConnector
from sqlbridge.connector.mysql_connector import MariaDBConnector, MySQLConnector
from sqlbridge.connector.sqlite_connector import SQLiteConnector
from sqlbridge.core.exceptions import ConnectorError
from sqlbridge.core.setting import DatabaseTypeOptions, Settings, settings as default_settings


def get_connector(database_type: Union[str, DatabaseTypeOptions], **kwargs: Any) -> DatabaseConnector:
    """Build an unconnected connector for the named backend; kwargs go to its constructor."""
    raw = database_type.value if isinstance(database_type, DatabaseTypeOptions) else str(database_type)
    engine = raw.strip().lower()
    if engine == "sqlite":
        return SQLiteConnector(**kwargs)
    if engine == "mysql":
        return MySQLConnector(**kwargs)
    if engine == "mariadb":
        return MariaDBConnector(**kwargs)
    raise ConnectorError(f"Unsupported database type: {engine}")


def connector_from_settings(config: Optional[Settings] = None) -> DatabaseConnector:
    config = config or default_settings
    if config.DATABASE_TYPE is DatabaseTypeOptions.sqlite:
        return get_connector(
            config.DATABASE_TYPE,
            file=config.SQLITE_FILE,
            page_size=config.SQLITE_PAGE_SIZE,
            synchronous=config.SQLITE_SYNCHRONOUS,
            temp_store=config.SQLITE_TEMP_STORE,
            journal_mode=config.SQLITE_JOURNAL_MODE,
            connection_timeout=config.POOL_CONNECTION_TIMEOUT,
        )
    return get_connector(
        config.DATABASE_TYPE,
        address=config.MYSQL_ADDRESS,
        username=config.MYSQL_USERNAME,
        password=config.MYSQL_PASSWORD,
        database=config.MYSQL_DATABASE,
        config=config,
    )
