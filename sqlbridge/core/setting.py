"""
Configuration Settings

This module defines library configuration using Pydantic Settings.
All configuration is loaded from environment variables or .env file.

Design Decisions:
- Uses pydantic-settings for type-safe configuration
- Settings only provide defaults: connectors still take explicit constructor
  arguments, so a process can talk to several databases at once
- Defaults to SQLite (file-based) for easy local development
- Pool sizing defaults follow the available parallelism of the host
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "DatabaseTypeOptions",
    "Settings",
    "settings",
    "default_maximum_pool_size",
    "default_minimum_idle",
    "default_worker_count",
]


def default_maximum_pool_size() -> int:
    """Upper bound of pooled connections: two per core plus one."""
    return (os.cpu_count() or 1) * 2 + 1


def default_minimum_idle() -> int:
    return min(default_maximum_pool_size(), 10)


def default_worker_count() -> int:
    return os.cpu_count() or 1


class DatabaseTypeOptions(Enum):
    """Supported database backends."""
    sqlite = "sqlite"
    mysql = "mysql"
    mariadb = "mariadb"


class Settings(BaseSettings):
    """
    Library settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Backend selection
    DATABASE_TYPE: DatabaseTypeOptions = Field(
        default=DatabaseTypeOptions.sqlite,
        description="Database backend (sqlite, mysql, mariadb)"
    )

    # Embedded database (SQLite)
    SQLITE_FILE: Path = Field(
        default=Path("./data/database.db"),
        description="Path of the embedded database file (created on first use)"
    )
    SQLITE_PAGE_SIZE: int = Field(
        default=32768,
        description="Page size in bytes, applied before the first table is created"
    )
    SQLITE_SYNCHRONOUS: str = Field(
        default="NORMAL",
        description="PRAGMA synchronous mode (OFF, NORMAL, FULL, EXTRA)"
    )
    SQLITE_TEMP_STORE: str = Field(
        default="MEMORY",
        description="PRAGMA temp_store location (DEFAULT, FILE, MEMORY)"
    )
    SQLITE_JOURNAL_MODE: str = Field(
        default="WAL",
        description="PRAGMA journal_mode (DELETE, TRUNCATE, PERSIST, MEMORY, WAL, OFF)"
    )

    # Networked database (MySQL / MariaDB)
    MYSQL_ADDRESS: str = Field(
        default="localhost:3306",
        description="Server address as host[:port]"
    )
    MYSQL_USERNAME: str = Field(default="root", description="Database user")
    MYSQL_PASSWORD: str = Field(default="", description="Database password")
    MYSQL_DATABASE: str = Field(default="database", description="Database (schema) name")

    # Connection pool
    POOL_MAXIMUM_SIZE: int = Field(
        default_factory=default_maximum_pool_size,
        description="Maximum number of pooled connections (2 x cpu_count + 1)"
    )
    POOL_MINIMUM_IDLE: Optional[int] = Field(
        default=None,
        description="Connections kept open in the pool (defaults to min(POOL_MAXIMUM_SIZE, 10))"
    )
    POOL_MAX_LIFETIME: int = Field(
        default=30 * 60,
        description="Seconds after which a pooled connection is recycled"
    )
    POOL_CONNECTION_TIMEOUT: int = Field(
        default=10,
        description="Seconds to wait for a connection before failing"
    )
    POOL_LEAK_DETECTION_THRESHOLD: int = Field(
        default=10,
        description="Seconds a connection may stay checked out before a leak warning is logged"
    )
    POOL_SOCKET_TIMEOUT: int = Field(
        default=30,
        description="Seconds a driver read/write may block"
    )

    # Asynchronous dispatch
    EXECUTOR_WORKERS: int = Field(
        default_factory=default_worker_count,
        description="Threads in the shared worker pool used by async operations"
    )

    @model_validator(mode="after")
    def _fill_minimum_idle(self) -> "Settings":
        if self.POOL_MINIMUM_IDLE is None:
            self.POOL_MINIMUM_IDLE = min(self.POOL_MAXIMUM_SIZE, 10)
        return self


settings = Settings()
