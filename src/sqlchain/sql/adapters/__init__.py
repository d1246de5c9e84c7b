# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Database adapters for SQLite, MySQL and PostgreSQL.

This package provides async database adapters with a unified interface
for connecting, running statements and controlling transactions. The
Session owns the single connection; adapters only operate on it.

Components:
    DbAdapter: Abstract base class defining the adapter interface.
    SqliteAdapter: SQLite adapter using aiosqlite.
    MySqlAdapter: MySQL adapter using PyMySQL in worker threads.
    PostgresAdapter: PostgreSQL adapter using psycopg3.
    get_adapter: Factory function to create adapters from driver names.

Connection Model:
    - connect(config): Opens a new connection
    - ping(conn): Liveness probe
    - select_schema / set_wait_timeout: Per-connection setup
    - query(conn, sql, params): Runs one statement
    - begin / commit / rollback(conn): Transaction control
    - end(conn) / destroy(conn): Teardown

Note:
    MySQL requires PyMySQL: `pip install sqlchain[mysql]`.
    PostgreSQL requires psycopg: `pip install sqlchain[postgresql]`.
"""

from .base import DbAdapter
from .sqlite import SqliteAdapter

__all__ = ["DbAdapter", "SqliteAdapter", "ADAPTERS", "get_adapter"]

# Adapter registry
ADAPTERS: dict[str, type[DbAdapter]] = {
    "sqlite": SqliteAdapter,
}


def get_adapter(driver: str) -> DbAdapter:
    """Create database adapter from driver name.

    Driver names:
        - "sqlite" → SqliteAdapter
        - "mysql", "mariadb" → MySqlAdapter
        - "postgresql", "postgres" → PostgresAdapter

    Args:
        driver: Driver name (case-insensitive).

    Returns:
        DbAdapter instance.

    Raises:
        ValueError: If the driver is unknown.
        ImportError: If the optional driver package is not installed.
    """
    driver = driver.lower()

    if driver in ADAPTERS:
        return ADAPTERS[driver]()

    if driver in ("mysql", "mariadb"):
        # Lazy import to avoid ImportError when PyMySQL not installed
        from .mysql import MySqlAdapter

        ADAPTERS["mysql"] = MySqlAdapter
        ADAPTERS["mariadb"] = MySqlAdapter
        return MySqlAdapter()

    if driver in ("postgresql", "postgres"):
        from .postgresql import PostgresAdapter

        ADAPTERS["postgresql"] = PostgresAdapter
        ADAPTERS["postgres"] = PostgresAdapter
        return PostgresAdapter()

    raise ValueError(f"Unknown database type: '{driver}'. Supported: sqlite, mysql, postgresql")
