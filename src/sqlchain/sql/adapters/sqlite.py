# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQLite async adapter using aiosqlite."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import aiosqlite

from ...result import ResultSet
from ..dialect import SQLITE
from .base import DbAdapter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ...config import SessionConfig


class SqliteAdapter(DbAdapter):
    """SQLite async adapter.

    Uses ``?`` placeholders natively. Connections are opened in autocommit
    mode (``isolation_level=None``) so BEGIN / COMMIT / ROLLBACK are issued
    explicitly by the Session, as with the server-based adapters.

    SQLite has no server-side schema selection or idle timeout: both setup
    steps are no-ops.
    """

    dialect = SQLITE
    paramstyle = "qmark"

    async def connect(self, config: SessionConfig) -> aiosqlite.Connection:
        """Open the database file (or ``:memory:``)."""
        return await aiosqlite.connect(
            config.database or ":memory:",
            timeout=config.connect_timeout,
            isolation_level=None,
        )

    async def ping(self, conn: aiosqlite.Connection) -> None:
        """Run SELECT 1."""
        cursor = await conn.execute("SELECT 1")
        await cursor.close()

    async def end(self, conn: aiosqlite.Connection) -> None:
        """Close connection."""
        await conn.close()

    async def query(
        self, conn: aiosqlite.Connection, sql: str, params: Sequence[Any] | None = None
    ) -> ResultSet:
        """Execute statement, return rows as dicts."""
        async with conn.execute(sql, list(params or ())) as cursor:
            rows = await cursor.fetchall()
            cols = [c[0] for c in cursor.description] if cursor.description else []
            return ResultSet(
                [dict(zip(cols, row, strict=True)) for row in rows],
                cols,
                rowcount=cursor.rowcount,
                lastrowid=cursor.lastrowid,
            )

    async def begin(self, conn: aiosqlite.Connection) -> None:
        await conn.execute("BEGIN")

    async def commit(self, conn: aiosqlite.Connection) -> None:
        await conn.execute("COMMIT")

    async def rollback(self, conn: aiosqlite.Connection) -> None:
        await conn.execute("ROLLBACK")
