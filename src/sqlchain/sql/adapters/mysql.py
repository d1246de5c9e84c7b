# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""MySQL / MariaDB adapter using PyMySQL.

PyMySQL is blocking: every driver call runs in the default thread pool via
asyncio.to_thread, so the event loop never waits on the socket.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

from ...result import ResultSet
from ..dialect import MYSQL
from .base import DbAdapter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ...config import SessionConfig


class MySqlAdapter(DbAdapter):
    """MySQL adapter.

    Converts ``?`` placeholders to ``%s``. After connecting the Session runs
    ``USE schema`` and ``SET @@session.wait_timeout``.
    """

    dialect = MYSQL
    paramstyle = "format"

    def __init__(self) -> None:
        # Verify PyMySQL is available at init time
        try:
            import pymysql  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "MySQL support requires PyMySQL. Install with: pip install sqlchain[mysql]"
            ) from e

    async def connect(self, config: SessionConfig) -> Any:
        """Open a new connection."""
        import pymysql
        from pymysql.cursors import DictCursor

        return await asyncio.to_thread(
            pymysql.connect,
            host=config.host,
            port=config.port or 3306,
            user=config.user,
            password=config.password,
            database=config.schema or None,
            connect_timeout=config.connect_timeout,
            autocommit=True,
            cursorclass=DictCursor,
        )

    async def ping(self, conn: Any) -> None:
        """Run SELECT NOW()."""
        await self.query(conn, "SELECT NOW()")

    async def select_schema(self, conn: Any, schema: str) -> None:
        """Run USE schema."""
        await self.query(conn, f"USE {self.dialect.quote(schema)}")

    async def set_wait_timeout(self, conn: Any, seconds: int) -> None:
        """Set the session wait_timeout."""
        await self.query(conn, f"SET @@session.wait_timeout = {int(seconds)}")

    async def end(self, conn: Any) -> None:
        """Send QUIT and close the socket."""
        await asyncio.to_thread(conn.close)

    async def destroy(self, conn: Any) -> None:
        """Close the socket without the QUIT handshake."""
        import pymysql

        # close() raises if the socket is already gone; destroy must not
        with contextlib.suppress(pymysql.err.Error):
            await asyncio.to_thread(conn.close)

    async def query(self, conn: Any, sql: str, params: Sequence[Any] | None = None) -> ResultSet:
        """Execute statement, return rows as dicts."""
        if params:
            sql = self._convert_placeholders(sql)
        args = list(params) if params else None

        def run() -> ResultSet:
            with conn.cursor() as cur:
                cur.execute(sql, args)
                cols = [c[0] for c in cur.description] if cur.description else []
                rows = list(cur.fetchall()) if cur.description else []
                return ResultSet(rows, cols, rowcount=cur.rowcount, lastrowid=cur.lastrowid)

        return await asyncio.to_thread(run)

    async def begin(self, conn: Any) -> None:
        await asyncio.to_thread(conn.begin)

    async def commit(self, conn: Any) -> None:
        await asyncio.to_thread(conn.commit)

    async def rollback(self, conn: Any) -> None:
        await asyncio.to_thread(conn.rollback)
