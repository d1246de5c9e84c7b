# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""PostgreSQL async adapter using psycopg3.

One connection per Session, opened in autocommit mode: the Session issues
BEGIN / COMMIT / ROLLBACK itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...result import ResultSet
from ..dialect import POSTGRESQL
from .base import DbAdapter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ...config import SessionConfig


class PostgresAdapter(DbAdapter):
    """PostgreSQL async adapter.

    Converts ``?`` placeholders to ``%s``. The target schema becomes the
    connection's search_path and wait_timeout maps to idle_session_timeout.
    """

    dialect = POSTGRESQL
    paramstyle = "format"

    def __init__(self) -> None:
        # Verify psycopg is available at init time
        try:
            import psycopg  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "PostgreSQL support requires psycopg. "
                "Install with: pip install sqlchain[postgresql]"
            ) from e

    async def connect(self, config: SessionConfig) -> Any:
        """Open a new connection."""
        import psycopg

        return await psycopg.AsyncConnection.connect(
            host=config.host,
            port=config.port or 5432,
            user=config.user or None,
            password=config.password or None,
            dbname=config.database,
            connect_timeout=int(config.connect_timeout),
            autocommit=True,
        )

    async def ping(self, conn: Any) -> None:
        """Run SELECT NOW()."""
        await conn.execute("SELECT NOW()")

    async def select_schema(self, conn: Any, schema: str) -> None:
        """Set search_path to schema."""
        from psycopg import sql

        await conn.execute(sql.SQL("SET search_path TO {}").format(sql.Identifier(schema)))

    async def set_wait_timeout(self, conn: Any, seconds: int) -> None:
        """Set idle_session_timeout (PostgreSQL 14+)."""
        await conn.execute(f"SET idle_session_timeout = {int(seconds) * 1000}")

    async def end(self, conn: Any) -> None:
        """Close connection."""
        await conn.close()

    async def query(self, conn: Any, sql: str, params: Sequence[Any] | None = None) -> ResultSet:
        """Execute statement, return rows as dicts."""
        from psycopg.rows import dict_row

        if params:
            sql = self._convert_placeholders(sql)
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(sql, list(params) if params else None)
            if cur.description is None:
                return ResultSet([], [], rowcount=cur.rowcount)
            rows = await cur.fetchall()
            cols = [c.name for c in cur.description]
            return ResultSet(rows, cols, rowcount=cur.rowcount)

    async def begin(self, conn: Any) -> None:
        await conn.execute("BEGIN")

    async def commit(self, conn: Any) -> None:
        await conn.execute("COMMIT")

    async def rollback(self, conn: Any) -> None:
        await conn.execute("ROLLBACK")
