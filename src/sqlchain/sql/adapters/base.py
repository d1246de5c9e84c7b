# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base adapter class for async database drivers."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ..dialect import Dialect

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ...config import SessionConfig
    from ...result import ResultSet

# Quoted identifiers and string literals (skipped whole), or a bare ? / %
_TOKEN_RE = re.compile(r"""`(?:[^`]|``)*`|"(?:[^"]|"")*"|'(?:[^'\\]|\\.|'')*'|[?%]""")


class DbAdapter(ABC):
    """Abstract base class for async database adapters.

    An adapter is a stateless bridge between a Session and one driver. The
    Session owns the connection object; the adapter opens it, runs statements
    on it and tears it down:

    - connect(config): Opens a new connection
    - ping(conn): Cheap round-trip, raises if the connection is dead
    - select_schema(conn, schema) / set_wait_timeout(conn, seconds): Session setup
    - query(conn, sql, params): Runs one statement, returns a ResultSet
    - begin / commit / rollback(conn): Transaction control
    - end(conn): Graceful close; destroy(conn): forced close

    Statements arrive with the canonical ``?`` placeholder. Subclasses whose
    driver uses another paramstyle set ``paramstyle = "format"`` and the base
    class converts the text before execution.
    """

    dialect: Dialect = Dialect()
    paramstyle: str = "qmark"  # Override in subclass

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    @abstractmethod
    async def connect(self, config: SessionConfig) -> Any:
        """Open a new connection.

        Returns:
            Driver connection object.
        """
        ...

    @abstractmethod
    async def ping(self, conn: Any) -> None:
        """Run a trivial statement. Raises if the connection is unusable."""
        ...

    async def select_schema(self, conn: Any, schema: str) -> None:
        """Make schema the default for unqualified names. No-op by default."""

    async def set_wait_timeout(self, conn: Any, seconds: int) -> None:
        """Set the server-side idle timeout for this connection. No-op by default."""

    @abstractmethod
    async def end(self, conn: Any) -> None:
        """Close the connection gracefully."""
        ...

    async def destroy(self, conn: Any) -> None:
        """Close the connection without waiting for the server. Defaults to end()."""
        await self.end(conn)

    # -------------------------------------------------------------------------
    # Statements and transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def query(
        self, conn: Any, sql: str, params: Sequence[Any] | None = None
    ) -> ResultSet:
        """Execute one statement, return rows with column metadata."""
        ...

    @abstractmethod
    async def begin(self, conn: Any) -> None:
        """Begin a transaction on connection."""
        ...

    @abstractmethod
    async def commit(self, conn: Any) -> None:
        """Commit transaction on connection."""
        ...

    @abstractmethod
    async def rollback(self, conn: Any) -> None:
        """Rollback transaction on connection."""
        ...

    # -------------------------------------------------------------------------
    # SQL Helpers
    # -------------------------------------------------------------------------

    def _convert_placeholders(self, sql: str) -> str:
        """Convert ``?`` placeholders to the driver paramstyle.

        For "format" drivers literal ``%`` must be doubled, since the driver
        runs ``sql % params``. Drivers skip that step when no parameters are
        bound, so callers convert only when params is not empty.

        A ``?`` inside a quoted identifier or string literal is text, not a
        placeholder, and is left as is.
        """
        if self.paramstyle != "format":
            return sql

        def replace(match: re.Match[str]) -> str:
            token = match.group(0)
            if token == "?":
                return "%s"
            return token.replace("%", "%%")

        return _TOKEN_RE.sub(replace, sql)
