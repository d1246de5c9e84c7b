# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQL dialects: identifier quoting and dialect-specific clause rendering.

Builders always emit the canonical ``?`` placeholder; adapters whose driver
uses another paramstyle translate it right before execution. Values are never
interpolated into SQL text: the only literals a dialect writes are the fixed
``'%'`` wildcards used by pattern matching.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence


class Dialect:
    """Base dialect (ANSI double-quoted identifiers).

    Subclasses override the class attributes and the clause renderers that
    differ between engines.
    """

    name: str = "ansi"
    quote_char: str = '"'
    placeholder: str = "?"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    # -------------------------------------------------------------------------
    # Identifiers
    # -------------------------------------------------------------------------

    def quote(self, name: str) -> str:
        """Return quoted identifier. Embedded quote chars are doubled."""
        q = self.quote_char
        return f"{q}{str(name).replace(q, q + q)}{q}"

    def qualified(self, *parts: str | None) -> str:
        """Return dot-joined quoted identifier, skipping empty parts."""
        return ".".join(self.quote(p) for p in parts if p)

    def column(self, table: str | None, column: str) -> str:
        """Return ``table.column`` reference (``table.*`` for the wildcard)."""
        if column == "*":
            return f"{self.quote(table)}.*" if table else "*"
        return self.qualified(table, column)

    def alias(self, sql: str, alias: str | None) -> str:
        """Append ``AS alias`` when alias is not empty."""
        if not alias:
            return sql
        return f"{sql} AS {self.quote(alias)}"

    # -------------------------------------------------------------------------
    # Expressions and clauses
    # -------------------------------------------------------------------------

    def concat(self, parts: Sequence[str]) -> str:
        """Return string concatenation of already-rendered SQL parts."""
        return f"({' || '.join(parts)})"

    def pattern(self, prefix: bool, suffix: bool) -> str:
        """Return a LIKE pattern wrapping one placeholder in ``%`` wildcards."""
        parts = []
        if prefix:
            parts.append("'%'")
        parts.append(self.placeholder)
        if suffix:
            parts.append("'%'")
        return self.concat(parts)

    def limit(self, offset: int, size: int) -> str:
        """Return LIMIT clause for the given row offset and page size."""
        return f"LIMIT {offset}, {size}"

    def upsert(self, columns: Sequence[str], target: Sequence[str] = ()) -> str:
        """Return the update-on-conflict clause for an INSERT."""
        sets = ", ".join(f"{self.quote(c)} = excluded.{self.quote(c)}" for c in columns)
        conflict = f"({', '.join(self.quote(c) for c in target)}) " if target else ""
        return f"ON CONFLICT {conflict}DO UPDATE SET {sets}"


class MySqlDialect(Dialect):
    """MySQL / MariaDB: backtick identifiers, CONCAT(), ON DUPLICATE KEY UPDATE."""

    name = "mysql"
    quote_char = "`"

    def concat(self, parts: Sequence[str]) -> str:
        return f"CONCAT({', '.join(parts)})"

    def upsert(self, columns: Sequence[str], target: Sequence[str] = ()) -> str:
        sets = ", ".join(f"{self.quote(c)} = VALUES({self.quote(c)})" for c in columns)
        return f"ON DUPLICATE KEY UPDATE {sets}"


class SqliteDialect(Dialect):
    """SQLite: double-quoted identifiers, ``||`` concatenation, MySQL-style LIMIT."""

    name = "sqlite"


class PostgresDialect(Dialect):
    """PostgreSQL: CONCAT(), LIMIT/OFFSET, ON CONFLICT with a mandatory target."""

    name = "postgresql"

    def concat(self, parts: Sequence[str]) -> str:
        return f"CONCAT({', '.join(parts)})"

    def limit(self, offset: int, size: int) -> str:
        return f"LIMIT {size} OFFSET {offset}"

    def upsert(self, columns: Sequence[str], target: Sequence[str] = ()) -> str:
        if not target:
            raise ValidationError("PostgreSQL upsert requires a conflict target!")
        sets = ", ".join(f"{self.quote(c)} = EXCLUDED.{self.quote(c)}" for c in columns)
        cols = ", ".join(self.quote(c) for c in target)
        return f"ON CONFLICT ({cols}) DO UPDATE SET {sets}"


MYSQL = MySqlDialect()
SQLITE = SqliteDialect()
POSTGRESQL = PostgresDialect()

DIALECTS: dict[str, Dialect] = {
    "mysql": MYSQL,
    "mariadb": MYSQL,
    "sqlite": SQLITE,
    "postgresql": POSTGRESQL,
    "postgres": POSTGRESQL,
}


def get_dialect(name: str | Dialect) -> Dialect:
    """Return dialect by name (instances are passed through).

    Raises:
        ValueError: If the dialect name is unknown.
    """
    if isinstance(name, Dialect):
        return name
    try:
        return DIALECTS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown dialect: '{name}'. Supported: {', '.join(sorted(DIALECTS))}"
        ) from None


__all__ = [
    "Dialect",
    "MySqlDialect",
    "SqliteDialect",
    "PostgresDialect",
    "MYSQL",
    "SQLITE",
    "POSTGRESQL",
    "DIALECTS",
    "get_dialect",
]
