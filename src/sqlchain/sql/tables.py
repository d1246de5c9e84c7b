# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Table model: FROM target and joined tables."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..errors import ValidationError
from .refs import ColumnRef, is_query

if TYPE_CHECKING:
    from .dialect import Dialect


class JoinKind(enum.Enum):
    """How a table after the first one is joined. Values are the SQL keywords."""

    INNER = "JOIN"
    LEFT = "LEFT JOIN"
    RIGHT_OUTER = "RIGHT OUTER JOIN"

    @classmethod
    def coerce(cls, value: JoinKind | str | None) -> JoinKind:
        """Accept a JoinKind, its name ("left", "right_outer"...) or None (inner)."""
        if value is None:
            return cls.INNER
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper().replace(" ", "_")
        if key == "RIGHT":
            key = "RIGHT_OUTER"
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown join kind: '{value}'") from None


@dataclass
class TableRef:
    """A table in the FROM clause.

    Attributes:
        schema: Schema (database) name. Empty means unqualified.
        table: Table name.
        alias: Alias used by fields, conditions and joins.
        joins: Local column -> join target. A ColumnRef emits a column
            equality, anything else is a bound value.
        join: Join kind, ignored for the first table.
    """

    schema: str | None
    table: str
    alias: str | None = None
    joins: dict[str, Any] = field(default_factory=dict)
    join: JoinKind = JoinKind.INNER

    def render(self, dialect: Dialect, params: list[Any], first: bool = False) -> str:
        """Render the table reference, with JOIN keyword and ON clause unless first."""
        sql = dialect.qualified(self.schema, self.table)
        if self.alias:
            sql = f"{sql} AS {dialect.quote(self.alias)}"
        if first:
            return sql
        sql = f"{self.join.value} {sql}"
        if self.joins:
            sql += f" ON ({self._render_on(dialect, params)})"
        return sql

    def _render_on(self, dialect: Dialect, params: list[Any]) -> str:
        parts = []
        owner = self.alias or self.table
        for local, target in self.joins.items():
            left = dialect.column(owner, local)
            if isinstance(target, ColumnRef):
                parts.append(f"{left} = {target.render(dialect)}")
            elif is_query(target):
                raise ValidationError(f"Join target for '{local}' cannot be a query")
            else:
                params.append(target)
                parts.append(f"{left} = {dialect.placeholder}")
        return " AND ".join(parts)


__all__ = ["JoinKind", "TableRef"]
