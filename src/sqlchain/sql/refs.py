# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Column references and operand rendering shared by fields, joins and conditions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .dialect import Dialect
    from .query import Query


@dataclass(frozen=True)
class ColumnRef:
    """Reference to ``table.column``; renders as a quoted identifier, never a placeholder."""

    table: str | None
    column: str

    def render(self, dialect: Dialect) -> str:
        return dialect.column(self.table, self.column)


def is_query(value: Any) -> bool:
    """Return True if value is a Query builder (embedded as a subquery)."""
    from .query import Query

    return isinstance(value, Query)


def render_subquery(query: Query, dialect: Dialect, params: list[Any]) -> str:
    """Render a nested query in parentheses, appending its values to params."""
    sql, values = query.compile(dialect)
    params.extend(values)
    return f"({sql})"


def render_operand(value: Any, dialect: Dialect, params: list[Any]) -> str:
    """Render a column reference, a subquery or a bound value.

    Bound values become a placeholder and are appended to params, so the
    position of a value in params always matches its placeholder in the text.
    """
    if isinstance(value, ColumnRef):
        return value.render(dialect)
    if is_query(value):
        return render_subquery(value, dialect, params)
    params.append(value)
    return dialect.placeholder


__all__ = ["ColumnRef", "is_query", "render_operand", "render_subquery"]
