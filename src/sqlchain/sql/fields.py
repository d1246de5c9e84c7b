# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Field model: the expressions of a SELECT list.

Each kind is a frozen dataclass with a ``render(dialect, params)`` method that
returns its SQL and appends any bound values to ``params`` in text order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from ..errors import ValidationError
from .refs import ColumnRef, is_query, render_operand, render_subquery

if TYPE_CHECKING:
    from .dialect import Dialect
    from .query import Query

# Sentinel for "no second function argument" (None is a valid bound value).
MISSING: Any = object()


@dataclass(frozen=True)
class ColumnField:
    """``table.column [AS alias]``."""

    table: str | None
    column: str
    alias: str | None = None

    def render(self, dialect: Dialect, params: list[Any]) -> str:
        return dialect.alias(dialect.column(self.table, self.column), self.alias)


@dataclass(frozen=True)
class WildcardField:
    """``table.*``."""

    table: str

    def render(self, dialect: Dialect, params: list[Any]) -> str:
        return dialect.column(self.table, "*")


@dataclass(frozen=True)
class FunctionField:
    """``FUNC([DISTINCT] source[, argument]) [AS alias]``.

    Attributes:
        func: Function name, emitted verbatim (e.g. COUNT, MAX, DATE_FORMAT).
        source: ColumnRef, nested Query, or None for ``*``.
        distinct: Emit DISTINCT before the source.
        alias: Output alias.
        argument: Optional second argument: ColumnRef, nested Query or a
            bound value. MISSING means the function takes one argument.
    """

    func: str
    source: ColumnRef | Query | None
    distinct: bool = False
    alias: str | None = None
    argument: Any = MISSING

    def render(self, dialect: Dialect, params: list[Any]) -> str:
        if self.source is None:
            if self.distinct:
                raise ValidationError(f"{self.func}(DISTINCT ...) requires a column")
            inner = "*"
        elif is_query(self.source):
            inner = render_subquery(self.source, dialect, params)
        else:
            inner = self.source.render(dialect)
        if self.distinct:
            inner = f"DISTINCT {inner}"
        if self.argument is not MISSING:
            inner = f"{inner}, {render_operand(self.argument, dialect, params)}"
        return dialect.alias(f"{self.func}({inner})", self.alias)


@dataclass(frozen=True)
class ConcatField:
    """Concatenation of columns with an optional bound separator between each pair."""

    columns: tuple[ColumnRef, ...]
    alias: str | None = None
    separator: str | None = None

    def render(self, dialect: Dialect, params: list[Any]) -> str:
        parts: list[str] = []
        for i, ref in enumerate(self.columns):
            if i and self.separator:
                parts.append(dialect.placeholder)
                params.append(self.separator)
            parts.append(ref.render(dialect))
        return dialect.alias(dialect.concat(parts), self.alias)


@dataclass(frozen=True)
class SubQueryField:
    """``(SELECT ...) [AS alias]``; the query should yield one row and one column."""

    query: Query
    alias: str | None = None

    def render(self, dialect: Dialect, params: list[Any]) -> str:
        return dialect.alias(render_subquery(self.query, dialect, params), self.alias)


Field = Union[ColumnField, WildcardField, FunctionField, ConcatField, SubQueryField]


__all__ = [
    "MISSING",
    "Field",
    "ColumnField",
    "WildcardField",
    "FunctionField",
    "ConcatField",
    "SubQueryField",
]
