# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Condition model: the ordered node sequence behind a WHERE clause.

A WHERE clause is a flat list of nodes:

    Param       a comparison, joined to the previous node by its combinator
    GroupStart  opens a parenthesized group, joined by its own combinator
    GroupEnd    closes the group

The combinator of the node right after a GroupStart is dropped: the group
as a whole is joined by the GroupStart's combinator. Balance between
GroupStart and GroupEnd is the caller's responsibility.

Example:
    [Param(a), GroupStart("AND"), Param(b), Param(c, combo="OR"), GroupEnd()]
    -> a = ? AND (b = ? OR c = ?)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from ..errors import ValidationError
from .refs import ColumnRef, is_query, render_operand

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .dialect import Dialect
    from .query import Query

# Operators rendered without a bound value
NULL_OPERATORS = frozenset({"IS NULL", "IS NOT NULL"})

# Pattern operators -> (SQL operator, leading %, trailing %)
PATTERN_OPERATORS = {
    "LIKE": ("LIKE", True, True),
    "NOT LIKE": ("NOT LIKE", True, True),
    "LIKE%": ("LIKE", False, True),
    "%LIKE": ("LIKE", True, False),
}


@dataclass(frozen=True)
class Param:
    """A comparison: ``left operator value``.

    Attributes:
        left: ColumnRef or nested Query.
        value: Bound value, ColumnRef or nested Query.
        operator: Comparison operator (``=``, ``<>``, ``LIKE``, ``IN``...).
        combo: Combinator joining this node to the previous one.
    """

    left: ColumnRef | Query
    value: Any = None
    operator: str = "="
    combo: str = "AND"

    def render(self, dialect: Dialect, params: list[Any]) -> str:
        op = " ".join(self.operator.upper().split())

        if op in ("IN", "NOT IN") and not is_query(self.value):
            if not isinstance(self.value, (list, tuple, set, frozenset)):
                raise ValidationError(f"{op} requires a list, got {type(self.value).__name__}")
            if not self.value:
                # IN () is always false, NOT IN () always true; left is not emitted
                return "1 = 0" if op == "IN" else "1 = 1"

        left = render_operand(self.left, dialect, params)

        if op in NULL_OPERATORS:
            return f"{left} {op}"

        if is_query(self.value):
            return f"{left} {self.operator} {render_operand(self.value, dialect, params)}"

        if op in PATTERN_OPERATORS:
            sql_op, prefix, suffix = PATTERN_OPERATORS[op]
            params.append(self.value)
            return f"{left} {sql_op} {dialect.pattern(prefix, suffix)}"

        if op in ("IN", "NOT IN"):
            placeholders = ", ".join(render_operand(v, dialect, params) for v in self.value)
            return f"{left} {op} ({placeholders})"

        if op == "BETWEEN":
            if not isinstance(self.value, (list, tuple)) or len(self.value) != 2:
                raise ValidationError("BETWEEN requires a [low, high] pair")
            low = render_operand(self.value[0], dialect, params)
            high = render_operand(self.value[1], dialect, params)
            return f"{left} BETWEEN {low} AND {high}"

        return f"{left} {self.operator} {render_operand(self.value, dialect, params)}"


@dataclass(frozen=True)
class GroupStart:
    """Opens a parenthesized group of conditions."""

    combo: str = "AND"


@dataclass(frozen=True)
class GroupEnd:
    """Closes the innermost open group."""

    combo: str = "AND"


Condition = Union[Param, GroupStart, GroupEnd]


def normalize_combo(combo: str | None) -> str:
    """Return uppercase combinator, AND when empty."""
    if not combo or not str(combo).strip():
        return "AND"
    return str(combo).strip().upper()


def render_conditions(nodes: Sequence[Condition], dialect: Dialect, params: list[Any]) -> str:
    """Render the node sequence as the body of a WHERE clause."""
    sql = ""
    after_open = False
    for i, node in enumerate(nodes):
        if isinstance(node, GroupStart):
            if i > 0 and not after_open:
                sql += f" {node.combo} "
            sql += "("
            after_open = True
        elif isinstance(node, GroupEnd):
            sql += ")"
            after_open = False
        elif isinstance(node, Param):
            if i > 0 and not after_open:
                sql += f" {node.combo} "
            sql += node.render(dialect, params)
            after_open = False
        else:
            raise TypeError(f"Unknown condition node: {node!r}")
    return sql


__all__ = [
    "Condition",
    "Param",
    "GroupStart",
    "GroupEnd",
    "NULL_OPERATORS",
    "PATTERN_OPERATORS",
    "normalize_combo",
    "render_conditions",
]
