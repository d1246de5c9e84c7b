# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Result containers returned by sessions and builders."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any, NamedTuple


class Result(NamedTuple):
    """Outcome of an execution: ``(success, value)``.

    On success ``value`` is a ResultSet, a single row or a single field.
    On failure ``value`` is the SqlChainError describing what went wrong.

    Unpacks like the callback pair it replaces::

        ok, rows = await query.execute()
    """

    success: bool
    value: Any = None

    @property
    def error(self) -> BaseException | None:
        """The error on failure, None on success."""
        return None if self.success else self.value


class ResultSet(list):
    """Rows returned by a statement, with column metadata.

    Behaves as a plain list of row dicts. For statements that return no rows
    (INSERT, UPDATE, DELETE) the list is empty and ``rowcount`` / ``lastrowid``
    carry the driver's report.

    Attributes:
        fields: Column names in result order (empty for non-SELECT statements).
        rowcount: Affected row count as reported by the driver (-1 if unknown).
        lastrowid: Last generated id, if the driver reports one.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        fields: list[str] | None = None,
        rowcount: int = -1,
        lastrowid: Any = None,
    ):
        super().__init__(rows or [])
        self.fields = list(fields or [])
        self.rowcount = rowcount
        self.lastrowid = lastrowid

    def __repr__(self) -> str:
        return (
            f"ResultSet({list.__repr__(self)}, fields={self.fields!r}, "
            f"rowcount={self.rowcount!r})"
        )


def narrow(rows: list[dict[str, Any]], index: int | None = None, column: str | None = None) -> Any:
    """Apply the row/column narrowing rule.

    - ``index`` given and a row exists there: that row,
      or that row's ``column`` value when ``column`` is given and present.
    - otherwise: all rows, unchanged.
    """
    if index is None or not 0 <= index < len(rows):
        return rows
    row = rows[index]
    if column is not None and column in row:
        return row[column]
    return row


async def notify(callback: Callable[[bool, Any], Any] | None, result: Result) -> None:
    """Invoke an optional continuation with ``(success, value)``.

    Plain functions and coroutine functions are both accepted.
    """
    if callback is None:
        return
    outcome = callback(result.success, result.value)
    if inspect.isawaitable(outcome):
        await outcome


__all__ = ["Result", "ResultSet", "narrow", "notify"]
