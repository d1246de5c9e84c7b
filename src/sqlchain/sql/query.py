# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SELECT builder with fluent API, join targets, grouped conditions and paging."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..errors import ConnectionError, ValidationError
from ..result import Result, notify
from .conditions import Condition, GroupEnd, GroupStart, Param, normalize_combo, render_conditions
from .dialect import MYSQL, Dialect, get_dialect
from .fields import (
    MISSING,
    ColumnField,
    ConcatField,
    Field,
    FunctionField,
    SubQueryField,
    WildcardField,
)
from .refs import ColumnRef, is_query
from .tables import JoinKind, TableRef

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from .session import Session

logger = logging.getLogger(__name__)


def _in_values(values: Any) -> Any:
    return values if is_query(values) else list(values)


@dataclass(frozen=True)
class OrderBy:
    """``table.column [direction]`` in ORDER BY."""

    table: str | None
    column: str
    direction: str | None = None

    def render(self, dialect: Dialect) -> str:
        sql = dialect.column(self.table, self.column)
        return f"{sql} {self.direction}" if self.direction else sql


class Query:
    """SELECT statement builder.

    Every configuration method mutates the builder and returns it, so calls
    chain. ``compile()`` turns the model into SQL text plus the list of bound
    values, placeholder i binding value i.

    Usage:
        query = (
            session.query()
            .add_table("shop", "customers", "c")
            .add_table("shop", "orders", "o", joins={"CustomerID": Query.join_to("c", "ID")})
            .add_field("c", "LastName")
            .count("o", "ID", alias="Orders")
            .like("c", "LastName", "doe")
            .add_order_by("c", "LastName", "ASC")
            .set_paging(2, 25)
        )
        ok, rows = await query.execute()

    Attributes:
        session: Session used by execute(). May be None for compile-only use.
        tables: FROM target followed by joined tables.
        fields: SELECT list.
        conditions: WHERE node sequence.
        order_by: ORDER BY entries.
        page: 1-based page number, None for no paging.
        limit: Page size, None for no paging.
        records: Rows cached by the last successful execute().
    """

    def __init__(self, session: Session | None = None, dialect: Dialect | str | None = None):
        self.session = session
        self._dialect = get_dialect(dialect) if dialect is not None else None
        self.tables: list[TableRef] = []
        self.fields: list[Field] = []
        self.conditions: list[Condition] = []
        self.order_by: list[OrderBy] = []
        self.page: int | None = None
        self.limit: int | None = None
        self.records: list[dict[str, Any]] | None = None

    def __repr__(self) -> str:
        names = ", ".join(t.alias or t.table for t in self.tables)
        return f"<Query [{names}] fields={len(self.fields)} conditions={len(self.conditions)}>"

    @property
    def dialect(self) -> Dialect:
        """Explicit dialect, else the session's, else MySQL."""
        if self._dialect is not None:
            return self._dialect
        if self.session is not None:
            return self.session.dialect
        return MYSQL

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def add_table(
        self,
        schema: str | None,
        table: str,
        alias: str | None = None,
        joins: dict[str, Any] | None = None,
        join: JoinKind | str | None = None,
    ) -> Query:
        """Add a table. The first one is the FROM target, later ones are joined.

        Args:
            schema: Schema name (None/empty for unqualified).
            table: Table name.
            alias: Table alias.
            joins: Local column -> join target; use join_to() for a column,
                anything else is bound as a value.
            join: JoinKind (or "left", "right_outer"...). Defaults to INNER.
        """
        self.tables.append(
            TableRef(schema, table, alias, dict(joins or {}), JoinKind.coerce(join))
        )
        return self

    @staticmethod
    def join_to(table: str, column: str) -> ColumnRef:
        """Return a join target pointing at another table's column."""
        return ColumnRef(table, column)

    # -------------------------------------------------------------------------
    # Fields
    # -------------------------------------------------------------------------

    def add_field(self, table: str | None, column: str, alias: str | None = None) -> Query:
        """Select ``table.column``."""
        self.fields.append(ColumnField(table, column, alias))
        return self

    def add_all_field(self, table: str) -> Query:
        """Select every column of a table alias (``alias.*``)."""
        self.fields.append(WildcardField(table))
        return self

    def add_concat_field(
        self,
        fields: Iterable[tuple[str, str] | ColumnRef],
        alias: str | None = None,
        separator: str | None = None,
    ) -> Query:
        """Select the concatenation of several columns.

        Args:
            fields: (table, column) pairs or ColumnRefs, in output order.
            alias: Output alias.
            separator: Text inserted between each pair (bound as a value).
        """
        refs = tuple(f if isinstance(f, ColumnRef) else ColumnRef(f[0], f[1]) for f in fields)
        self.fields.append(ConcatField(refs, alias, separator))
        return self

    def count(
        self,
        table: str | None = None,
        column: str | None = None,
        alias: str | None = None,
        distinct: bool = False,
    ) -> Query:
        """Select ``COUNT([DISTINCT] table.column)``, or ``COUNT(*)`` without a column.

        DISTINCT needs a column; compiling ``count(distinct=True)`` raises ValidationError.
        """
        source = ColumnRef(table, column) if column else None
        self.fields.append(FunctionField("COUNT", source, distinct, alias))
        return self

    def add_function(
        self,
        func: str,
        table: str | Query | None,
        column: str | None = None,
        alias: str | None = None,
        distinct: bool = False,
        argument: Any = MISSING,
    ) -> Query:
        """Select ``func(table.column[, argument])``.

        Args:
            func: Function name, emitted verbatim.
            table: Table alias, or a Query whose result is the function input.
            column: Column name (ignored when table is a Query).
            alias: Output alias.
            distinct: Emit DISTINCT inside the call.
            argument: Optional second argument: ColumnRef, Query or bound value.
        """
        if is_query(table):
            source: ColumnRef | Query | None = table
        elif column:
            source = ColumnRef(table, column)
        else:
            source = None
        self.fields.append(FunctionField(func, source, distinct, alias, argument))
        return self

    def add_date_format(
        self, table: str, column: str, fmt: str | ColumnRef, alias: str | None = None
    ) -> Query:
        """Select ``DATE_FORMAT(table.column, fmt)`` (MySQL)."""
        return self.add_function("DATE_FORMAT", table, column, alias, argument=fmt)

    def add_sub_query(self, query: Query, alias: str | None = None) -> Query:
        """Select a correlated subquery. It must return at most one row and column."""
        self.fields.append(SubQueryField(query, alias))
        return self

    # -------------------------------------------------------------------------
    # Ordering and paging
    # -------------------------------------------------------------------------

    def add_order_by(self, table: str | None, column: str, direction: str | None = None) -> Query:
        """Add an ORDER BY entry; direction is ASC, DESC or None."""
        self.order_by.append(OrderBy(table, column, direction.upper() if direction else None))
        return self

    def set_page(self, page: int | None) -> Query:
        """Set the 1-based page number (None disables paging)."""
        self.page = None if page is None else int(page)
        return self

    def set_limit(self, limit: int | None) -> Query:
        """Set the page size (None disables paging)."""
        self.limit = None if limit is None else int(limit)
        return self

    def set_paging(self, page: int | None, limit: int | None) -> Query:
        """Set page number and page size together."""
        return self.set_page(page).set_limit(limit)

    def offset(self) -> int | None:
        """Row offset of the current page, None when no LIMIT is emitted."""
        if self.page is None or self.limit is None or self.limit <= 0:
            return None
        if self.page <= 1:
            return 0
        return (self.page - 1) * self.limit

    # -------------------------------------------------------------------------
    # Conditions
    # -------------------------------------------------------------------------

    def add_param(
        self,
        table: str | Query | None,
        column: str | None,
        value: Any,
        operator: str | None = "=",
        combo: str | None = "AND",
    ) -> Query:
        """Add a WHERE comparison.

        Args:
            table: Table alias, or a Query compared as a subquery.
            column: Column name (ignored when table is a Query).
            value: Bound value, ColumnRef or Query.
            operator: Comparison operator, ``=`` when empty.
            combo: AND / OR joining this condition to the previous one.
        """
        left = table if is_query(table) else ColumnRef(table, column)
        self.conditions.append(Param(left, value, operator or "=", normalize_combo(combo)))
        return self

    def not_equal(self, table: str, column: str, value: Any, combo: str | None = "AND") -> Query:
        return self.add_param(table, column, value, "<>", combo)

    def like(self, table: str, column: str, value: Any, combo: str | None = "AND") -> Query:
        """``column LIKE %value%``."""
        return self.add_param(table, column, value, "LIKE", combo)

    def not_like(self, table: str, column: str, value: Any, combo: str | None = "AND") -> Query:
        """``column NOT LIKE %value%``."""
        return self.add_param(table, column, value, "NOT LIKE", combo)

    def like_prefix(self, table: str, column: str, value: Any, combo: str | None = "AND") -> Query:
        """``column LIKE value%`` (starts with)."""
        return self.add_param(table, column, value, "LIKE%", combo)

    def like_suffix(self, table: str, column: str, value: Any, combo: str | None = "AND") -> Query:
        """``column LIKE %value`` (ends with)."""
        return self.add_param(table, column, value, "%LIKE", combo)

    def greater_equal(
        self, table: str, column: str, value: Any, combo: str | None = "AND"
    ) -> Query:
        return self.add_param(table, column, value, ">=", combo)

    def less_equal(self, table: str, column: str, value: Any, combo: str | None = "AND") -> Query:
        return self.add_param(table, column, value, "<=", combo)

    def greater_than(self, table: str, column: str, value: Any, combo: str | None = "AND") -> Query:
        return self.add_param(table, column, value, ">", combo)

    def less_than(self, table: str, column: str, value: Any, combo: str | None = "AND") -> Query:
        return self.add_param(table, column, value, "<", combo)

    def is_null(self, table: str, column: str, combo: str | None = "AND") -> Query:
        return self.add_param(table, column, None, "IS NULL", combo)

    def is_not_null(self, table: str, column: str, combo: str | None = "AND") -> Query:
        return self.add_param(table, column, None, "IS NOT NULL", combo)

    def is_in(
        self, table: str, column: str, values: Sequence[Any] | Query, combo: str | None = "AND"
    ) -> Query:
        """``column IN (?, ...)``; values may also be a Query (subquery)."""
        return self.add_param(table, column, _in_values(values), "IN", combo)

    def not_in(
        self, table: str, column: str, values: Sequence[Any] | Query, combo: str | None = "AND"
    ) -> Query:
        return self.add_param(table, column, _in_values(values), "NOT IN", combo)

    def between(
        self, table: str, column: str, low: Any, high: Any, combo: str | None = "AND"
    ) -> Query:
        return self.add_param(table, column, [low, high], "BETWEEN", combo)

    def start_group(self, combo: str | None = "AND") -> Query:
        """Open a parenthesized group joined to the previous condition by combo."""
        self.conditions.append(GroupStart(normalize_combo(combo)))
        return self

    def end_group(self, combo: str | None = "AND") -> Query:
        """Close the innermost group."""
        self.conditions.append(GroupEnd(normalize_combo(combo)))
        return self

    def set_params(self, conditions: list[Condition]) -> Query:
        """Adopt a condition list as-is.

        The list is not copied: builders given the same list share it and
        later mutations through either builder are visible to both.
        """
        self.conditions = conditions
        return self

    def copy_params(self, target: Query) -> Query:
        """Give target a copy of this query's conditions (e.g. for a total-count query).

        Nodes are immutable, so the copy is independent: adding conditions to
        either builder afterwards does not affect the other.
        """
        target.set_params(list(self.conditions))
        return self

    copy_conditions = copy_params

    # -------------------------------------------------------------------------
    # Compilation
    # -------------------------------------------------------------------------

    def compile(self, dialect: Dialect | str | None = None) -> tuple[str, list[Any]]:
        """Return ``(sql, params)`` for the current model.

        Raises:
            ValidationError: If a condition cannot be rendered (e.g. IN without a list).
        """
        dialect = get_dialect(dialect) if dialect is not None else self.dialect
        params: list[Any] = []

        fields_sql = ", ".join(f.render(dialect, params) for f in self.fields)
        tables_sql = " ".join(
            t.render(dialect, params, first=(i == 0)) for i, t in enumerate(self.tables)
        )
        sql = f"SELECT {fields_sql} FROM {tables_sql}"

        if self.conditions:
            sql += f" WHERE {render_conditions(self.conditions, dialect, params)}"

        if self.order_by:
            sql += " ORDER BY " + ", ".join(o.render(dialect) for o in self.order_by)

        offset = self.offset()
        if offset is not None:
            sql += f" {dialect.limit(offset, self.limit)}"

        return sql, params

    def get_query(self) -> str:
        """Compiled SQL text (debug helper)."""
        return self.compile()[0]

    def get_values(self) -> list[Any]:
        """Compiled bound values (debug helper)."""
        return self.compile()[1]

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def execute(self, callback: Callable[[bool, Any], Any] | None = None) -> Result:
        """Run the query and cache its rows.

        Args:
            callback: Optional continuation called with (success, rows_or_error).

        Returns:
            Result(True, ResultSet) or Result(False, error).
        """
        if self.session is None:
            result = Result(False, ConnectionError("Query is not bound to a session"))
        else:
            try:
                sql, params = self.compile()
            except ValidationError as e:
                result = Result(False, e)
            else:
                result = await self.session.execute(sql, params)
        if result.success:
            self.records = result.value
        else:
            logger.debug("Query failed: %s", result.value)
        await notify(callback, result)
        return result

    def get_results(self, index: int | None = None, column: str | None = None) -> Any:
        """Return cached rows, a single row or a single field.

        Returns None when nothing is cached (or the cached set is empty) and
        when column is given but missing from the selected row.
        """
        if not self.records:
            return None
        if index is not None and 0 <= index < len(self.records):
            row = self.records[index]
            if column is not None:
                return row.get(column)
            return row
        return self.records


__all__ = ["Query", "OrderBy"]
