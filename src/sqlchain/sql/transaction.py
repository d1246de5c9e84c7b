# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""INSERT / UPDATE / DELETE builder executed through session transactions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..errors import ConnectionError, ValidationError
from ..result import Result, notify
from .dialect import MYSQL, Dialect, get_dialect

if TYPE_CHECKING:
    from collections.abc import Callable

    from .session import Session

logger = logging.getLogger(__name__)


class Transaction:
    """Write statement builder.

    Columns are declared once; every record supplies its values by column
    name (missing keys bind NULL). Columns flagged for update make INSERT an
    upsert. UPDATE and DELETE refuse to run without conditions.

    Usage:
        tx = (
            session.transaction()
            .set_table("shop", "customers")
            .add_column("Email")
            .add_column("Name", update=True)
            .add_record({"Email": "john@doe.com", "Name": "John"})
            .add_record({"Email": "jane@doe.com", "Name": "Jane"})
        )
        ok, result = await tx.insert(commit=True)

        ok, result = await (
            session.transaction()
            .set_table("shop", "customers")
            .add_record({"Name": "Johnny"})
            .add_condition("Email", "john@doe.com")
            .update(commit=True)
        )
    """

    def __init__(self, session: Session | None = None, dialect: Dialect | str | None = None):
        self.session = session
        self._dialect = get_dialect(dialect) if dialect is not None else None
        self.schema: str | None = (session.config.schema or None) if session else None
        self.table = ""
        self.columns: list[str] = []
        self.update_columns: dict[str, bool] = {}
        self.conflict_target: list[str] = []
        self.records: list[dict[str, Any]] = []
        self.conditions: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"<Transaction {self.schema}.{self.table} records={len(self.records)}>"

    @property
    def dialect(self) -> Dialect:
        """Explicit dialect, else the session's, else MySQL."""
        if self._dialect is not None:
            return self._dialect
        if self.session is not None:
            return self.session.dialect
        return MYSQL

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def set_table(self, schema: str | None, table: str) -> Transaction:
        """Set the target table."""
        self.schema = schema
        self.table = table
        return self

    def add_column(self, name: str, update: bool = False) -> Transaction:
        """Declare a column; update=True also updates it on duplicate key."""
        self.columns.append(name)
        if update:
            self.add_update_column(name)
        return self

    def add_update_column(self, name: str) -> Transaction:
        """Mark a column as updated when an INSERT hits a duplicate key."""
        self.update_columns[name] = True
        return self

    def set_conflict_target(self, *columns: str) -> Transaction:
        """Set the unique columns an upsert conflicts on (required by PostgreSQL)."""
        self.conflict_target = list(columns)
        return self

    def add_record(self, record: dict[str, Any]) -> Transaction:
        """Add a record (column -> value)."""
        self.records.append(record)
        return self

    def add_condition(self, column: str, value: Any) -> Transaction:
        """Add ``column = value`` to the UPDATE/DELETE WHERE clause (AND-combined)."""
        self.conditions[column] = value
        return self

    # -------------------------------------------------------------------------
    # Compilation
    # -------------------------------------------------------------------------

    def _target(self, dialect: Dialect) -> str:
        return dialect.qualified(self.schema, self.table)

    def _where(self, dialect: Dialect, params: list[Any]) -> str:
        parts = []
        for column, value in self.conditions.items():
            parts.append(f"{dialect.quote(column)} = {dialect.placeholder}")
            params.append(value)
        return " AND ".join(parts)

    def compile_insert(self, dialect: Dialect | str | None = None) -> tuple[str, list[Any]]:
        """Return ``(sql, params)`` for a (multi-record) INSERT.

        Raises:
            ValidationError: No columns or no records.
        """
        dialect = get_dialect(dialect) if dialect is not None else self.dialect
        if not self.columns:
            raise ValidationError("No columns were supplied!")
        if not self.records:
            raise ValidationError("No records were supplied!")

        params: list[Any] = []
        group = "(" + ",".join(dialect.placeholder for _ in self.columns) + ")"
        for record in self.records:
            params.extend(record.get(column) for column in self.columns)

        cols = ", ".join(dialect.quote(c) for c in self.columns)
        values = ", ".join(group for _ in self.records)
        sql = f"INSERT INTO {self._target(dialect)} ({cols}) VALUES {values}"

        if self.update_columns:
            sql += " " + dialect.upsert(list(self.update_columns), self.conflict_target)
        return sql, params

    def compile_update(self, dialect: Dialect | str | None = None) -> tuple[str, list[Any]]:
        """Return ``(sql, params)`` for an UPDATE of the single record.

        Raises:
            ValidationError: No conditions, or not exactly one non-empty record.
        """
        dialect = get_dialect(dialect) if dialect is not None else self.dialect
        if not self.conditions:
            raise ValidationError("No conditions were supplied!")
        if len(self.records) != 1 or not self.records[0]:
            raise ValidationError("No records were supplied!")

        params: list[Any] = []
        sets = []
        for column, value in self.records[0].items():
            sets.append(f"{dialect.quote(column)} = {dialect.placeholder}")
            params.append(value)

        sql = f"UPDATE {self._target(dialect)} SET {', '.join(sets)}"
        sql += f" WHERE {self._where(dialect, params)}"
        return sql, params

    def compile_delete(self, dialect: Dialect | str | None = None) -> tuple[str, list[Any]]:
        """Return ``(sql, params)`` for a DELETE.

        Raises:
            ValidationError: No conditions.
        """
        dialect = get_dialect(dialect) if dialect is not None else self.dialect
        if not self.conditions:
            raise ValidationError("No conditions were supplied!")

        params: list[Any] = []
        sql = f"DELETE FROM {self._target(dialect)} WHERE {self._where(dialect, params)}"
        return sql, params

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def insert(
        self, callback: Callable[[bool, Any], Any] | None = None, commit: bool = False
    ) -> Result:
        """Insert all records in one statement."""
        return await self._run(self.compile_insert, callback, commit)

    async def update(
        self, callback: Callable[[bool, Any], Any] | None = None, commit: bool = False
    ) -> Result:
        """Update the rows matching the conditions with the single record."""
        return await self._run(self.compile_update, callback, commit)

    async def delete_records(
        self, callback: Callable[[bool, Any], Any] | None = None, commit: bool = False
    ) -> Result:
        """Delete the rows matching the conditions."""
        return await self._run(self.compile_delete, callback, commit)

    async def _run(
        self,
        compile_statement: Callable[[], tuple[str, list[Any]]],
        callback: Callable[[bool, Any], Any] | None,
        commit: bool,
    ) -> Result:
        """Compile, then run as a transaction; failures become Result(False, error)."""
        try:
            sql, params = compile_statement()
        except ValidationError as e:
            logger.debug("Transaction on %s rejected: %s", self.table, e)
            result = Result(False, e)
        else:
            if self.session is None:
                result = Result(False, ConnectionError("Transaction is not bound to a session"))
            else:
                result = await self.session.run_transaction(sql, params, commit)
        await notify(callback, result)
        return result


__all__ = ["Transaction"]
