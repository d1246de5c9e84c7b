# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Session manager: one lazily (re)connected database connection with transactions."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from ..config import SessionConfig
from ..errors import ConnectionError, DriverError, SqlChainError, TransactionAbort
from ..result import Result, ResultSet, narrow
from .adapters import DbAdapter, get_adapter
from .query import Query
from .transaction import Transaction

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .dialect import Dialect

logger = logging.getLogger(__name__)


def _failure(error: SqlChainError, cause: BaseException | None = None) -> Result:
    """Return Result(False, error) with the driver exception chained as cause."""
    error.__cause__ = cause
    return Result(False, error)


class Session:
    """Owner of the single database connection used by Query and Transaction.

    Every operation first makes sure the connection is alive: a cheap probe
    runs on the existing connection and, if it fails (or there is none), a new
    connection is opened with the last-known credentials, the schema is
    selected and the idle timeout is set. Connection failures are reported,
    not retried; the next operation tries again.

    Nothing is raised across the public methods: every outcome is a
    ``Result(success, value)`` whose value is the error on failure.

    Transaction model:
        - run_transaction(sql, params, commit=False): BEGIN (unless a
          transaction is already open), run the statement, ROLLBACK on failure.
        - commit=True commits at the end of the statement. With commit=False
          the transaction stays open so further run_transaction calls join it;
          finish with a commit=True call or commit().
        - A connection lost with a transaction open takes that transaction
          with it. The next run_transaction or commit() reports the loss as
          Result(False, TransactionAbort) without running anything; the
          caller has to replay the whole chain. rollback() just clears it.

    There is no pool and no locking: callers sharing one Session must await
    each operation before starting the next.

    Usage:
        async with Session(SessionConfig.from_url("mysql://app:pw@db/shop")) as session:
            ok, rows = await session.query().add_table("shop", "customers", "c") \\
                .add_all_field("c").execute()

            ok, result = await session.run_transaction(
                "UPDATE `shop`.`customers` SET `Active` = ? WHERE `ID` = ?", [0, 7],
                commit=True,
            )
    """

    def __init__(self, config: SessionConfig | None = None, adapter: DbAdapter | None = None):
        """Initialize session. No connection is opened until the first operation.

        Args:
            config: Connection configuration. Defaults to in-memory SQLite.
            adapter: Driver adapter. Defaults to the one named by config.driver.
        """
        self.config = config or SessionConfig()
        self.adapter: DbAdapter = adapter or get_adapter(self.config.driver)
        self._conn: Any = None
        self._in_transaction = False
        # Set when the connection died under an open transaction, until reported
        self._transaction_lost = False

    @classmethod
    def from_url(cls, url: str, **overrides: Any) -> Session:
        """Create a session from a connection URL."""
        return cls(SessionConfig.from_url(url, **overrides))

    def __repr__(self) -> str:
        state = "connected" if self.connected else "disconnected"
        return f"<Session {self.config.driver} {state}>"

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def dialect(self) -> Dialect:
        """SQL dialect of the adapter."""
        return self.adapter.dialect

    @property
    def connected(self) -> bool:
        """True if a connection object is held (it may still be dead)."""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """True while a transaction begun by run_transaction is open."""
        return self._in_transaction

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def query(self) -> Query:
        """Return a new SELECT builder bound to this session."""
        return Query(self)

    def transaction(self) -> Transaction:
        """Return a new write builder bound to this session."""
        return Transaction(self)

    # -------------------------------------------------------------------------
    # Connection management
    # -------------------------------------------------------------------------

    async def ensure_connected(
        self,
        user: str | None = None,
        password: str | None = None,
        schema: str | None = None,
    ) -> Result:
        """Make sure a live connection exists.

        Args:
            user: Login user; None keeps the last-known one.
            password: Login password; None keeps the last-known one.
            schema: Schema to select; None keeps the last-known one.

        Returns:
            Result(True) when connected, Result(False, ConnectionError) otherwise.
        """
        if self._conn is not None:
            try:
                await self.adapter.ping(self._conn)
            except Exception as e:
                if self._in_transaction:
                    logger.warning("Connection lost with an open transaction: %s", e)
                    self._transaction_lost = True
                else:
                    logger.warning("Liveness probe failed, reconnecting: %s", e)
                await self._discard()
            else:
                return Result(True)

        credentials = {
            key: value
            for key, value in (("user", user), ("password", password), ("schema", schema))
            if value is not None
        }
        config = dataclasses.replace(self.config, **credentials)

        try:
            conn = await self.adapter.connect(config)
        except Exception as e:
            logger.warning("Connection to %r failed: %s", config, e)
            return _failure(ConnectionError(f"Connection failed: {e}"), e)

        try:
            if config.schema:
                await self.adapter.select_schema(conn, config.schema)
            if config.wait_timeout:
                await self.adapter.set_wait_timeout(conn, config.wait_timeout)
        except Exception as e:
            logger.warning("Session setup on %r failed: %s", config, e)
            await self._destroy(conn)
            return _failure(ConnectionError(f"Session setup failed: {e}"), e)

        self.config = config
        self._conn = conn
        self._in_transaction = False
        logger.info("Connected: %r", config)
        return Result(True)

    async def close(self) -> None:
        """Close the connection gracefully. The next operation reconnects."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        if self._in_transaction:
            logger.warning("Closing session with an open transaction; it will be rolled back")
        self._in_transaction = False
        self._transaction_lost = False
        try:
            await self.adapter.end(conn)
        except Exception as e:
            logger.warning("Error while closing connection: %s", e)

    async def destroy(self) -> None:
        """Drop the connection without a graceful shutdown."""
        self._transaction_lost = False
        await self._discard()

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    async def execute(
        self,
        sql: str,
        params: Sequence[Any] | None = None,
        index: int | None = None,
        column: str | None = None,
    ) -> Result:
        """Run one statement outside of explicit transaction control.

        Args:
            sql: Statement with ``?`` placeholders.
            params: Values bound to the placeholders, in order.
            index: Return only the row at this position, if it exists.
            column: With index, return only this field of the row, if present.

        Returns:
            Result(True, ResultSet | row | value) or Result(False, error).
        """
        status = await self.ensure_connected()
        if not status.success:
            return status

        logger.debug("SQL: %s %r", sql, params)
        try:
            rows = await self.adapter.query(self._conn, sql, params or [])
        except Exception as e:
            logger.debug("Statement failed: %s", e)
            return _failure(DriverError(str(e), sql), e)
        return Result(True, narrow(rows, index, column))

    async def run_transaction(
        self, sql: str, params: Sequence[Any] | None = None, commit: bool = False
    ) -> Result:
        """Run one statement inside a transaction.

        Args:
            sql: Statement with ``?`` placeholders.
            params: Values bound to the placeholders, in order.
            commit: Commit after the statement. If False the transaction stays
                open for further statements.

        Returns:
            Result(True, ResultSet) on success. Result(False, TransactionAbort)
            when the statement failed and the transaction was rolled back.
            Result(False, DriverError) when BEGIN or COMMIT failed.
            Result(False, TransactionAbort) without running sql when the
            connection was lost while a transaction was open.
        """
        status = await self.ensure_connected()
        if not status.success:
            return status

        if self._transaction_lost:
            return self._report_lost_transaction(sql)

        if not self._in_transaction:
            try:
                await self.adapter.begin(self._conn)
            except Exception as e:
                logger.warning("BEGIN failed: %s", e)
                return _failure(DriverError(f"Could not begin transaction: {e}", sql), e)
            self._in_transaction = True

        logger.debug("SQL (transaction): %s %r", sql, params)
        try:
            result: ResultSet = await self.adapter.query(self._conn, sql, params or [])
        except Exception as e:
            logger.warning("Statement failed, rolling back: %s", e)
            await self._rollback()
            return _failure(TransactionAbort(str(e), sql), e)

        if commit:
            outcome = await self.commit()
            if not outcome.success:
                return outcome
        return Result(True, result)

    async def commit(self) -> Result:
        """Commit the open transaction. No-op when none is open.

        Fails with TransactionAbort if the connection, and with it the
        transaction, was lost since the last statement.
        """
        if self._transaction_lost:
            return self._report_lost_transaction()
        if not self._in_transaction or self._conn is None:
            return Result(True)
        self._in_transaction = False
        try:
            await self.adapter.commit(self._conn)
        except Exception as e:
            logger.warning("COMMIT failed: %s", e)
            return _failure(DriverError(f"Commit failed: {e}"), e)
        return Result(True)

    async def rollback(self) -> Result:
        """Roll back the open transaction. No-op when none is open."""
        self._transaction_lost = False
        if not self._in_transaction or self._conn is None:
            return Result(True)
        self._in_transaction = False
        try:
            await self.adapter.rollback(self._conn)
        except Exception as e:
            logger.warning("ROLLBACK failed: %s", e)
            return _failure(DriverError(f"Rollback failed: {e}"), e)
        return Result(True)

    # -------------------------------------------------------------------------
    # Private helpers
    # -------------------------------------------------------------------------

    async def _rollback(self) -> None:
        """Roll back after a failed statement; a rollback error is only logged."""
        outcome = await self.rollback()
        if not outcome.success:
            # The statement error is what the caller needs; drop the broken connection
            await self._discard()

    def _report_lost_transaction(self, sql: str | None = None) -> Result:
        self._transaction_lost = False
        return _failure(
            TransactionAbort("Connection lost with an open transaction; it was rolled back", sql)
        )

    async def _discard(self) -> None:
        conn, self._conn = self._conn, None
        self._in_transaction = False
        if conn is not None:
            await self._destroy(conn)

    async def _destroy(self, conn: Any) -> None:
        try:
            await self.adapter.destroy(conn)
        except Exception as e:
            logger.debug("Error while destroying connection: %s", e)


__all__ = ["Session"]
