# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception taxonomy for the query and transaction layer.

These exceptions are never raised out of the execution methods
(``Query.execute``, ``Transaction.insert``, ``Session.run_transaction``...).
They travel back to the caller as the second half of a
``Result(success=False, value=error)`` pair.

Hierarchy:
    SqlChainError
        ├── ConnectionError   cannot establish or verify connectivity
        ├── DriverError       the driver reported a fault during a statement
        │     └── TransactionAbort   statement failed, rollback issued
        └── ValidationError   builder precondition failure
"""

from __future__ import annotations


class SqlChainError(Exception):
    """Base class for all sqlchain errors."""


class ConnectionError(SqlChainError):  # noqa: A001
    """The session could not connect, select the schema or verify liveness."""


class DriverError(SqlChainError):
    """The database driver failed while running a statement.

    The original driver exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, sql: str | None = None):
        super().__init__(message)
        self.sql = sql


class TransactionAbort(DriverError):
    """A statement failed inside a transaction and the transaction was rolled back."""


class ValidationError(SqlChainError, ValueError):
    """A builder was asked to compile a statement it refuses to produce."""


__all__ = [
    "SqlChainError",
    "ConnectionError",
    "DriverError",
    "TransactionAbort",
    "ValidationError",
]
