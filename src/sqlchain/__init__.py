# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""sqlchain: chainable SQL builders over an async, self-healing session."""

from .config import SessionConfig
from .errors import (
    ConnectionError,
    DriverError,
    SqlChainError,
    TransactionAbort,
    ValidationError,
)
from .result import Result, ResultSet
from .sql import ColumnRef, JoinKind, Query, Session, Transaction

__version__ = "0.1.0"

__all__ = [
    "Session",
    "SessionConfig",
    "Query",
    "Transaction",
    "ColumnRef",
    "JoinKind",
    "Result",
    "ResultSet",
    "SqlChainError",
    "ConnectionError",
    "DriverError",
    "TransactionAbort",
    "ValidationError",
]
