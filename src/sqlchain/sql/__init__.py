# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQL layer: statement builders, dialects and the session manager.

Components:
    Session: Owns one (re)connectable database connection and runs statements.
    Query: Chainable SELECT builder.
    Transaction: INSERT / UPDATE / DELETE builder run inside transactions.
    Dialect: Identifier quoting, concatenation, paging and upsert rendering.
    ColumnRef: Reference to ``alias.column`` used in joins, conditions and fields.

Example:
    session = Session(SessionConfig.from_url("sqlite:/tmp/shop.db"))
    ok, rows = await (
        session.query()
        .add_table(None, "customers", "c")
        .add_field("c", "Name")
        .add_param("c", "Active", 1)
        .execute()
    )
"""

from .dialect import MYSQL, POSTGRESQL, SQLITE, Dialect, get_dialect
from .query import OrderBy, Query
from .refs import ColumnRef
from .session import Session
from .tables import JoinKind
from .transaction import Transaction

__all__ = [
    "Session",
    "Query",
    "OrderBy",
    "Transaction",
    "ColumnRef",
    "JoinKind",
    "Dialect",
    "get_dialect",
    "MYSQL",
    "SQLITE",
    "POSTGRESQL",
]
