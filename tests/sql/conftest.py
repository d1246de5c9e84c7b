# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: SQLite-backed sessions and a scripted fake adapter.

Connection model:
- `sqlite_session` opens a Session on a database file under tmp_path,
  creates the `customers` / `orders` tables and closes the session afterwards
- `fake_adapter` is a DbAdapter whose methods are AsyncMocks, used to drive
  the Session through reconnects, failures and rollbacks without a server
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from sqlchain import ResultSet, Session, SessionConfig
from sqlchain.sql.adapters import DbAdapter
from sqlchain.sql.dialect import SQLITE

SCHEMA = [
    """CREATE TABLE customers (
        ID INTEGER PRIMARY KEY,
        Email TEXT UNIQUE,
        FirstName TEXT,
        LastName TEXT,
        Active INTEGER DEFAULT 1
    )""",
    """CREATE TABLE orders (
        ID INTEGER PRIMARY KEY,
        CustomerID INTEGER,
        Total REAL
    )""",
]


class FakeAdapter(DbAdapter):
    """Adapter whose driver calls are AsyncMocks.

    Every method delegates to a mock attribute so tests can set return
    values and side effects, and assert on the calls the Session made.
    """

    dialect = SQLITE

    def __init__(self) -> None:
        self.connect_mock = AsyncMock(side_effect=lambda config: object())
        self.ping_mock = AsyncMock(return_value=None)
        self.select_schema_mock = AsyncMock(return_value=None)
        self.set_wait_timeout_mock = AsyncMock(return_value=None)
        self.end_mock = AsyncMock(return_value=None)
        self.destroy_mock = AsyncMock(return_value=None)
        self.query_mock = AsyncMock(return_value=ResultSet())
        self.begin_mock = AsyncMock(return_value=None)
        self.commit_mock = AsyncMock(return_value=None)
        self.rollback_mock = AsyncMock(return_value=None)

    async def connect(self, config):
        return await self.connect_mock(config)

    async def ping(self, conn):
        return await self.ping_mock(conn)

    async def select_schema(self, conn, schema):
        return await self.select_schema_mock(conn, schema)

    async def set_wait_timeout(self, conn, seconds):
        return await self.set_wait_timeout_mock(conn, seconds)

    async def end(self, conn):
        return await self.end_mock(conn)

    async def destroy(self, conn):
        return await self.destroy_mock(conn)

    async def query(self, conn, sql, params=None):
        return await self.query_mock(conn, sql, params)

    async def begin(self, conn):
        return await self.begin_mock(conn)

    async def commit(self, conn):
        return await self.commit_mock(conn)

    async def rollback(self, conn):
        return await self.rollback_mock(conn)


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    """Return a fresh scripted adapter."""
    return FakeAdapter()


@pytest.fixture
def fake_session(fake_adapter: FakeAdapter) -> Session:
    """Session driven by the fake adapter, with a schema configured."""
    config = SessionConfig(driver="mysql", user="app", password="secret", schema="shop")
    return Session(config, adapter=fake_adapter)


@pytest_asyncio.fixture
async def sqlite_session(tmp_path) -> AsyncGenerator[Session, None]:
    """Session on a fresh SQLite file with the test tables created."""
    session = Session(SessionConfig(driver="sqlite", database=str(tmp_path / "test.db")))
    for statement in SCHEMA:
        ok, error = await session.execute(statement)
        assert ok, error
    yield session
    await session.close()
