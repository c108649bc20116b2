"""Root conftest — shared fixtures, fakes and markers."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

import pytest

from mcp_server_mysql.db import ResultSet
from mcp_server_mysql.errors import DatabaseConnectionError


def pytest_configure(config):
    config.addinivalue_line("markers", "mysql: requires a running MySQL server")


def pytest_collection_modifyitems(config, items):
    if os.environ.get("MCP_MYSQL_TEST"):
        return

    skip_mysql = pytest.mark.skip(reason="MySQL not available (set MCP_MYSQL_TEST=1)")
    for item in items:
        if "mysql" in item.keywords:
            item.add_marker(skip_mysql)


class FakeSession:
    """Records every call in order; `execute` returns canned results or raises."""

    def __init__(self, results: list[ResultSet] | None = None, error: Exception | None = None):
        self.results = results if results is not None else [ResultSet()]
        self.error = error
        self.calls: list[str] = []
        self.executed: list[str] = []

    async def set_read_only(self, read_only: bool) -> None:
        self.calls.append("read_only" if read_only else "read_write")

    async def begin(self) -> None:
        self.calls.append("begin")

    async def commit(self) -> None:
        self.calls.append("commit")

    async def rollback(self) -> None:
        self.calls.append("rollback")

    async def execute(self, sql: str) -> list[ResultSet]:
        self.calls.append("execute")
        self.executed.append(sql)
        if self.error is not None:
            raise self.error
        return self.results


class FakePool:
    """Stands in for PoolManager; counts acquisitions and releases."""

    def __init__(self, session: FakeSession | None = None, acquire_error: str | None = None):
        self.fake_session = session or FakeSession()
        self.acquire_error = acquire_error
        self.acquired = 0
        self.released = 0
        self.closed = False

    @asynccontextmanager
    async def session(self):
        if self.acquire_error:
            raise DatabaseConnectionError(self.acquire_error)
        self.acquired += 1
        try:
            yield self.fake_session
        finally:
            self.released += 1

    async def probe(self) -> None:
        async with self.session():
            pass

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def fake_pool(fake_session):
    return FakePool(fake_session)


@pytest.fixture
def make_session():
    return FakeSession


@pytest.fixture
def make_pool():
    return FakePool
