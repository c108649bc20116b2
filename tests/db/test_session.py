"""Session tests against a fake aiomysql connection."""

from __future__ import annotations

import asyncio

import pytest

from mcp_server_mysql.db import Session, parse_changed_rows


class _Raw:
    def __init__(self, message):
        self.message = message


class FakeCursor:
    """Walks a list of canned result sets, the way aiomysql's cursor does."""

    def __init__(self, results: list[dict], log: list):
        self._results = results
        self._index = 0
        self._log = log
        self._load()

    def _load(self) -> None:
        current = self._results[self._index] if self._results else {}
        self.description = current.get("description")
        self.rowcount = current.get("rowcount", -1)
        self.lastrowid = current.get("lastrowid")
        self._rows = current.get("rows", [])
        self._result = _Raw(current.get("message"))

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def execute(self, sql):
        self._log.append(sql)
        error = self._results[0].get("error") if self._results else None
        if error is not None:
            raise error

    async def fetchall(self):
        return self._rows

    async def nextset(self):
        if self._index + 1 >= len(self._results):
            return None
        self._index += 1
        self._load()
        return True


class FakeConnection:
    def __init__(self, results: list[dict] | None = None):
        self.results = results or []
        self.log: list = []

    def cursor(self, *args):
        return FakeCursor(self.results, self.log)

    async def begin(self):
        self.log.append("BEGIN")

    async def commit(self):
        self.log.append("COMMIT")

    async def rollback(self):
        self.log.append("ROLLBACK")


def test_execute_rows() -> None:
    conn = FakeConnection([
        {"description": [("id",), ("name",)], "rows": [{"id": 1, "name": "a"}], "rowcount": 1},
    ])
    results = asyncio.run(Session(conn).execute("SELECT id, name FROM users"))
    assert len(results) == 1
    assert results[0].columns == ["id", "name"]
    assert results[0].rows == [{"id": 1, "name": "a"}]
    assert results[0].has_rows


def test_execute_write_header() -> None:
    conn = FakeConnection([
        {"rowcount": 3, "lastrowid": 0, "message": b"(Rows matched: 3  Changed: 2  Warnings: 0"},
    ])
    (result,) = asyncio.run(Session(conn).execute("UPDATE t SET a = 1"))
    assert not result.has_rows
    assert result.affected_rows == 3
    assert result.changed_rows == 2
    assert result.header() == {"affectedRows": 3, "insertId": 0, "changedRows": 2}


def test_execute_multiple_result_sets() -> None:
    conn = FakeConnection([
        {"rowcount": 0},
        {"rowcount": 1, "lastrowid": 42},
        {"description": [("n",)], "rows": [{"n": 1}], "rowcount": 1},
    ])
    results = asyncio.run(Session(conn).execute("USE dev; INSERT ...; SELECT 1 AS n"))
    assert [r.has_rows for r in results] == [False, False, True]
    assert results[1].insert_id == 42


def test_execute_error_propagates() -> None:
    conn = FakeConnection([{"error": RuntimeError("Table 'x' doesn't exist")}])
    with pytest.raises(RuntimeError, match="doesn't exist"):
        asyncio.run(Session(conn).execute("SELECT * FROM x"))


@pytest.mark.parametrize("read_only,statement", [
    (True, "SET SESSION TRANSACTION READ ONLY"),
    (False, "SET SESSION TRANSACTION READ WRITE"),
])
def test_set_read_only(read_only: bool, statement: str) -> None:
    conn = FakeConnection([{"rowcount": 0}])
    asyncio.run(Session(conn).set_read_only(read_only))
    assert conn.log == [statement]


def test_transaction_calls_reach_connection() -> None:
    conn = FakeConnection()
    session = Session(conn)

    async def run():
        await session.begin()
        await session.commit()
        await session.rollback()

    asyncio.run(run())
    assert conn.log == ["BEGIN", "COMMIT", "ROLLBACK"]


@pytest.mark.parametrize("message,expected", [
    (b"(Rows matched: 5  Changed: 4  Warnings: 0", 4),
    ("Rows matched: 1  Changed: 0  Warnings: 0", 0),
    (b"", 0),
    (None, 0),
    ("Records: 2  Duplicates: 0  Warnings: 0", 0),
])
def test_parse_changed_rows(message, expected: int) -> None:
    assert parse_changed_rows(message) == expected
