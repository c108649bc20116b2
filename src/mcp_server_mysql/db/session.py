"""One pooled connection, wrapped with the operations the executor needs."""

from __future__ import annotations

import re

import aiomysql

from mcp_server_mysql.db._base import ResultSet

_CHANGED_RE = re.compile(r"Changed:\s*(\d+)")


def parse_changed_rows(message: bytes | str | None) -> int:
    """Extract N from MySQL's `Rows matched: M  Changed: N  Warnings: W` info."""
    if not message:
        return 0
    if isinstance(message, bytes):
        message = message.decode("utf-8", errors="replace")
    match = _CHANGED_RE.search(message)
    return int(match.group(1)) if match else 0


class Session:
    """Thin async wrapper over an aiomysql connection."""

    def __init__(self, conn: aiomysql.Connection) -> None:
        self._conn = conn

    @property
    def connection(self) -> aiomysql.Connection:
        return self._conn

    async def set_read_only(self, read_only: bool) -> None:
        mode = "READ ONLY" if read_only else "READ WRITE"
        async with self._conn.cursor() as cur:
            await cur.execute(f"SET SESSION TRANSACTION {mode}")

    async def begin(self) -> None:
        await self._conn.begin()

    async def commit(self) -> None:
        await self._conn.commit()

    async def rollback(self) -> None:
        await self._conn.rollback()

    async def execute(self, sql: str) -> list[ResultSet]:
        """Run a (possibly multi-statement) batch; one ResultSet per statement."""
        async with self._conn.cursor(aiomysql.DictCursor) as cur:
            await cur.execute(sql)
            results = [await _read_result(cur)]
            while await cur.nextset():
                results.append(await _read_result(cur))
        return results


async def _read_result(cur: aiomysql.Cursor) -> ResultSet:
    if cur.description:
        columns = [desc[0] for desc in cur.description]
        rows = [dict(row) for row in await cur.fetchall()]
        return ResultSet(columns=columns, rows=rows)

    # The driver keeps the OK packet's info string on the raw result.
    raw = getattr(cur, "_result", None)
    return ResultSet(
        affected_rows=max(cur.rowcount, 0),
        insert_id=cur.lastrowid or 0,
        changed_rows=parse_changed_rows(getattr(raw, "message", None)),
    )
