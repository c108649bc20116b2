"""Lazily created, bounded aiomysql pool."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

import aiomysql
from loguru import logger

from mcp_server_mysql.config import DEFAULT_POOL_SIZE, MysqlSettings
from mcp_server_mysql.db.session import Session
from mcp_server_mysql.errors import DatabaseConnectionError


class PoolManager:
    """Owns the process-wide connection pool.

    The pool is created on first use. Concurrent first callers await the same
    creation task, so at most one pool ever exists. `minsize=0` means creating
    the pool opens no connections; `probe()` is the startup connectivity check.
    """

    def __init__(
        self,
        settings: MysqlSettings,
        *,
        pool_size: int = DEFAULT_POOL_SIZE,
        pool_factory: Callable[..., object] = aiomysql.create_pool,
    ) -> None:
        self._settings = settings
        self._pool_size = pool_size
        self._pool_factory = pool_factory
        self._creating: asyncio.Task | None = None
        self._pool = None

    @property
    def created(self) -> bool:
        return self._pool is not None

    async def _create(self):
        logger.info("Creating MySQL pool (max {} connections)", self._pool_size)
        try:
            pool = await self._pool_factory(
                minsize=0,
                maxsize=self._pool_size,
                **self._settings.connect_kwargs(),
            )
        except Exception as e:
            raise DatabaseConnectionError(f"Failed to create pool: {e}") from e
        self._pool = pool
        return pool

    async def get_pool(self):
        if self._pool is not None:
            return self._pool
        if self._creating is None:
            self._creating = asyncio.ensure_future(self._create())
        task = self._creating
        try:
            return await asyncio.shield(task)
        except DatabaseConnectionError:
            # Let the next caller try again.
            if self._creating is task:
                self._creating = None
            raise

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Session]:
        """Acquire one connection; it is released on every exit path."""
        pool = await self.get_pool()
        try:
            conn = await pool.acquire()
        except Exception as e:
            raise DatabaseConnectionError(str(e)) from e
        try:
            yield Session(conn)
        finally:
            await self._reset(conn)
            pool.release(conn)

    async def _reset(self, conn) -> None:
        """Point a connection back at the configured database before reuse.

        A batch may have run `USE other`; the next borrower must not inherit it.
        A connection that cannot be reset is closed, and the pool drops it.
        """
        database = self._settings.database
        if not database:
            return
        try:
            await conn.select_db(database)
        except Exception as e:
            logger.warning("Resetting connection to '{}' failed, closing it: {}", database, e)
            conn.close()

    async def probe(self) -> None:
        """Acquire and release one connection, proving the database is reachable."""
        async with self.session():
            pass
        logger.info("Database connection established")

    async def close(self) -> None:
        if self._creating is not None and self._pool is None:
            # A creation still in flight (or failed) leaves nothing to close.
            self._creating.cancel()
            self._creating = None
            return
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        self._creating = None
        pool.close()
        await pool.wait_closed()
        logger.info("MySQL pool closed")
