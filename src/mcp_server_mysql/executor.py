"""Query executor: admission, then a read-only or a write transaction."""

from __future__ import annotations

import json
import time

import sqlglot
from loguru import logger
from sqlglot import exp

from mcp_server_mysql.db import PoolManager, ResultSet, Session, rows_payload, summarize_write
from mcp_server_mysql.envelope import ResultEnvelope, dump_rows
from mcp_server_mysql.errors import (
    DatabaseConnectionError,
    McpMysqlError,
    QueryExecutionError,
    SqlParseError,
)
from mcp_server_mysql.policy import Admission, PermissionPolicy, admit
from mcp_server_mysql.policy.classify import DIALECT

SYSTEM_SCHEMAS = ("information_schema", "mysql", "performance_schema", "sys")


class QueryExecutor:
    """Runs submitted SQL under the permission policy.

    Reads run inside a read-only transaction that is always rolled back.
    Writes run inside a transaction that is committed on success and rolled
    back on failure. A batch is never split between the two modes.
    """

    def __init__(
        self,
        pool: PoolManager,
        policy: PermissionPolicy,
        *,
        default_schema: str | None = None,
        multi_db: bool = False,
        read_only_transactions: bool = True,
    ) -> None:
        self.pool = pool
        self.policy = policy
        self.default_schema = default_schema
        self.multi_db = multi_db
        self.read_only_transactions = read_only_transactions

    def admit(self, sql: str) -> Admission:
        return admit(
            sql,
            policy=self.policy,
            default_schema=self.default_schema,
            multi_db=self.multi_db,
        )

    async def execute(self, sql: str) -> ResultEnvelope:
        """Admit and run one SQL string.

        Raises SqlParseError before any connection is taken. Denials come back
        as error envelopes. Read failures raise QueryExecutionError; write
        failures come back as error envelopes after rollback.
        """
        admission = self.admit(sql)
        if not admission.allowed:
            return ResultEnvelope.error(admission.denial_message())
        if admission.is_write:
            return await self._write(admission)
        return await self._read(admission)

    async def execute_tool(self, sql: str) -> ResultEnvelope:
        """Entry point for the MCP tool: always returns an envelope."""
        try:
            return await self.execute(sql)
        except (SqlParseError, QueryExecutionError, DatabaseConnectionError) as e:
            logger.error("Query failed: {}", e)
            return ResultEnvelope.error(f"Error: {e}")

    # -- read path ---------------------------------------------------------

    async def _read(self, admission: Admission) -> ResultEnvelope:
        async with self.pool.session() as session:
            try:
                if self.read_only_transactions:
                    await session.set_read_only(True)
                await session.begin()
                results, duration_ms = await _timed(session, admission.sql)
            except Exception as e:
                await self._cleanup_read(session)
                raise QueryExecutionError(str(e)) from e

            try:
                await session.rollback()
                if self.read_only_transactions:
                    await session.set_read_only(False)
            except Exception as e:
                raise QueryExecutionError(f"Ending read-only transaction failed: {e}") from e

        return ResultEnvelope.success(dump_rows(rows_payload(results)), duration_ms=duration_ms)

    async def _cleanup_read(self, session: Session) -> None:
        try:
            await session.rollback()
        except Exception as e:
            logger.error("Rollback after failed read failed: {}", e)
        if not self.read_only_transactions:
            return
        try:
            await session.set_read_only(False)
        except Exception as e:
            logger.error("Restoring READ WRITE session failed: {}", e)

    # -- write path --------------------------------------------------------

    async def _write(self, admission: Admission) -> ResultEnvelope:
        try:
            async with self.pool.session() as session:
                return await self._write_in(session, admission)
        except DatabaseConnectionError as e:
            logger.error("Database connection error: {}", e)
            return ResultEnvelope.error(f"Database connection error: {e}")

    async def _write_in(self, session: Session, admission: Admission) -> ResultEnvelope:
        try:
            await session.begin()
            results, duration_ms = await _timed(session, admission.sql)
            await session.commit()
        except Exception as e:
            logger.error("Write failed on schema '{}': {}", admission.schema_label, e)
            try:
                await session.rollback()
            except Exception as rollback_error:
                logger.error("Rollback failed: {}", rollback_error)
            return ResultEnvelope.error(f"Error executing write operation: {e}")

        summary = summarize_write(admission.write_category, results)
        return ResultEnvelope.success(
            summary.render(admission.schema_label), duration_ms=duration_ms
        )

    # -- resource helpers --------------------------------------------------

    async def list_tables(self) -> list[dict]:
        """Tables visible to the server, excluding MySQL's own schemas."""
        query = (
            sqlglot.select("table_schema", "table_name")
            .from_("information_schema.tables")
            .order_by("table_schema", "table_name")
        )
        if self.default_schema and not self.multi_db:
            query = query.where(exp.column("table_schema").eq(self.default_schema))
        else:
            query = query.where(exp.not_(exp.column("table_schema").isin(*SYSTEM_SCHEMAS)))
        return await self._fetch(query)

    async def list_columns(self, table: str, schema: str | None = None) -> list[dict]:
        query = (
            sqlglot.select("table_schema", "column_name", "data_type", "is_nullable")
            .from_("information_schema.columns")
            .where(exp.column("table_name").eq(table))
            .order_by("table_schema", "ordinal_position")
        )
        schema = schema or (None if self.multi_db else self.default_schema)
        if schema:
            query = query.where(exp.column("table_schema").eq(schema))
        return await self._fetch(query)

    async def _fetch(self, query: exp.Expression) -> list[dict]:
        envelope = await self.execute(query.sql(dialect=DIALECT))
        if envelope.is_error:
            raise McpMysqlError(envelope.text)
        return json.loads(envelope.text)


async def _timed(session: Session, sql: str) -> tuple[list[ResultSet], float]:
    t0 = time.monotonic()
    results = await session.execute(sql)
    return results, (time.monotonic() - t0) * 1000
