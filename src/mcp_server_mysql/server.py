"""FastMCP server: the `mysql_query` tool plus table and column resources."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.server.fastmcp.resources import FunctionResource
from mcp.types import TextContent

from mcp_server_mysql.config import ServerConfig
from mcp_server_mysql.db import PoolManager
from mcp_server_mysql.envelope import dump_rows
from mcp_server_mysql.executor import QueryExecutor
from mcp_server_mysql.policy import PermissionPolicy, category_label

SERVER_NAME = "mcp-server-mysql"


def safe_exit(code: int, *, test_environment: bool) -> None:
    """Exit the process, unless running under tests."""
    if test_environment:
        logger.warning("Exit with code {} suppressed in test environment", code)
        return
    sys.exit(code)


def describe_tool(policy: PermissionPolicy, multi_db: bool) -> str:
    """Tool description advertising what the current policy permits."""
    description = "Run SQL queries against MySQL database"
    if multi_db:
        description += " (Multi-DB mode enabled)"

    allowed = policy.allowed_categories()
    if not allowed:
        return description + " (READ-ONLY)"

    labels = ", ".join(category_label(c) for c in allowed)
    description += f" with support for: {labels} and READ operations"
    if policy.has_schema_overrides:
        description += " (Schema-specific permissions enabled)"
    return description


def _columns_reader(executor: QueryExecutor, table: str, schema: str | None):
    async def read() -> str:
        return dump_rows(await executor.list_columns(table, schema))

    return read


async def register_table_resources(server: FastMCP, executor: QueryExecutor) -> int:
    """Add one concrete columns resource per existing table, so clients can list them.

    Tables created later stay reachable through the resource templates.
    """
    tables = await executor.list_tables()
    for row in tables:
        schema, table = row["table_schema"], row["table_name"]
        if executor.multi_db:
            uri = f"mysql://schemas/{schema}/tables/{table}"
        else:
            uri = f"mysql://tables/{table}"
        server.add_resource(
            FunctionResource(
                uri=uri,
                name=f"{schema}.{table}",
                description=f"Columns of {schema}.{table}",
                mime_type="application/json",
                fn=_columns_reader(executor, table, schema),
            )
        )
    return len(tables)


def _loop_exception_handler(test_environment: bool):
    def handler(loop: asyncio.AbstractEventLoop, context: dict) -> None:
        error = context.get("exception")
        logger.error("Unhandled error in event loop: {}", error or context.get("message"))
        safe_exit(1, test_environment=test_environment)

    return handler


def create_server(
    config: ServerConfig,
    *,
    pool: PoolManager | None = None,
    executor: QueryExecutor | None = None,
) -> FastMCP:
    """Wire configuration, pool and executor into a FastMCP server."""
    if pool is None:
        pool = PoolManager(config.mysql, pool_size=config.pool_size)
    if executor is None:
        executor = QueryExecutor(
            pool,
            PermissionPolicy.from_config(config),
            default_schema=config.default_schema,
            multi_db=config.multi_db,
            read_only_transactions=config.read_only_transactions,
        )

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[None]:
        logger.info("MySQL configuration: {}", config.mysql.describe())
        asyncio.get_running_loop().set_exception_handler(
            _loop_exception_handler(config.test_environment)
        )
        try:
            await pool.probe()
        except Exception as e:
            logger.error("Fatal error during startup: {}", e)
            safe_exit(1, test_environment=config.test_environment)
        else:
            try:
                count = await register_table_resources(server, executor)
                logger.info("Registered {} table resources", count)
            except Exception as e:
                logger.warning("Listing tables for resources failed: {}", e)
        try:
            yield
        finally:
            logger.info("Shutting down")
            await pool.close()

    server = FastMCP(
        SERVER_NAME,
        instructions="Query a MySQL database. Write access depends on server configuration.",
        lifespan=lifespan,
        port=config.http_port,
    )

    @server.tool(name="mysql_query", description=describe_tool(executor.policy, config.multi_db))
    async def mysql_query(sql: str) -> list[TextContent]:
        envelope = await executor.execute_tool(sql)
        if envelope.is_error:
            raise ToolError(envelope.text)
        return [TextContent(type="text", text=item.text) for item in envelope.content]

    @server.resource("mysql://tables", mime_type="application/json")
    async def tables() -> str:
        """Tables outside MySQL's system schemas."""
        return dump_rows(await executor.list_tables())

    @server.resource("mysql://tables/{table}", mime_type="application/json")
    async def table_columns(table: str) -> str:
        """Columns of a table in the default database."""
        return dump_rows(await executor.list_columns(table))

    @server.resource("mysql://schemas/{schema}/tables/{table}", mime_type="application/json")
    async def schema_table_columns(schema: str, table: str) -> str:
        """Columns of a table in a given schema."""
        return dump_rows(await executor.list_columns(table, schema))

    return server
