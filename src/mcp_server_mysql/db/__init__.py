"""Database layer: pooled aiomysql connections and result types."""

from mcp_server_mysql.db._base import (
    DdlSummary,
    DeleteSummary,
    InsertSummary,
    ResultSet,
    UpdateSummary,
    WriteSummary,
    rows_payload,
    summarize_write,
)
from mcp_server_mysql.db.pool import PoolManager
from mcp_server_mysql.db.session import Session, parse_changed_rows

__all__ = [
    "DdlSummary",
    "DeleteSummary",
    "InsertSummary",
    "PoolManager",
    "ResultSet",
    "Session",
    "UpdateSummary",
    "WriteSummary",
    "parse_changed_rows",
    "rows_payload",
    "summarize_write",
]
