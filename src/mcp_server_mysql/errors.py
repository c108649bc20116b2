"""Exception hierarchy for admission and execution failures."""

from __future__ import annotations


class McpMysqlError(Exception):
    """Base class for errors raised by the query core."""


class SqlParseError(McpMysqlError):
    """SQL text could not be parsed into statements."""


class DatabaseConnectionError(McpMysqlError):
    """Pool creation or connection acquisition failed."""


class QueryExecutionError(McpMysqlError):
    """The database rejected or failed a statement."""
