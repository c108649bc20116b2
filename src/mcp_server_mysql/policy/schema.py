"""Resolve which database (schema) a SQL batch targets."""

from __future__ import annotations

import re

from sqlglot import exp

from mcp_server_mysql.errors import SqlParseError
from mcp_server_mysql.policy.classify import parse_statements

# Text fallbacks for SQL that sqlglot cannot parse. Both can match inside
# string literals; the AST path below does not. Index hints
# (`USE INDEX`, `USE KEY`) are not database switches.
_USE_RE = re.compile(r"\bUSE\s+(?!(?:INDEX|KEY)\b)`?([a-zA-Z0-9_]+)`?", re.IGNORECASE)
_QUALIFIED_RE = re.compile(r"`?([a-zA-Z0-9_]+)`?\.`?[a-zA-Z0-9_]+`?")


def _first_use(statements: list[exp.Expression]) -> str | None:
    """Database named by the first `USE` statement of the batch."""
    for statement in statements:
        if isinstance(statement, exp.Use) and statement.this is not None:
            return statement.this.name or None
    return None


def _first_qualified_table(statements: list[exp.Expression]) -> str | None:
    """Database qualifier of the first `db.table` reference, depth-first."""
    for statement in statements:
        for table in statement.find_all(exp.Table, bfs=False):
            if table.db:
                return table.db
    return None


def _extract_from_text(sql: str) -> str | None:
    use_match = _USE_RE.search(sql)
    if use_match:
        return use_match.group(1)
    qualified = _QUALIFIED_RE.search(sql)
    return qualified.group(1) if qualified else None


def extract_schema(
    sql: str,
    default_schema: str | None,
    multi_db: bool,
) -> str | None:
    """Best-effort schema resolution for permission checks.

    Order:
        1. A configured default database outside multi-DB mode always wins.
        2. A `USE <schema>` statement.
        3. The first `<schema>.<table>` reference.
        4. The configured default (may be None).

    Steps 2 and 3 read the parsed statements; only SQL that sqlglot rejects
    falls back to matching the raw text.
    """
    if default_schema and not multi_db:
        return default_schema

    try:
        statements = parse_statements(sql)
    except SqlParseError:
        return _extract_from_text(sql) or default_schema

    return _first_use(statements) or _first_qualified_table(statements) or default_schema
