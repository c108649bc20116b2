"""Classify SQL statements by kind and map kinds onto permission categories."""

from __future__ import annotations

from collections.abc import Iterable

import sqlglot
from sqlglot import exp

from mcp_server_mysql.errors import SqlParseError
from mcp_server_mysql.policy._types import OperationCategory, StatementKind

DIALECT = "mysql"

_READ_TYPES = (exp.Select, exp.Union, exp.Intersect, exp.Except, exp.Subquery)

# Checked in order; first isinstance match wins.
_KIND_TYPES: tuple[tuple[type[exp.Expression], StatementKind], ...] = (
    (exp.Insert, StatementKind.INSERT),
    (exp.Update, StatementKind.UPDATE),
    (exp.Delete, StatementKind.DELETE),
    (exp.Create, StatementKind.CREATE),
    (exp.Alter, StatementKind.ALTER),
    (exp.Drop, StatementKind.DROP),
    (exp.TruncateTable, StatementKind.TRUNCATE),
)

# sqlglot falls back to exp.Command for statements it cannot model; classify
# those by their leading keyword.
_COMMAND_KINDS = {
    "INSERT": StatementKind.INSERT,
    "REPLACE": StatementKind.INSERT,
    "UPDATE": StatementKind.UPDATE,
    "DELETE": StatementKind.DELETE,
    "CREATE": StatementKind.CREATE,
    "ALTER": StatementKind.ALTER,
    "RENAME": StatementKind.ALTER,
    "DROP": StatementKind.DROP,
    "TRUNCATE": StatementKind.TRUNCATE,
}

_CATEGORY_BY_KIND = {
    StatementKind.INSERT: OperationCategory.WRITE_INSERT,
    StatementKind.UPDATE: OperationCategory.WRITE_UPDATE,
    StatementKind.DELETE: OperationCategory.WRITE_DELETE,
    StatementKind.CREATE: OperationCategory.DDL,
    StatementKind.ALTER: OperationCategory.DDL,
    StatementKind.DROP: OperationCategory.DDL,
    StatementKind.TRUNCATE: OperationCategory.DDL,
}


def parse_statements(sql: str) -> list[exp.Expression]:
    """Parse SQL text (MySQL dialect) into a list of statements.

    Raises SqlParseError if sqlglot rejects the text or it holds no statement.
    """
    try:
        parsed = sqlglot.parse(sql, read=DIALECT)
    except sqlglot.errors.SqlglotError as e:
        raise SqlParseError(f"Parsing failed: {e}") from e

    # Trailing semicolons produce empty entries.
    statements = [s for s in parsed if s is not None]
    if not statements:
        raise SqlParseError("Parsing failed: no SQL statement found")
    return statements


def _is_user_variable(into: exp.Into) -> bool:
    if into.find(exp.Parameter, exp.SessionParameter) is not None:
        return True
    # OUTFILE and DUMPFILE targets are string literals.
    return into.find(exp.Literal) is None and "@" in into.sql(dialect=DIALECT)


def _has_into(statement: exp.Expression) -> bool:
    """SELECT ... INTO a table or file writes outside the result set.

    `INTO @var` only assigns user variables and stays a read.
    """
    if not isinstance(statement, exp.Select):
        return False
    into = statement.find(exp.Into)
    return into is not None and not _is_user_variable(into)


def classify_statement(statement: exp.Expression) -> StatementKind:
    if isinstance(statement, _READ_TYPES):
        if _has_into(statement):
            return StatementKind.CREATE
        return StatementKind.SELECT
    for node_type, kind in _KIND_TYPES:
        if isinstance(statement, node_type):
            return kind
    if isinstance(statement, exp.Command):
        keyword = str(statement.this or "").split(maxsplit=1)
        if keyword:
            return _COMMAND_KINDS.get(keyword[0].upper(), StatementKind.OTHER)
    return StatementKind.OTHER


def classify(sql: str) -> list[StatementKind]:
    """Return the kind of every statement in `sql`, in source order."""
    return [classify_statement(s) for s in parse_statements(sql)]


def category_of(kind: StatementKind) -> OperationCategory:
    return _CATEGORY_BY_KIND.get(kind, OperationCategory.READ)


def categories(kinds: Iterable[StatementKind]) -> set[OperationCategory]:
    """Union of the operation categories of a statement batch."""
    return {category_of(k) for k in kinds}
