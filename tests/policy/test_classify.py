"""Test SQL statement classification."""

import pytest

from mcp_server_mysql.errors import SqlParseError
from mcp_server_mysql.policy._types import OperationCategory, StatementKind
from mcp_server_mysql.policy.classify import categories, category_of, classify


@pytest.mark.parametrize(
    "sql,expected",
    [
        ("SELECT id FROM users", StatementKind.SELECT),
        ("SELECT * FROM orders WHERE status = 'active'", StatementKind.SELECT),
        ("SELECT 1", StatementKind.SELECT),
        ("WITH cte AS (SELECT 1 AS x) SELECT * FROM cte", StatementKind.SELECT),
        ("SELECT a FROM t1 UNION SELECT b FROM t2", StatementKind.SELECT),
        ("INSERT INTO users (name) VALUES ('test')", StatementKind.INSERT),
        ("UPDATE users SET name = 'x' WHERE id = 1", StatementKind.UPDATE),
        ("DELETE FROM orders WHERE id = 1", StatementKind.DELETE),
        ("CREATE TABLE test (id INT)", StatementKind.CREATE),
        ("ALTER TABLE test ADD COLUMN name TEXT", StatementKind.ALTER),
        ("DROP TABLE test", StatementKind.DROP),
        ("TRUNCATE TABLE test", StatementKind.TRUNCATE),
        ("USE shop", StatementKind.OTHER),
        ("SHOW TABLES", StatementKind.OTHER),
    ],
)
def test_classify_single(sql: str, expected: StatementKind) -> None:
    assert classify(sql) == [expected]


def test_select_into_is_create() -> None:
    assert classify("SELECT a INTO new_t FROM t") == [StatementKind.CREATE]


def test_select_into_user_variable_is_select() -> None:
    assert classify("SELECT COUNT(*) INTO @n FROM t") == [StatementKind.SELECT]


def test_multi_statement_in_source_order() -> None:
    kinds = classify("USE dev; INSERT INTO users (name) VALUES ('a'); SELECT * FROM users")
    assert kinds == [StatementKind.OTHER, StatementKind.INSERT, StatementKind.SELECT]


def test_trailing_semicolon_ignored() -> None:
    assert classify("SELECT * FROM dev.users;") == [StatementKind.SELECT]


def test_malformed_sql_raises() -> None:
    with pytest.raises(SqlParseError, match="Parsing failed"):
        classify("SELEC * FROM x")


def test_empty_sql_raises() -> None:
    with pytest.raises(SqlParseError):
        classify("   ")


@pytest.mark.parametrize(
    "kind,category",
    [
        (StatementKind.SELECT, OperationCategory.READ),
        (StatementKind.OTHER, OperationCategory.READ),
        (StatementKind.INSERT, OperationCategory.WRITE_INSERT),
        (StatementKind.UPDATE, OperationCategory.WRITE_UPDATE),
        (StatementKind.DELETE, OperationCategory.WRITE_DELETE),
        (StatementKind.CREATE, OperationCategory.DDL),
        (StatementKind.ALTER, OperationCategory.DDL),
        (StatementKind.DROP, OperationCategory.DDL),
        (StatementKind.TRUNCATE, OperationCategory.DDL),
    ],
)
def test_category_of(kind: StatementKind, category: OperationCategory) -> None:
    assert category_of(kind) is category


def test_categories_union() -> None:
    kinds = [StatementKind.SELECT, StatementKind.INSERT, StatementKind.DROP]
    assert categories(kinds) == {
        OperationCategory.READ,
        OperationCategory.WRITE_INSERT,
        OperationCategory.DDL,
    }
