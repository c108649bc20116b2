"""Policy engine: classify, resolve schema, check write permissions."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from mcp_server_mysql.policy._types import (
    WRITE_CATEGORIES,
    OperationCategory,
    StatementKind,
)
from mcp_server_mysql.policy.classify import categories, classify
from mcp_server_mysql.policy.permissions import (
    FLAG_SETTINGS,
    OVERRIDE_SETTINGS,
    PermissionPolicy,
    parse_schema_permissions,
)
from mcp_server_mysql.policy.schema import extract_schema

__all__ = [
    "Admission",
    "OperationCategory",
    "PermissionPolicy",
    "StatementKind",
    "admit",
    "category_label",
    "classify",
    "extract_schema",
    "parse_schema_permissions",
]

_LABELS = {
    OperationCategory.WRITE_INSERT: "INSERT",
    OperationCategory.WRITE_UPDATE: "UPDATE",
    OperationCategory.WRITE_DELETE: "DELETE",
    OperationCategory.DDL: "DDL",
}


def category_label(category: OperationCategory) -> str:
    return _LABELS.get(category, "READ")


@dataclass(frozen=True)
class Admission:
    """Outcome of running a SQL batch through the policy engine."""

    sql: str
    kinds: tuple[StatementKind, ...]
    categories: frozenset[OperationCategory]
    schema: str | None
    denied: OperationCategory | None = None

    @property
    def allowed(self) -> bool:
        return self.denied is None

    @property
    def is_write(self) -> bool:
        return any(c.is_write for c in self.categories)

    @property
    def write_category(self) -> OperationCategory | None:
        """Category that decides the write summary (insert > update > delete > ddl)."""
        for category in WRITE_CATEGORIES:
            if category in self.categories:
                return category
        return None

    @property
    def schema_label(self) -> str:
        return self.schema or "default"

    def denial_message(self) -> str | None:
        if self.denied is None:
            return None
        return (
            f"Error: {category_label(self.denied)} operations are not allowed for "
            f"schema '{self.schema_label}'. Ask the administrator to update "
            f"{OVERRIDE_SETTINGS[self.denied]} (or {FLAG_SETTINGS[self.denied]})."
        )


def admit(
    sql: str,
    *,
    policy: PermissionPolicy,
    default_schema: str | None = None,
    multi_db: bool = False,
) -> Admission:
    """Run a SQL batch through the policy engine.

    Steps:
        1. Classify every statement (raises SqlParseError)
        2. Resolve the target schema
        3. Check each write category; the first denial denies the batch

    No database access happens here.
    """
    logger.debug("Admitting SQL: {}", sql)
    kinds = classify(sql)
    batch_categories = categories(kinds)
    schema = extract_schema(sql, default_schema, multi_db)

    denied = None
    for category in WRITE_CATEGORIES:
        if category in batch_categories and not policy.is_allowed(category, schema):
            denied = category
            logger.error(
                "{} operations are not allowed for schema '{}'. Configure {}.",
                category_label(category),
                schema or "default",
                OVERRIDE_SETTINGS[category],
            )
            break

    return Admission(
        sql=sql,
        kinds=tuple(kinds),
        categories=frozenset(batch_categories),
        schema=schema,
        denied=denied,
    )
