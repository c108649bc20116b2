"""Internal types for the policy engine."""

from __future__ import annotations

import enum


class StatementKind(enum.Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    CREATE = "create"
    ALTER = "alter"
    DROP = "drop"
    TRUNCATE = "truncate"
    OTHER = "other"  # USE, SHOW, SET, EXPLAIN, unrecognised commands


class OperationCategory(enum.Enum):
    READ = "read"
    WRITE_INSERT = "write_insert"
    WRITE_UPDATE = "write_update"
    WRITE_DELETE = "write_delete"
    DDL = "ddl"

    @property
    def is_write(self) -> bool:
        return self is not OperationCategory.READ


# Order matters: denial checks and write summaries follow it.
WRITE_CATEGORIES = (
    OperationCategory.WRITE_INSERT,
    OperationCategory.WRITE_UPDATE,
    OperationCategory.WRITE_DELETE,
    OperationCategory.DDL,
)
