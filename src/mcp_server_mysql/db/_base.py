"""Result types shared by the session layer and the executor."""

from __future__ import annotations

from dataclasses import dataclass, field

from mcp_server_mysql.policy._types import OperationCategory


@dataclass
class ResultSet:
    """One result of one executed statement."""

    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, object]] = field(default_factory=list)
    affected_rows: int = 0
    insert_id: int = 0
    changed_rows: int = 0

    @property
    def has_rows(self) -> bool:
        return bool(self.columns)

    def header(self) -> dict[str, int]:
        """Summary for statements that return no rows (USE, SET, ...)."""
        return {
            "affectedRows": self.affected_rows,
            "insertId": self.insert_id,
            "changedRows": self.changed_rows,
        }

    def payload(self) -> object:
        return self.rows if self.has_rows else self.header()


def rows_payload(results: list[ResultSet]) -> object:
    """Single statement → its rows; a batch → one entry per statement."""
    if len(results) == 1:
        return results[0].payload()
    return [r.payload() for r in results]


@dataclass(frozen=True)
class InsertSummary:
    affected_rows: int
    insert_id: int

    def render(self, schema: str) -> str:
        return (
            f"Insert successful on schema '{schema}'. "
            f"Affected rows: {self.affected_rows}, Last insert ID: {self.insert_id}"
        )


@dataclass(frozen=True)
class UpdateSummary:
    affected_rows: int
    changed_rows: int

    def render(self, schema: str) -> str:
        return (
            f"Update successful on schema '{schema}'. "
            f"Affected rows: {self.affected_rows}, Changed rows: {self.changed_rows}"
        )


@dataclass(frozen=True)
class DeleteSummary:
    affected_rows: int

    def render(self, schema: str) -> str:
        return f"Delete successful on schema '{schema}'. Affected rows: {self.affected_rows}"


@dataclass(frozen=True)
class DdlSummary:
    def render(self, schema: str) -> str:
        return f"DDL operation successful on schema '{schema}'."


WriteSummary = InsertSummary | UpdateSummary | DeleteSummary | DdlSummary


def summarize_write(category: OperationCategory, results: list[ResultSet]) -> WriteSummary:
    """Build the summary for a committed write batch.

    Counts are summed over every statement in the batch; the insert id is
    the last non-zero one.
    """
    affected = sum(r.affected_rows for r in results)
    if category is OperationCategory.WRITE_INSERT:
        insert_id = next((r.insert_id for r in reversed(results) if r.insert_id), 0)
        return InsertSummary(affected_rows=affected, insert_id=insert_id)
    if category is OperationCategory.WRITE_UPDATE:
        changed = sum(r.changed_rows for r in results)
        return UpdateSummary(affected_rows=affected, changed_rows=changed)
    if category is OperationCategory.WRITE_DELETE:
        return DeleteSummary(affected_rows=affected)
    return DdlSummary()
