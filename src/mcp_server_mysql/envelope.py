"""Uniform tool result: ordered text items plus an error flag."""

from __future__ import annotations

import json
from dataclasses import dataclass, field


@dataclass(frozen=True)
class TextContent:
    text: str
    type: str = "text"


@dataclass(frozen=True)
class ResultEnvelope:
    content: tuple[TextContent, ...] = field(default_factory=tuple)
    is_error: bool = False

    @classmethod
    def success(cls, payload: str, *, duration_ms: float | None = None) -> ResultEnvelope:
        items = [TextContent(payload)]
        if duration_ms is not None:
            items.append(TextContent(f"Query execution time: {duration_ms:.2f} ms"))
        return cls(content=tuple(items), is_error=False)

    @classmethod
    def error(cls, message: str) -> ResultEnvelope:
        return cls(content=(TextContent(message),), is_error=True)

    @property
    def text(self) -> str:
        """The primary payload."""
        return self.content[0].text if self.content else ""

    def to_dict(self) -> dict:
        return {
            "content": [{"type": c.type, "text": c.text} for c in self.content],
            "isError": self.is_error,
        }


def dump_rows(rows: object) -> str:
    """Serialize rows the same way every time, for byte-stable payloads."""
    return json.dumps(rows, indent=2, default=str)
