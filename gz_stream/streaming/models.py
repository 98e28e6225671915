"""
Streaming-specific dataclasses for SSE parsing and fenced JSON extraction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class StreamEventType(Enum):
    """Types of events emitted by the stream parser."""
    START = "start"
    TEXT = "text"
    JSON = "json"
    DONE = "done"
    ERROR = "error"


# Event kinds a server may put on the wire; "json" is only produced locally.
WIRE_EVENT_TYPES = frozenset({"start", "text", "done", "error"})


@dataclass(frozen=True)
class JSONBlock:
    """A fenced JSON block found in accumulated text."""
    raw: str
    parsed: Any | None
    is_complete: bool
    # False when even partial decoding failed; parsed is then None.
    decoded: bool = True


@dataclass(frozen=True)
class StreamEvent:
    """Decoded SSE event, optionally carrying the latest fenced JSON value."""
    type: StreamEventType
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str | None:
        return self.data.get("text")

    @property
    def full_text(self) -> str | None:
        """Accumulated text precomputed by the server, if it sent one."""
        return self.data.get("fullText")

    @property
    def json(self) -> Any | None:
        return self.data.get("json")

    @property
    def json_complete(self) -> bool:
        return bool(self.data.get("jsonComplete", False))

    @property
    def error(self) -> str | None:
        return self.data.get("error")


@dataclass(frozen=True)
class FrameResult:
    """Outcome of decoding one `data:` payload: an event, or a skip reason."""
    ok: bool
    event: StreamEvent | None = None
    reason: str | None = None
    raw_data: str = ""

    @classmethod
    def accept(cls, event: StreamEvent) -> FrameResult:
        return cls(ok=True, event=event)

    @classmethod
    def skip(cls, reason: str, raw_data: str = "") -> FrameResult:
        return cls(ok=False, reason=reason, raw_data=raw_data)
