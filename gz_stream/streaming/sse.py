"""
Server side of the chat wire format: one `data: <json>` frame per event.
"""

from __future__ import annotations

import json
from typing import Any

from .parser import DATA_PREFIX, EVENT_SEPARATOR


def format_sse_event(payload: dict[str, Any]) -> str:
    """Encode a payload as a single SSE frame."""
    return f"{DATA_PREFIX}{json.dumps(payload, ensure_ascii=False)}{EVENT_SEPARATOR}"


def start_event(model: str, role: str = "assistant") -> dict[str, Any]:
    return {"type": "start", "model": model, "role": role}


def text_event(text: str, full_text: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": "text", "text": text}
    if full_text is not None:
        payload["fullText"] = full_text
    return payload


def done_event(full_text: str) -> dict[str, Any]:
    return {"type": "done", "fullText": full_text}


def error_event(message: str) -> dict[str, Any]:
    return {"type": "error", "error": message}
