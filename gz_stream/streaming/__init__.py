"""
Streaming functionality for chat responses.

This package contains:
- SSE parsing with chunk-boundary independent buffering
- Fenced JSON extraction with partial-JSON decoding
- SSE frame encoding for the server side
- Helpers for merging progressively parsed data
"""

from __future__ import annotations

from .json_utils import extract_field, merge_partial_json, validate_json_structure
from .models import FrameResult, JSONBlock, StreamEvent, StreamEventType
from .parser import StreamParser, extract_json_blocks, extract_latest_json
from .sse import done_event, error_event, format_sse_event, start_event, text_event

__all__ = [
    "FrameResult",
    "JSONBlock",
    "StreamEvent",
    "StreamEventType",
    "StreamParser",
    "done_event",
    "error_event",
    "extract_field",
    "extract_json_blocks",
    "extract_latest_json",
    "format_sse_event",
    "merge_partial_json",
    "start_event",
    "text_event",
    "validate_json_structure",
]
