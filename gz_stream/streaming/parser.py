"""
SSE stream parser with fenced JSON extraction.

Text deltas from the chat endpoint are accumulated, and after every delta the
most recent ```json fenced block is decoded with a partial-JSON parser so the
UI can render structured module data while it is still arriving.
"""

from __future__ import annotations

import json
import re
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

import partial_json_parser
import structlog

from .models import (
    WIRE_EVENT_TYPES,
    FrameResult,
    JSONBlock,
    StreamEvent,
    StreamEventType,
)

logger = structlog.get_logger(__name__)

# Constants
EVENT_SEPARATOR = "\n\n"
DATA_PREFIX = "data: "
OPEN_FENCE = "```json"
JSON_BLOCK_PATTERN = re.compile(r"```json\s*(.*?)(?:```|\Z)", re.DOTALL)

# Returned by _parse_partial when a block cannot be decoded at all.
_UNPARSED = object()


def _parse_partial(raw: str) -> Any:
    """Best-effort decode of possibly truncated JSON; _UNPARSED if hopeless."""
    try:
        return partial_json_parser.loads(raw)
    except Exception as e:
        logger.warning(
            "Failed to parse JSON block",
            error_type=type(e).__name__,
            error=str(e),
            raw_length=len(raw),
        )
        return _UNPARSED


def _block_from_match(
    match: re.Match[str], previous: JSONBlock | None = None
) -> JSONBlock | None:
    raw = match.group(1).strip()
    if not raw:
        return None

    # The closing fence was consumed only if the match runs past the capture.
    is_complete = match.end() > match.end(1)

    if previous is not None and previous.raw == raw and previous.is_complete == is_complete:
        return previous

    parsed = _parse_partial(raw)
    if parsed is _UNPARSED:
        return JSONBlock(raw=raw, parsed=None, is_complete=is_complete, decoded=False)
    return JSONBlock(raw=raw, parsed=parsed, is_complete=is_complete)


def extract_json_blocks(text: str) -> list[JSONBlock]:
    """
    Extract every fenced JSON block from text.

    A block starts at a ```json fence and runs to the next ``` fence, or to the
    end of the text while the response is still streaming. Blocks with an
    empty body are not reported.
    """
    blocks = []
    for match in JSON_BLOCK_PATTERN.finditer(text):
        block = _block_from_match(match)
        if block is not None:
            blocks.append(block)
    return blocks


def extract_latest_json(text: str) -> JSONBlock | None:
    """Extract the last (most recent) JSON block from text."""
    blocks = extract_json_blocks(text)
    return blocks[-1] if blocks else None


class StreamParser:
    """
    Incremental parser for the chat endpoint's SSE stream.

    Chunks may be split at arbitrary points; the unterminated tail is kept in a
    line buffer until its event separator arrives. Malformed frames are logged
    and skipped so one bad frame never aborts the stream.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._full_text = ""
        # Start offset of the last fenced block seen; earlier blocks are closed.
        self._scan_from = 0
        self._latest: JSONBlock | None = None
        # Latest non-empty block among the closed ones before _scan_from.
        self._closed: JSONBlock | None = None
        self.stats = {
            'total_frames': 0,
            'skipped_frames': 0,
            'json_events': 0,
        }

    @property
    def full_text(self) -> str:
        """All text deltas accumulated so far."""
        return self._full_text

    def parse_chunk(self, chunk: str) -> list[StreamEvent]:
        """
        Parse a chunk of SSE data into zero or more events.

        Args:
            chunk: Raw text as received from the network

        Returns:
            Events for every frame completed by this chunk, in order
        """
        self._buffer += chunk
        messages = self._buffer.split(EVENT_SEPARATOR)

        # Keep the last incomplete message in the buffer
        self._buffer = messages.pop()

        events: list[StreamEvent] = []
        for message in messages:
            if not message.strip():
                continue

            for line in message.split("\n"):
                if not line.startswith(DATA_PREFIX):
                    continue

                self.stats['total_frames'] += 1
                result = self._decode_payload(line[len(DATA_PREFIX):])

                if result.ok and result.event is not None:
                    events.append(result.event)
                else:
                    self.stats['skipped_frames'] += 1
                    logger.warning(
                        "Skipping malformed SSE frame",
                        reason=result.reason,
                        raw_data=result.raw_data[:200],
                    )

        return events

    async def parse_stream(
        self, chunks: AsyncIterable[str]
    ) -> AsyncIterator[StreamEvent]:
        """Drive parse_chunk over an async chunk source in arrival order."""
        async for chunk in chunks:
            for event in self.parse_chunk(chunk):
                yield event

    def _decode_payload(self, raw_data: str) -> FrameResult:
        """Decode one `data:` payload into an event or a skip reason."""
        try:
            data = json.loads(raw_data)
        except (json.JSONDecodeError, RecursionError) as e:
            reason = f"JSON decode error: {type(e).__name__}: {e}"
            return FrameResult.skip(reason, raw_data)

        if not isinstance(data, dict):
            return FrameResult.skip("Payload is not a JSON object", raw_data)

        event_type = data.get("type")
        if not isinstance(event_type, str) or event_type not in WIRE_EVENT_TYPES:
            return FrameResult.skip(f"Unknown event type: {event_type!r}", raw_data)

        text = data.get("text")
        if event_type != "text" or not text:
            return FrameResult.accept(
                StreamEvent(type=StreamEventType(event_type), data=data)
            )

        if not isinstance(text, str):
            return FrameResult.skip("Text payload is not a string", raw_data)

        self._full_text += text
        latest = self._latest_json()
        if latest is None:
            return FrameResult.accept(StreamEvent(type=StreamEventType.TEXT, data=data))

        self.stats['json_events'] += 1
        return FrameResult.accept(
            StreamEvent(
                type=StreamEventType.JSON,
                data={
                    **data,
                    "json": latest.parsed,
                    "jsonComplete": latest.is_complete,
                },
            )
        )

    def _latest_json(self) -> JSONBlock | None:
        """
        Find the latest fenced block, rescanning only from the last block start.

        Blocks before the last one are closed and cannot change as text is
        appended, so the result matches extract_latest_json(full_text). The
        last block can still grow, or shrink to an empty body once its fence
        closes, so it is re-evaluated on every call.
        """
        matches = list(JSON_BLOCK_PATTERN.finditer(self._full_text, self._scan_from))

        if not matches:
            # An opening fence may be split across deltas.
            self._scan_from = max(
                self._scan_from, len(self._full_text) - len(OPEN_FENCE) + 1
            )
            return self._latest

        for match in matches[:-1]:
            block = _block_from_match(match, self._latest)
            if block is not None:
                self._closed = block

        last = matches[-1]
        self._scan_from = last.start()
        self._latest = _block_from_match(last, self._latest) or self._closed

        return self._latest

    def all_json(self) -> list[JSONBlock]:
        """Get all JSON blocks from the full text."""
        return extract_json_blocks(self._full_text)

    def get_stats(self) -> dict[str, int]:
        """Get parsing statistics for monitoring."""
        return self.stats.copy()

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self.stats = {
            'total_frames': 0,
            'skipped_frames': 0,
            'json_events': 0,
        }

    def reset(self) -> None:
        """Reset parser state for a new stream."""
        self._buffer = ""
        self._full_text = ""
        self._scan_from = 0
        self._latest = None
        self._closed = None
        self.reset_stats()
