"""
Streaming and rate limiting core of the GZ business-plan assistant.

This package provides:
- SSE stream parsing with progressive fenced-JSON extraction
- A chat streaming client with callback dispatch
- Fixed-window in-memory rate limiting with HTTP helpers
- Validated chat request models
"""

from __future__ import annotations

from .client import ChatClient, StreamCallbacks, StreamResult, stream_to_result
from .config import Configuration
from .exceptions import (
    ChatStreamError,
    GZStreamError,
    RateLimitError,
    StreamTransportError,
)
from .models import ChatErrorResponse, ChatMessage, ChatRequest, RateLimitInfo
from .rate_limiting import (
    RateLimitConfig,
    RateLimiter,
    RateLimiterRegistry,
    RateLimitResult,
    create_rate_limit_error,
    create_rate_limit_headers,
    parse_rate_limit_headers,
)
from .streaming import (
    JSONBlock,
    StreamEvent,
    StreamEventType,
    StreamParser,
    extract_json_blocks,
    extract_latest_json,
    format_sse_event,
)

__all__ = [
    # Client
    "ChatClient",
    "ChatErrorResponse",
    "ChatMessage",
    "ChatRequest",
    # Exceptions
    "ChatStreamError",
    "Configuration",
    "GZStreamError",
    "JSONBlock",
    "RateLimitConfig",
    "RateLimitError",
    "RateLimitInfo",
    "RateLimitResult",
    # Rate limiting
    "RateLimiter",
    "RateLimiterRegistry",
    "StreamCallbacks",
    "StreamEvent",
    "StreamEventType",
    # Streaming
    "StreamParser",
    "StreamResult",
    "StreamTransportError",
    "create_rate_limit_error",
    "create_rate_limit_headers",
    "extract_json_blocks",
    "extract_latest_json",
    "format_sse_event",
    "parse_rate_limit_headers",
    "stream_to_result",
]
