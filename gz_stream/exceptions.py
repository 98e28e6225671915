"""
Error types for chat streaming operations.

The parser and the rate limiter never raise on bad data; these exceptions are
for callers that want a single awaitable result instead of callbacks:
- Request failures with HTTP status and response body
- Retry guidance for rate limits
- Transport failures while reading the stream
"""

from __future__ import annotations


class GZStreamError(Exception):
    """Base error with rich context."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}


class ChatStreamError(GZStreamError):
    """The chat endpoint or the stream itself reported an error."""
    pass


class RateLimitError(ChatStreamError):
    """Rate limit error with retry information."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class StreamTransportError(ChatStreamError):
    """Network failure while sending the request or reading the stream."""
    pass
