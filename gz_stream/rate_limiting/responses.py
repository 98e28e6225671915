"""
HTTP surface of the rate limiter: response headers and the 429 body.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from ..models import RateLimitInfo
from .limiter import epoch_ms
from .models import RateLimitResult

RATE_LIMIT_STATUS = 429

LIMIT_HEADER = "X-RateLimit-Limit"
REMAINING_HEADER = "X-RateLimit-Remaining"
RESET_HEADER = "X-RateLimit-Reset"


def create_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Headers attached to every rate limited response."""
    return {
        LIMIT_HEADER: str(result.limit),
        REMAINING_HEADER: str(result.remaining),
        RESET_HEADER: str(result.reset),
    }


def create_rate_limit_error(
    result: RateLimitResult, now: int | None = None
) -> dict[str, Any]:
    """
    Body of a 429 Too Many Requests response.

    Args:
        result: The failed check result
        now: Current epoch milliseconds (defaults to the wall clock)

    Returns:
        JSON-serialisable error body; retryAfter is in seconds
    """
    now = epoch_ms() if now is None else now
    retry_after = math.ceil((result.reset - now) / 1000)

    return {
        "error": "Rate limit exceeded",
        "message": f"Too many requests. Please try again in {retry_after} seconds.",
        "retryAfter": retry_after,
        "limit": result.limit,
        "reset": result.reset,
    }


def parse_rate_limit_headers(headers: Mapping[str, str]) -> RateLimitInfo | None:
    """Parse rate limit info from response headers, None if incomplete."""
    limit = headers.get(LIMIT_HEADER)
    remaining = headers.get(REMAINING_HEADER)
    reset = headers.get(RESET_HEADER)

    if not limit or not remaining or not reset:
        return None

    try:
        return RateLimitInfo(
            limit=int(limit),
            remaining=int(remaining),
            reset=int(reset),
        )
    except ValueError:
        return None
