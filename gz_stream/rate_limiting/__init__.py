"""
Rate limiting functionality for the chat backend.

This package contains:
- Fixed-window request counting per client key
- Explicitly constructed limiter registry with background sweep
- Rate limit headers and 429 response bodies
"""

from __future__ import annotations

from .limiter import (
    DEFAULT_LIMITS,
    RateLimiter,
    RateLimiterRegistry,
    RateLimitStore,
    epoch_ms,
)
from .models import RateLimitConfig, RateLimitEntry, RateLimitResult
from .responses import (
    RATE_LIMIT_STATUS,
    create_rate_limit_error,
    create_rate_limit_headers,
    parse_rate_limit_headers,
)

__all__ = [
    "DEFAULT_LIMITS",
    "RATE_LIMIT_STATUS",
    "RateLimitConfig",
    "RateLimitEntry",
    "RateLimitResult",
    "RateLimitStore",
    "RateLimiter",
    "RateLimiterRegistry",
    "create_rate_limit_error",
    "create_rate_limit_headers",
    "epoch_ms",
    "parse_rate_limit_headers",
]
