"""
Rate limiting models and dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Fixed-window quota: max_requests per window_ms."""
    max_requests: int
    window_ms: int

    def __post_init__(self) -> None:
        if type(self.max_requests) is not int or self.max_requests < 1:
            raise ValueError("max_requests must be a positive integer")
        if type(self.window_ms) is not int or self.window_ms < 1:
            raise ValueError("window_ms must be a positive integer")


@dataclass
class RateLimitEntry:
    """Request count for one key within its current window."""
    count: int
    reset_time: int  # epoch milliseconds


@dataclass(frozen=True)
class RateLimitResult:
    """Result of rate limit check."""
    success: bool
    limit: int
    remaining: int
    reset: int  # epoch milliseconds
