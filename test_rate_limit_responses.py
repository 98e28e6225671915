#!/usr/bin/env python3
"""
Tests for rate limit headers and 429 bodies.
"""

import httpx

from gz_stream.models import RateLimitInfo
from gz_stream.rate_limiting import (
    RATE_LIMIT_STATUS,
    RateLimitResult,
    create_rate_limit_error,
    create_rate_limit_headers,
    parse_rate_limit_headers,
)

NOW = 1_700_000_000_000


def test_headers():
    result = RateLimitResult(success=True, limit=10, remaining=7, reset=NOW + 60_000)

    assert create_rate_limit_headers(result) == {
        "X-RateLimit-Limit": "10",
        "X-RateLimit-Remaining": "7",
        "X-RateLimit-Reset": str(NOW + 60_000),
    }


def test_error_body():
    result = RateLimitResult(success=False, limit=10, remaining=0, reset=NOW + 1500)

    body = create_rate_limit_error(result, now=NOW)

    assert RATE_LIMIT_STATUS == 429
    assert body == {
        "error": "Rate limit exceeded",
        "message": "Too many requests. Please try again in 2 seconds.",
        "retryAfter": 2,
        "limit": 10,
        "reset": NOW + 1500,
    }


def test_error_body_uses_wall_clock_by_default():
    result = RateLimitResult(success=False, limit=10, remaining=0, reset=0)

    body = create_rate_limit_error(result)

    assert body["retryAfter"] < 0


def test_parse_headers_round_trip():
    result = RateLimitResult(success=True, limit=30, remaining=29, reset=NOW)
    headers = httpx.Headers(create_rate_limit_headers(result))

    assert parse_rate_limit_headers(headers) == RateLimitInfo(limit=30, remaining=29, reset=NOW)


def test_parse_headers_is_case_insensitive_for_httpx_headers():
    headers = httpx.Headers({
        "x-ratelimit-limit": "10",
        "x-ratelimit-remaining": "0",
        "x-ratelimit-reset": "123",
    })

    info = parse_rate_limit_headers(headers)

    assert info is not None
    assert info.remaining == 0


def test_parse_headers_missing_or_malformed():
    assert parse_rate_limit_headers({}) is None
    assert parse_rate_limit_headers({
        "X-RateLimit-Limit": "10",
        "X-RateLimit-Remaining": "5",
    }) is None
    assert parse_rate_limit_headers({
        "X-RateLimit-Limit": "ten",
        "X-RateLimit-Remaining": "5",
        "X-RateLimit-Reset": "1",
    }) is None
