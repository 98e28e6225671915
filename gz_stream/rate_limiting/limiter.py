"""
Fixed-window rate limiting with an in-memory store.

State lives in a single process; several server instances do not share
counts, so the effective quota scales with the number of instances.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from .models import RateLimitConfig, RateLimitEntry, RateLimitResult

if TYPE_CHECKING:                                        # pragma: no cover
    from ..config import Configuration

# Constants
DEFAULT_SWEEP_INTERVAL = 60.0  # seconds
DEFAULT_LIMITS = {
    "chat": RateLimitConfig(max_requests=10, window_ms=60_000),
    "workshop": RateLimitConfig(max_requests=30, window_ms=60_000),
    "api": RateLimitConfig(max_requests=60, window_ms=60_000),
}

Clock = Callable[[], int]

logger = structlog.get_logger(__name__)


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class RateLimitStore:
    """In-memory key -> entry map with lazy expiry."""

    def __init__(self, clock: Clock = epoch_ms):
        self._store: dict[str, RateLimitEntry] = {}
        self._clock = clock

    def get(self, key: str) -> RateLimitEntry | None:
        """Get the live entry for a key, dropping it if its window expired."""
        entry = self._store.get(key)
        if entry is None:
            return None

        if self._clock() > entry.reset_time:
            del self._store[key]
            return None

        return entry

    def peek(self, key: str) -> RateLimitEntry | None:
        """Like get, but leaves expired entries in place."""
        entry = self._store.get(key)
        if entry is None or self._clock() > entry.reset_time:
            return None
        return entry

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._store[key] = entry

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def cleanup(self) -> int:
        """Remove expired entries and return how many were dropped."""
        now = self._clock()
        expired = [key for key, entry in self._store.items() if now > entry.reset_time]
        for key in expired:
            del self._store[key]
        return len(expired)

    def size(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        self._store.clear()


class RateLimiter:
    """
    Fixed-window request quota per key (user id, IP address, ...).

    Features:
    - check() counts a request, status() only reads
    - Lazy expiry on access
    - Optional background sweep while used as an async context manager
    """

    def __init__(
        self,
        config: RateLimitConfig,
        clock: Clock | None = None,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
    ):
        if sweep_interval <= 0:
            raise ValueError("sweep_interval must be positive")

        self.config = config
        self._clock = clock or epoch_ms
        self.store = RateLimitStore(self._clock)
        self.sweep_interval = sweep_interval

        # Background task for sweeping expired entries
        self._sweep_task: asyncio.Task | None = None

    async def __aenter__(self) -> RateLimiter:
        """Start background sweep."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Stop background sweep."""
        await self.stop()

    async def start(self) -> None:
        """Start sweeping expired entries on the running event loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the background sweep if it is running."""
        if self._sweep_task:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None

    @property
    def sweeping(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def check(self, key: str) -> RateLimitResult:
        """
        Count a request for key and report whether it is allowed.

        Args:
            key: Opaque client identity

        Returns:
            RateLimitResult; success=False once the window's quota is spent
        """
        now = self._clock()
        limit = self.config.max_requests
        entry = self.store.get(key)

        if entry is None:
            reset = now + self.config.window_ms
            self.store.set(key, RateLimitEntry(count=1, reset_time=reset))
            return RateLimitResult(
                success=True,
                limit=limit,
                remaining=limit - 1,
                reset=reset,
            )

        if entry.count >= limit:
            logger.info(
                "Rate limit exceeded",
                key=key,
                limit=limit,
                reset=entry.reset_time,
            )
            return RateLimitResult(
                success=False,
                limit=limit,
                remaining=0,
                reset=entry.reset_time,
            )

        entry.count += 1
        return RateLimitResult(
            success=True,
            limit=limit,
            remaining=limit - entry.count,
            reset=entry.reset_time,
        )

    def status(self, key: str) -> RateLimitResult:
        """Get current status without counting a request."""
        limit = self.config.max_requests
        entry = self.store.peek(key)

        if entry is None:
            return RateLimitResult(
                success=True,
                limit=limit,
                remaining=limit,
                reset=self._clock() + self.config.window_ms,
            )

        return RateLimitResult(
            success=entry.count < limit,
            limit=limit,
            remaining=max(0, limit - entry.count),
            reset=entry.reset_time,
        )

    def reset(self, key: str) -> None:
        """Reset rate limit for a key."""
        self.store.delete(key)

    async def _sweep_loop(self) -> None:
        """Background task to drop expired entries."""
        while True:
            await asyncio.sleep(self.sweep_interval)
            removed = self.store.cleanup()
            if removed:
                logger.debug(
                    "Swept expired rate limit entries",
                    removed=removed,
                    remaining_keys=self.store.size(),
                )

    def get_statistics(self) -> dict[str, int | float | bool]:
        """Get current rate limiting statistics."""
        return {
            'tracked_keys': self.store.size(),
            'max_requests': self.config.max_requests,
            'window_ms': self.config.window_ms,
            'sweeping': self.sweeping,
        }


class RateLimiterRegistry:
    """
    Named limiters built explicitly at process start.

    Used as an async context manager, it starts every limiter's sweep on
    entry and stops them on exit, tying their lifecycle to the server's.
    """

    def __init__(
        self,
        configs: dict[str, RateLimitConfig] | None = None,
        clock: Clock | None = None,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
    ):
        configs = configs if configs is not None else DEFAULT_LIMITS
        self._limiters = {
            name: RateLimiter(config, clock=clock, sweep_interval=sweep_interval)
            for name, config in configs.items()
        }

    @classmethod
    def from_configuration(
        cls, configuration: Configuration, clock: Clock | None = None
    ) -> RateLimiterRegistry:
        """Build limiters from the rate_limits section of config.yaml."""
        return cls(
            configuration.get_rate_limit_configs(),
            clock=clock,
            sweep_interval=configuration.get_sweep_interval(),
        )

    async def __aenter__(self) -> RateLimiterRegistry:
        for limiter in self._limiters.values():
            await limiter.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        for limiter in self._limiters.values():
            await limiter.stop()

    def get(self, name: str) -> RateLimiter:
        try:
            return self._limiters[name]
        except KeyError:
            raise KeyError(
                f"No rate limiter named '{name}' "
                f"(configured: {', '.join(sorted(self._limiters))})"
            ) from None

    @property
    def names(self) -> list[str]:
        return sorted(self._limiters)

    @property
    def chat(self) -> RateLimiter:
        return self.get("chat")

    @property
    def workshop(self) -> RateLimiter:
        return self.get("workshop")

    @property
    def api(self) -> RateLimiter:
        return self.get("api")
