"""Client-side request pacing.

Notion allows an average of three requests per second per integration.
A token bucket keeps each transport under that rate so that most calls
never see a ``429`` at all; the retry policy handles the rest.

Tokens refill continuously at ``rate_rps`` up to ``burst``.  A caller that
finds the bucket empty waits ``deficit / rate_rps`` seconds.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable


class _Bucket:
    """Bookkeeping shared by the sync and async buckets (not thread-safe)."""

    __slots__ = ("burst", "clock", "last_refill", "rate", "tokens")

    def __init__(self, rate_rps: float, burst: int, clock: Callable[[], float]) -> None:
        if rate_rps <= 0:
            raise ValueError(f"rate_rps must be > 0, got {rate_rps}")
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")
        self.rate = rate_rps
        self.burst = burst
        self.clock = clock
        self.tokens = float(burst)
        self.last_refill = clock()

    def take(self, tokens: int) -> float:
        """Consume *tokens*; return how long the caller must wait first."""
        now = self.clock()
        self.tokens = min(self.burst, self.tokens + (now - self.last_refill) * self.rate)
        self.last_refill = now

        if self.tokens >= tokens:
            self.tokens -= tokens
            return 0.0

        wait = (tokens - self.tokens) / self.rate
        self.tokens = 0.0
        return wait


class TokenBucket:
    """Thread-safe token bucket for the synchronous transport."""

    def __init__(
        self,
        rate_rps: float,
        burst: int = 10,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._bucket = _Bucket(rate_rps, burst, clock)
        self._sleep = sleep
        self._lock = threading.Lock()

    def reserve(self, tokens: int = 1) -> float:
        """Take *tokens* without waiting; return the delay owed before use."""
        with self._lock:
            return self._bucket.take(tokens)

    def acquire(self, tokens: int = 1) -> float:
        """Take *tokens*, blocking while the bucket refills.

        Returns the seconds spent waiting.
        """
        wait = self.reserve(tokens)
        if wait > 0:
            self._sleep(wait)
        return wait


class AsyncTokenBucket:
    """Coroutine-safe token bucket for the asynchronous transport."""

    def __init__(
        self,
        rate_rps: float,
        burst: int = 10,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._bucket = _Bucket(rate_rps, burst, clock)
        self._sleep = sleep
        self._lock = asyncio.Lock()

    async def reserve(self, tokens: int = 1) -> float:
        """Take *tokens* without waiting; return the delay owed before use."""
        async with self._lock:
            return self._bucket.take(tokens)

    async def acquire(self, tokens: int = 1) -> float:
        """Take *tokens*, awaiting while the bucket refills."""
        wait = await self.reserve(tokens)
        if wait > 0:
            await self._sleep(wait)
        return wait
