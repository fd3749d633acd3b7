"""Retry policy, backoff computation and caller deadlines.

:class:`RetryPolicy` is a plain value composed into the transports.  It
answers one question per failed attempt -- retry after how long, or give
up -- so the rules can be unit-tested without a network or real sleeps:

* ``429``: retry after ``Retry-After`` when given, else exponential backoff;
* ``5xx``: retry after exponential backoff;
* other statuses: fail immediately;
* transport exceptions (:class:`httpx.TransportError`): exponential backoff.

Attempt ``n`` (0-indexed) backs off ``base_delay * 2**n`` seconds, capped at
``max_delay``: with the defaults ``1s, 2s, 4s`` for a budget of 3 retries.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

import httpx

# Network-level exceptions that warrant a retry.
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (httpx.TransportError,)


@dataclass(frozen=True)
class Retry:
    """Wait *delay* seconds, then try again."""

    delay: float
    reason: str


@dataclass(frozen=True)
class Fail:
    """Stop retrying and surface the error."""

    reason: str


RetryDecision = Union[Retry, Fail]


def _is_server_error(status_code: int) -> bool:
    return 500 <= status_code < 600


@dataclass(frozen=True)
class RetryPolicy:
    """Retry rules for one logical request.

    Parameters
    ----------
    max_retries:
        Retries allowed after the initial attempt (the retry budget).
    base_delay:
        Backoff for attempt 0, in seconds.
    max_delay:
        Cap on any computed backoff, in seconds.
    jitter:
        Scale computed backoff to a random 50-100 %.  Server-provided
        ``Retry-After`` values are never jittered.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter: bool = False

    @classmethod
    def from_config(cls, config: Any, retry_budget: int | None = None) -> RetryPolicy:
        """Build the policy from a :class:`NotionSyncConfig`.

        *retry_budget* overrides ``config.retry_budget`` for a single call.
        """
        return cls(
            max_retries=config.retry_budget if retry_budget is None else retry_budget,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
            jitter=config.retry_jitter,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def can_retry(self, attempt: int) -> bool:
        """``True`` while attempt *attempt* (0-indexed) is not the last one."""
        return attempt < self.max_retries

    def backoff(self, attempt: int) -> float:
        """Exponential backoff in seconds before the retry after *attempt*."""
        delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random() * 0.5
        return delay

    def decide(
        self,
        status_code: int,
        attempt: int,
        retry_after: float | None = None,
    ) -> RetryDecision:
        """Classify a non-2xx *status_code* received on *attempt*."""
        if status_code == 429:
            if not self.can_retry(attempt):
                return Fail("rate_limited")
            if retry_after is not None:
                return Retry(max(retry_after, 0.0), "rate_limited")
            return Retry(self.backoff(attempt), "rate_limited")

        if _is_server_error(status_code):
            if not self.can_retry(attempt):
                return Fail("server_error")
            return Retry(self.backoff(attempt), "server_error")

        return Fail("client_error")

    def decide_exception(self, exc: BaseException, attempt: int) -> RetryDecision:
        """Classify an exception raised while sending *attempt*."""
        if not isinstance(exc, RETRYABLE_EXCEPTIONS):
            return Fail("not_retryable")
        if not self.can_retry(attempt):
            return Fail("network_error")
        return Retry(self.backoff(attempt), "network_error")


@dataclass(frozen=True)
class Deadline:
    """An absolute point in time after which pending retries are abandoned.

    *clock* must be monotonic; tests inject a fake one.
    """

    expires_at: float
    clock: Callable[[], float] = field(default=time.monotonic, compare=False, repr=False)

    @classmethod
    def after(cls, seconds: float, clock: Callable[[], float] = time.monotonic) -> Deadline:
        return cls(expires_at=clock() + seconds, clock=clock)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self.clock())

    def expired(self) -> bool:
        return self.clock() >= self.expires_at
