"""Metrics hook protocol and its no-op default.

Counters and timings emitted by notionsync:

* ``notionsync.requests_total``            -- counter, tags: method, path, status
* ``notionsync.retries_total``             -- counter, tags: method, path, reason
* ``notionsync.rate_limited_total``        -- counter
* ``notionsync.request_duration_ms``       -- timing
* ``notionsync.rate_limit_wait_ms``        -- timing
* ``notionsync.subtree_incomplete_total``  -- counter
* ``notionsync.conversion_duration_ms``    -- timing

Supply any object satisfying :class:`MetricsHook` as
``NotionSyncConfig(metrics=...)`` to route them to StatsD, Prometheus, etc.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Structural interface of a metrics backend.

    *tags* are string key/value pairs; backends map them to labels, tags or
    name suffixes as they see fit.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Add *value* to the counter *name*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set the gauge *name* to *value*."""
        ...


class NoopMetricsHook:
    """Discards every data point; used when no backend is configured."""

    __slots__ = ()

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        pass

    def timing(self, name: str, ms: float, tags: dict[str, str] | None = None) -> None:
        pass

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass
