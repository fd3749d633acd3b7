"""Client configuration for notionsync.

:class:`NotionSyncConfig` captures every tuneable knob of the transport,
the materializer and the converter.  Instances are passed to both
:class:`NotionSyncClient` and :class:`AsyncNotionSyncClient`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Literal

MarkdownDialect = Literal["gfm", "commonmark"]


@dataclass
class NotionSyncConfig:
    """Complete configuration for a notionsync client.

    Every parameter has a default so that the only *required* value is
    ``token``.

    Parameters
    ----------
    token:
        Notion bearer token.  Never logged.
    notion_version:
        Value of the ``Notion-Version`` header sent with every request.
    base_url:
        API root URL.  Override for proxy or testing environments.
    retry_budget:
        Number of *retries* after the initial attempt for 429, 5xx and
        network failures.  ``3`` means at most four attempts.
    retry_base_delay:
        Base delay (seconds); attempt ``n`` waits ``base * 2**n``.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Scale backoff delays randomly to 50-100 %.  Off by default so that
        waits are exactly ``1s, 2s, 4s``.
    rate_limit_rps:
        Target requests per second for client-side pacing (token bucket).
    rate_limit_burst:
        Token bucket ceiling.
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    max_concurrent_fetches:
        Upper bound on concurrent child fetches in the async materializer.
    max_depth:
        Maximum block nesting depth to materialize.  ``None`` is unlimited.
    markdown_dialect:
        ``"gfm"`` (GitHub-flavoured markdown with raw HTML for toggles and
        underline) or ``"commonmark"`` (no HTML, no strikethrough).
    metrics:
        Optional :class:`~notionsync.observability.MetricsHook`.
    debug_dump_payload:
        Write a redacted request/response dump to *stderr* for every call.
    """

    # ── Core ────────────────────────────────────────────────────────────
    token: str = ""

    notion_version: str = "2025-09-03"

    base_url: str = "https://api.notion.com/v1"

    # ── Retry & rate ────────────────────────────────────────────────────
    retry_budget: int = 3

    retry_base_delay: float = 1.0

    retry_max_delay: float = 60.0

    retry_jitter: bool = False

    rate_limit_rps: float = 3.0

    rate_limit_burst: int = 10

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Materialization & conversion ────────────────────────────────────
    max_concurrent_fetches: int = 4

    max_depth: int | None = None

    markdown_dialect: MarkdownDialect = "gfm"

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing."
            )

        if self.retry_budget < 0:
            raise ValueError(f"retry_budget must be >= 0, got {self.retry_budget}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.rate_limit_rps <= 0:
            raise ValueError(f"rate_limit_rps must be > 0, got {self.rate_limit_rps}")
        if self.rate_limit_burst < 1:
            raise ValueError(f"rate_limit_burst must be >= 1, got {self.rate_limit_burst}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.max_concurrent_fetches < 1:
            raise ValueError(
                f"max_concurrent_fetches must be >= 1, got {self.max_concurrent_fetches}"
            )
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0 or None, got {self.max_depth}")
        if self.markdown_dialect not in ("gfm", "commonmark"):
            raise ValueError(
                f"markdown_dialect must be 'gfm' or 'commonmark', got {self.markdown_dialect!r}"
            )

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"NotionSyncConfig({', '.join(parts)})"
