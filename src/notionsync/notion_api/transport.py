"""Sync and async HTTP transports for the Notion API.

Each ``request()`` runs the full lifecycle:

1. Acquire a token-bucket slot (client-side pacing).
2. Send the HTTP request with bearer auth and ``Notion-Version`` headers.
3. On ``2xx`` -- return the parsed JSON body.
4. On ``429`` -- wait ``Retry-After`` (or back off) and retry.
5. On ``5xx`` / network error -- back off exponentially and retry.
6. On any other status -- raise the typed client error immediately.
7. Budget spent -- raise :class:`NotionSyncRateLimitError`,
   :class:`NotionSyncServerError` or :class:`NotionSyncNetworkError`.

Retry state lives in the call; every ``request()`` starts with a fresh
budget.  Waits go through the injected *sleep* so tests never sleep.
An optional :class:`Deadline` aborts pending retries with
:class:`NotionSyncDeadlineError`.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from notionsync.config import NotionSyncConfig
from notionsync.errors import (
    NotionSyncAuthError,
    NotionSyncClientError,
    NotionSyncDeadlineError,
    NotionSyncNetworkError,
    NotionSyncNotConnectedError,
    NotionSyncNotFoundError,
    NotionSyncPermissionError,
    NotionSyncRateLimitError,
    NotionSyncServerError,
)
from notionsync.observability import NoopMetricsHook, get_logger

from .rate_limit import AsyncTokenBucket, TokenBucket
from .retries import Deadline, Fail, Retry, RetryPolicy

log = get_logger("notionsync.transport")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value in seconds, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _response_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the typed error for a non-retryable 4xx response."""
    status = response.status_code
    body = _response_body(response)
    notion_message = body.get("message") or response.text[:500]
    notion_code = body.get("code")

    if status == 401:
        raise NotionSyncAuthError(
            f"Authentication failed on {method} {path}: {notion_message}",
            notion_code=notion_code,
        )
    if status == 403:
        raise NotionSyncPermissionError(
            f"Permission denied on {method} {path}: {notion_message}",
            notion_code=notion_code,
            context={"operation": f"{method} {path}"},
        )
    if status == 404:
        raise NotionSyncNotFoundError(
            f"Resource not found on {method} {path}: {notion_message}",
            notion_code=notion_code,
            context={"path": path},
        )
    raise NotionSyncClientError(
        f"Client error {status} on {method} {path}: {notion_message}",
        status,
        notion_code=notion_code,
        context={"body": body},
    )


def _raise_exhausted(
    response: httpx.Response,
    method: str,
    path: str,
    attempts: int,
    retry_after: float | None,
) -> None:
    """Raise the error for a retryable status that outlived the budget."""
    status = response.status_code
    body = _response_body(response)
    if status == 429:
        raise NotionSyncRateLimitError(
            f"Rate limit exceeded on {method} {path} after {attempts} attempts",
            retry_after_seconds=retry_after,
            context={"attempts": attempts},
        )
    raise NotionSyncServerError(
        f"Server error {status} on {method} {path} after {attempts} attempts: "
        f"{body.get('message') or response.text[:500]}",
        status,
        notion_code=body.get("code"),
        context={"attempts": attempts, "body": body or response.text[:500]},
    )


def _dump_payload(
    method: str,
    url: str,
    payload: dict | None,
    response_status: int | None,
    response_body: Any | None,
    token: str | None = None,
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from notionsync.utils.redact import redact

    dump: dict[str, Any] = {"method": method, "url": url}
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(_json.dumps(redact(dump, token), indent=2, default=str), file=sys.stderr)


def _check_deadline(
    deadline: Deadline | None,
    method: str,
    path: str,
    attempt: int,
    delay: float = 0.0,
) -> None:
    """Raise :class:`NotionSyncDeadlineError` if *deadline* cannot
    accommodate a wait of *delay* seconds."""
    if deadline is None:
        return
    remaining = deadline.remaining()
    if deadline.expired() or delay > remaining:
        raise NotionSyncDeadlineError(
            f"Deadline exceeded on {method} {path} before attempt {attempt + 1}",
            context={
                "path": path,
                "attempt": attempt + 1,
                "remaining_seconds": remaining,
                "next_delay": delay,
            },
        )


class _TransportBase:
    """Construction and per-attempt bookkeeping shared by both transports."""

    def __init__(self, config: NotionSyncConfig) -> None:
        if not config.token:
            raise NotionSyncNotConnectedError(
                "No Notion token configured; connect a Notion account first."
            )
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    def _client_kwargs(self) -> dict[str, Any]:
        return {
            "base_url": self._config.base_url,
            "headers": {
                "Authorization": f"Bearer {self._config.token}",
                "Notion-Version": self._config.notion_version,
                "Content-Type": "application/json",
            },
            "timeout": httpx.Timeout(self._config.timeout_seconds),
            "proxy": self._config.http_proxy,
        }

    def _record_wait(self, wait: float, method: str, path: str) -> None:
        if wait > 0:
            self._metrics.timing(
                "notionsync.rate_limit_wait_ms",
                wait * 1000,
                tags={"method": method, "path": path},
            )

    def _record_response(
        self, response: httpx.Response, method: str, path: str, elapsed_ms: float,
        json_payload: Any,
    ) -> None:
        tags = {"method": method, "path": path, "status": str(response.status_code)}
        self._metrics.increment("notionsync.requests_total", tags=tags)
        self._metrics.timing("notionsync.request_duration_ms", elapsed_ms, tags=tags)

        if self._config.debug_dump_payload:
            try:
                resp_body: Any = response.json()
            except ValueError:
                resp_body = response.text[:1000]
            _dump_payload(
                method, str(response.url), json_payload,
                response.status_code, resp_body,
                token=self._config.token,
            )

    def _delay_after_exception(
        self,
        policy: RetryPolicy,
        exc: httpx.TransportError,
        method: str,
        path: str,
        attempt: int,
    ) -> float:
        """Return the backoff before the next attempt, or raise
        :class:`NotionSyncNetworkError` once the budget is spent."""
        self._metrics.increment(
            "notionsync.requests_total",
            tags={"method": method, "path": path, "status": "error"},
        )
        log.warning(
            "Request network error",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "attempt": attempt + 1,
                    "error": str(exc),
                }
            },
        )
        decision = policy.decide_exception(exc, attempt)
        if isinstance(decision, Fail):
            raise NotionSyncNetworkError(
                f"Notion API request failed: {method} {path}: {exc}",
                context={"path": path, "attempts": attempt + 1},
                cause=exc,
            ) from exc
        self._metrics.increment(
            "notionsync.retries_total",
            tags={"method": method, "path": path, "reason": decision.reason},
        )
        return decision.delay

    def _delay_after_response(
        self,
        policy: RetryPolicy,
        response: httpx.Response,
        method: str,
        path: str,
        attempt: int,
    ) -> float:
        """Return the backoff before retrying a non-2xx *response*, or raise
        the typed error when it is not retryable or the budget is spent."""
        status = response.status_code
        retry_after = _parse_retry_after(response) if status == 429 else None
        decision = policy.decide(status, attempt, retry_after)

        if status == 429:
            self._metrics.increment(
                "notionsync.rate_limited_total",
                tags={"method": method, "path": path},
            )
            log.warning(
                "Rate limited by Notion API",
                extra={
                    "extra_fields": {
                        "op": "request",
                        "method": method,
                        "path": path,
                        "status_code": 429,
                        "retry_after": retry_after,
                        "attempt": attempt + 1,
                    }
                },
            )

        if isinstance(decision, Retry):
            self._metrics.increment(
                "notionsync.retries_total",
                tags={"method": method, "path": path, "reason": decision.reason},
            )
            return decision.delay

        if decision.reason == "client_error":
            _raise_for_status(response, method, path)
        if retry_after is None and status == 429:
            retry_after = policy.backoff(attempt)
        _raise_exhausted(response, method, path, attempt + 1, retry_after)
        raise AssertionError("unreachable")  # pragma: no cover


def _parse_success(response: httpx.Response, method: str, path: str) -> dict:
    # Some endpoints answer 204 or an empty 200.
    if response.status_code == 204 or not response.content:
        return {}
    try:
        result = response.json()
    except ValueError as exc:
        # Usually an HTML page from a proxy or gateway in front of the API.
        raise NotionSyncServerError(
            f"Malformed response body on {method} {path}: {response.text[:500]}",
            response.status_code,
            context={"body": response.text[:500]},
            cause=exc,
        ) from exc
    if not isinstance(result, dict):
        raise NotionSyncServerError(
            f"Unexpected response body on {method} {path}: expected a JSON object",
            response.status_code,
            context={"body": response.text[:500]},
        )
    return result


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class NotionTransport(_TransportBase):
    """Synchronous HTTP transport with auth, retry, and rate limiting.

    Parameters
    ----------
    config:
        Transport configuration; ``config.token`` must be non-empty.
    sleep:
        Delay primitive used between retries (default :func:`time.sleep`).
    client:
        Pre-built :class:`httpx.Client`, e.g. one backed by
        :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        config: NotionSyncConfig,
        *,
        sleep: Callable[[float], None] | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(config)
        self._sleep = sleep or time.sleep
        self._bucket = TokenBucket(
            rate_rps=config.rate_limit_rps,
            burst=config.rate_limit_burst,
            sleep=self._sleep,
        )
        self._client = client or httpx.Client(**self._client_kwargs())

    def request(
        self,
        method: str,
        path: str,
        *,
        retry_budget: int | None = None,
        deadline: Deadline | None = None,
        **kwargs: Any,
    ) -> dict:
        """Execute an HTTP request against the Notion API.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``POST``, ``PATCH``).
        path:
            API path relative to ``base_url`` (e.g. ``/pages``).
        retry_budget:
            Retries allowed after the first attempt; defaults to
            ``config.retry_budget``.
        deadline:
            Abort pending retries once this deadline cannot be met.
        **kwargs:
            Forwarded to :meth:`httpx.Client.request` (``json=``,
            ``params=``, ``headers=``).

        Returns
        -------
        dict
            Parsed JSON response body.

        Raises
        ------
        NotionSyncClientError
            On non-retryable 4xx responses (auth, permission, not found...).
        NotionSyncRateLimitError
            When 429 persists past the budget.
        NotionSyncServerError
            When 5xx persists past the budget.
        NotionSyncNetworkError
            When transport failures persist past the budget.
        NotionSyncDeadlineError
            When *deadline* expires before the call can complete.
        """
        policy = RetryPolicy.from_config(self._config, retry_budget)
        json_payload = kwargs.get("json")

        for attempt in range(policy.max_attempts):
            _check_deadline(deadline, method, path, attempt)
            wait = self._bucket.reserve()
            _check_deadline(deadline, method, path, attempt, wait)
            if wait > 0:
                self._sleep(wait)
            self._record_wait(wait, method, path)

            t0 = time.monotonic()
            try:
                response = self._client.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                delay = self._delay_after_exception(policy, exc, method, path, attempt)
                _check_deadline(deadline, method, path, attempt + 1, delay)
                self._sleep(delay)
                continue

            self._record_response(
                response, method, path, (time.monotonic() - t0) * 1000, json_payload,
            )
            if 200 <= response.status_code < 300:
                return _parse_success(response, method, path)

            delay = self._delay_after_response(policy, response, method, path, attempt)
            _check_deadline(deadline, method, path, attempt + 1, delay)
            self._sleep(delay)

        raise AssertionError("retry loop exited without a result")  # pragma: no cover

    def close(self) -> None:
        """Close the underlying HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> NotionTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncNotionTransport(_TransportBase):
    """Asynchronous HTTP transport with auth, retry, and rate limiting.

    Mirrors :class:`NotionTransport` on ``httpx.AsyncClient``; waits use
    :func:`asyncio.sleep` unless another *sleep* coroutine is injected.
    """

    def __init__(
        self,
        config: NotionSyncConfig,
        *,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(config)
        self._sleep = sleep or asyncio.sleep
        self._bucket = AsyncTokenBucket(
            rate_rps=config.rate_limit_rps,
            burst=config.rate_limit_burst,
            sleep=self._sleep,
        )
        self._client = client or httpx.AsyncClient(**self._client_kwargs())

    async def request(
        self,
        method: str,
        path: str,
        *,
        retry_budget: int | None = None,
        deadline: Deadline | None = None,
        **kwargs: Any,
    ) -> dict:
        """Execute an HTTP request against the Notion API (async).

        See :meth:`NotionTransport.request`; the semantics are identical.
        """
        policy = RetryPolicy.from_config(self._config, retry_budget)
        json_payload = kwargs.get("json")

        for attempt in range(policy.max_attempts):
            _check_deadline(deadline, method, path, attempt)
            wait = await self._bucket.reserve()
            _check_deadline(deadline, method, path, attempt, wait)
            if wait > 0:
                await self._sleep(wait)
            self._record_wait(wait, method, path)

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                delay = self._delay_after_exception(policy, exc, method, path, attempt)
                _check_deadline(deadline, method, path, attempt + 1, delay)
                await self._sleep(delay)
                continue

            self._record_response(
                response, method, path, (time.monotonic() - t0) * 1000, json_payload,
            )
            if 200 <= response.status_code < 300:
                return _parse_success(response, method, path)

            delay = self._delay_after_response(policy, response, method, path, attempt)
            _check_deadline(deadline, method, path, attempt + 1, delay)
            await self._sleep(delay)

        raise AssertionError("retry loop exited without a result")  # pragma: no cover

    async def close(self) -> None:
        """Close the underlying async HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncNotionTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
