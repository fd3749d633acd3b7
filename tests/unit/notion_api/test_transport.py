"""Unit tests for notionsync/notion_api/transport.py.

Covers:
- _parse_retry_after, _raise_for_status, _dump_payload
- NotionTransport.request (success, 4xx errors, retry logic, deadlines,
  metrics, debug dump)
- AsyncNotionTransport equivalents
"""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

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
from notionsync.notion_api.retries import Deadline
from notionsync.notion_api.transport import (
    AsyncNotionTransport,
    NotionTransport,
    _dump_payload,
    _parse_retry_after,
    _raise_for_status,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_response(
    status_code: int = 200,
    body: dict | None = None,
    headers: dict | None = None,
) -> httpx.Response:
    """Build a minimal httpx.Response with a request attached."""
    content = json.dumps(body).encode() if body is not None else b""
    resp = httpx.Response(status_code, content=content, headers=headers or {})
    resp.request = httpx.Request("GET", "https://api.notion.com/v1/test")
    return resp


def make_raw_response(status_code: int, content: bytes) -> httpx.Response:
    resp = httpx.Response(status_code, content=content)
    resp.request = httpx.Request("GET", "https://api.notion.com/v1/test")
    return resp


def make_config(**overrides: Any) -> NotionSyncConfig:
    """Return a config with exact 1s/2s/4s backoff and no client-side pacing."""
    defaults: dict[str, Any] = dict(
        token="test-token-1234",
        retry_budget=3,
        retry_base_delay=1.0,
        retry_jitter=False,
        rate_limit_rps=10_000.0,
        rate_limit_burst=1_000,
    )
    defaults.update(overrides)
    return NotionSyncConfig(**defaults)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class RecordingMetricsHook:
    def __init__(self) -> None:
        self.increments: list[tuple[str, dict | None]] = []
        self.timings: list[tuple[str, float]] = []

    def increment(self, name: str, value: int = 1, tags: dict | None = None) -> None:
        self.increments.append((name, tags))

    def timing(self, name: str, ms: float, tags: dict | None = None) -> None:
        self.timings.append((name, ms))

    def gauge(self, name: str, value: float, tags: dict | None = None) -> None:
        pass

    def names(self) -> list[str]:
        return [name for name, _ in self.increments]


# ---------------------------------------------------------------------------
# _parse_retry_after
# ---------------------------------------------------------------------------


class TestParseRetryAfter:
    def test_numeric_string(self):
        assert _parse_retry_after(make_response(headers={"retry-after": "5"})) == 5.0

    def test_float_string(self):
        assert _parse_retry_after(make_response(headers={"retry-after": "2.5"})) == 2.5

    def test_missing_header(self):
        assert _parse_retry_after(make_response()) is None

    def test_http_date_is_ignored(self):
        resp = make_response(headers={"retry-after": "Wed, 21 Oct 2015 07:28:00 GMT"})
        assert _parse_retry_after(resp) is None


# ---------------------------------------------------------------------------
# _raise_for_status
# ---------------------------------------------------------------------------


class TestRaiseForStatus:
    def _resp(self, status: int, body: dict | None = None) -> httpx.Response:
        return make_response(status, body or {"message": "err", "code": "test_code"})

    def test_401_raises_auth_error(self):
        with pytest.raises(NotionSyncAuthError) as exc_info:
            _raise_for_status(self._resp(401), "GET", "/users/me")
        assert exc_info.value.status == 401
        assert exc_info.value.notion_code == "test_code"

    def test_403_raises_permission_error(self):
        with pytest.raises(NotionSyncPermissionError) as exc_info:
            _raise_for_status(self._resp(403), "PATCH", "/pages/abc")
        assert exc_info.value.context["operation"] == "PATCH /pages/abc"

    def test_404_raises_not_found_error(self):
        with pytest.raises(NotionSyncNotFoundError) as exc_info:
            _raise_for_status(self._resp(404), "GET", "/pages/xyz")
        assert exc_info.value.context["path"] == "/pages/xyz"
        assert exc_info.value.context["status_code"] == 404

    def test_other_4xx_raises_client_error_with_status(self):
        with pytest.raises(NotionSyncClientError) as exc_info:
            _raise_for_status(self._resp(422), "POST", "/pages")
        assert exc_info.value.status == 422

    def test_message_extracted_from_body(self):
        resp = make_response(400, {"message": "Invalid property", "code": "validation_error"})
        with pytest.raises(NotionSyncClientError) as exc_info:
            _raise_for_status(resp, "POST", "/pages")
        assert "Invalid property" in exc_info.value.message
        assert exc_info.value.notion_code == "validation_error"

    def test_non_json_body(self):
        resp = httpx.Response(400, content=b"plain text error")
        with pytest.raises(NotionSyncClientError) as exc_info:
            _raise_for_status(resp, "GET", "/pages/1")
        assert "plain text error" in exc_info.value.message


# ---------------------------------------------------------------------------
# _dump_payload
# ---------------------------------------------------------------------------


class TestDumpPayload:
    def test_dump_is_json_on_stderr(self, capsys):
        _dump_payload("POST", "https://api.notion.com/v1/pages", {"a": 1}, 200, {"id": "p"})
        data = json.loads(capsys.readouterr().err)
        assert data["method"] == "POST"
        assert data["request_body"] == {"a": 1}
        assert data["response_status"] == 200

    def test_token_is_redacted(self, capsys):
        token = "secret-token-abcdef"
        _dump_payload("GET", "https://x", {"note": f"uses {token}"}, 200, None, token=token)
        err = capsys.readouterr().err
        assert token not in err
        assert "<redacted" in err


# ---------------------------------------------------------------------------
# NotionTransport
# ---------------------------------------------------------------------------


class TestNotionTransportConstruction:
    def test_empty_token_raises_not_connected(self):
        with pytest.raises(NotionSyncNotConnectedError):
            NotionTransport(NotionSyncConfig(token=""))

    def test_default_headers(self):
        transport = NotionTransport(make_config())
        headers = transport._client.headers
        assert headers["Authorization"] == "Bearer test-token-1234"
        assert headers["Notion-Version"] == "2025-09-03"
        assert headers["Content-Type"] == "application/json"
        transport.close()

    def test_base_url(self):
        transport = NotionTransport(make_config())
        assert str(transport._client.base_url).rstrip("/") == "https://api.notion.com/v1"
        transport.close()

    def test_context_manager_closes_client(self):
        with NotionTransport(make_config()) as transport:
            client = transport._client
        assert client.is_closed


class TestNotionTransportRequest:
    def _transport(self, sleeps: list[float] | None = None, **overrides: Any) -> NotionTransport:
        sink = sleeps if sleeps is not None else []
        return NotionTransport(make_config(**overrides), sleep=sink.append)

    def test_success_returns_json(self):
        transport = self._transport()
        with patch.object(
            transport._client, "request", return_value=make_response(200, {"id": "p1"}),
        ) as mock_req:
            assert transport.request("GET", "/pages/p1") == {"id": "p1"}
        mock_req.assert_called_once_with("GET", "/pages/p1")

    def test_kwargs_forwarded(self):
        transport = self._transport()
        with patch.object(
            transport._client, "request", return_value=make_response(200, {}),
        ) as mock_req:
            transport.request("POST", "/pages", json={"x": 1}, params={"page_size": 100})
        mock_req.assert_called_once_with(
            "POST", "/pages", json={"x": 1}, params={"page_size": 100},
        )

    def test_empty_body_returns_empty_dict(self):
        transport = self._transport()
        with patch.object(transport._client, "request", return_value=make_response(204)):
            assert transport.request("PATCH", "/pages/p1") == {}

    def test_non_json_success_body_raises_server_error(self):
        transport = self._transport()
        html = make_raw_response(200, b"<html>gateway</html>")
        with patch.object(transport._client, "request", return_value=html) as mock_req:
            with pytest.raises(NotionSyncServerError) as exc_info:
                transport.request("GET", "/pages/p1")
        assert exc_info.value.status == 200
        assert "<html>gateway</html>" in exc_info.value.context["body"]
        assert isinstance(exc_info.value.__cause__, ValueError)
        mock_req.assert_called_once()

    def test_non_object_success_body_raises_server_error(self):
        transport = self._transport()
        with patch.object(
            transport._client, "request", return_value=make_raw_response(200, b"[1, 2]"),
        ):
            with pytest.raises(NotionSyncServerError, match="expected a JSON object"):
                transport.request("GET", "/pages/p1")

    def test_429_twice_then_success_waits_twice(self):
        sleeps: list[float] = []
        transport = self._transport(sleeps)
        responses = [make_response(429), make_response(429), make_response(200, {"ok": True})]
        with patch.object(transport._client, "request", side_effect=responses) as mock_req:
            assert transport.request("GET", "/pages/p1") == {"ok": True}
        assert mock_req.call_count == 3
        assert sleeps == [1.0, 2.0]

    def test_429_honours_retry_after(self):
        sleeps: list[float] = []
        transport = self._transport(sleeps)
        responses = [
            make_response(429, headers={"Retry-After": "3"}),
            make_response(429, headers={"Retry-After": "0.5"}),
            make_response(200, {}),
        ]
        with patch.object(transport._client, "request", side_effect=responses):
            transport.request("GET", "/pages/p1")
        assert sleeps == [3.0, 0.5]

    def test_persistent_500_makes_four_attempts(self):
        sleeps: list[float] = []
        transport = self._transport(sleeps)
        with patch.object(
            transport._client, "request",
            return_value=make_response(500, {"message": "boom", "code": "internal_server_error"}),
        ) as mock_req:
            with pytest.raises(NotionSyncServerError) as exc_info:
                transport.request("GET", "/pages/p1")
        assert mock_req.call_count == 4
        assert sleeps == [1.0, 2.0, 4.0]
        assert exc_info.value.status == 500
        assert exc_info.value.context["attempts"] == 4

    def test_persistent_429_raises_rate_limit_error(self):
        transport = self._transport()
        with patch.object(
            transport._client, "request",
            return_value=make_response(429, headers={"Retry-After": "9"}),
        ) as mock_req:
            with pytest.raises(NotionSyncRateLimitError) as exc_info:
                transport.request("GET", "/pages/p1")
        assert mock_req.call_count == 4
        assert exc_info.value.status == 429
        assert exc_info.value.retry_after_seconds == 9.0

    def test_404_is_not_retried(self):
        sleeps: list[float] = []
        transport = self._transport(sleeps)
        with patch.object(
            transport._client, "request",
            return_value=make_response(404, {"message": "nope", "code": "object_not_found"}),
        ) as mock_req:
            with pytest.raises(NotionSyncNotFoundError):
                transport.request("GET", "/pages/missing")
        assert mock_req.call_count == 1
        assert sleeps == []

    def test_401_is_not_retried(self):
        transport = self._transport()
        with patch.object(
            transport._client, "request", return_value=make_response(401, {"message": "bad"}),
        ) as mock_req:
            with pytest.raises(NotionSyncAuthError):
                transport.request("GET", "/users/me")
        assert mock_req.call_count == 1

    def test_network_error_then_success(self):
        sleeps: list[float] = []
        transport = self._transport(sleeps)
        side_effect = [httpx.ConnectError("refused"), make_response(200, {"ok": 1})]
        with patch.object(transport._client, "request", side_effect=side_effect):
            assert transport.request("GET", "/pages/p1") == {"ok": 1}
        assert sleeps == [1.0]

    def test_persistent_network_error(self):
        transport = self._transport()
        with patch.object(
            transport._client, "request",
            side_effect=httpx.ReadTimeout("slow", request=MagicMock()),
        ) as mock_req:
            with pytest.raises(NotionSyncNetworkError) as exc_info:
                transport.request("GET", "/pages/p1")
        assert mock_req.call_count == 4
        assert isinstance(exc_info.value.cause, httpx.ReadTimeout)

    def test_per_call_retry_budget(self):
        transport = self._transport()
        with patch.object(
            transport._client, "request", return_value=make_response(503),
        ) as mock_req:
            with pytest.raises(NotionSyncServerError):
                transport.request("GET", "/pages/p1", retry_budget=0)
        assert mock_req.call_count == 1

    def test_each_request_gets_a_fresh_budget(self):
        transport = self._transport()
        responses = [make_response(500)] * 3 + [make_response(200, {"n": 1})]
        with patch.object(
            transport._client, "request", side_effect=responses * 2,
        ) as mock_req:
            assert transport.request("GET", "/a") == {"n": 1}
            assert transport.request("GET", "/b") == {"n": 1}
        assert mock_req.call_count == 8


class TestNotionTransportDeadline:
    def test_expired_deadline_sends_nothing(self):
        clock = FakeClock()
        deadline = Deadline.after(0.0, clock=clock)
        transport = NotionTransport(make_config(), sleep=lambda s: None)
        with patch.object(transport._client, "request") as mock_req:
            with pytest.raises(NotionSyncDeadlineError):
                transport.request("GET", "/pages/p1", deadline=deadline)
        mock_req.assert_not_called()

    def test_backoff_past_deadline_aborts_retries(self):
        clock = FakeClock()

        def fake_sleep(seconds: float) -> None:
            clock.now += seconds

        deadline = Deadline.after(2.5, clock=clock)
        transport = NotionTransport(make_config(), sleep=fake_sleep)
        with patch.object(
            transport._client, "request", return_value=make_response(500),
        ) as mock_req:
            with pytest.raises(NotionSyncDeadlineError) as exc_info:
                transport.request("GET", "/pages/p1", deadline=deadline)
        # Attempt 1 backs off 1s; the 2s backoff after attempt 2 would overrun.
        assert mock_req.call_count == 2
        assert exc_info.value.context["next_delay"] == 2.0

    def test_deadline_not_reached(self):
        clock = FakeClock()
        transport = NotionTransport(make_config(), sleep=lambda s: None)
        with patch.object(
            transport._client, "request", return_value=make_response(200, {"ok": True}),
        ):
            result = transport.request(
                "GET", "/pages/p1", deadline=Deadline.after(10.0, clock=clock),
            )
        assert result == {"ok": True}


class TestNotionTransportPacing:
    def test_pacing_wait_goes_through_injected_sleep(self):
        sleeps: list[float] = []
        transport = NotionTransport(
            make_config(rate_limit_rps=1.0, rate_limit_burst=1), sleep=sleeps.append,
        )
        with patch.object(
            transport._client, "request", return_value=make_response(200, {}),
        ):
            transport.request("GET", "/a")
            transport.request("GET", "/b")
        assert sleeps == [pytest.approx(1.0, abs=0.2)]

    def test_pacing_wait_past_deadline_aborts(self):
        sleeps: list[float] = []
        clock = FakeClock()
        transport = NotionTransport(
            make_config(rate_limit_rps=1.0, rate_limit_burst=1), sleep=sleeps.append,
        )
        with patch.object(
            transport._client, "request", return_value=make_response(200, {}),
        ) as mock_req:
            transport.request("GET", "/a")
            with pytest.raises(NotionSyncDeadlineError):
                transport.request("GET", "/b", deadline=Deadline.after(0.5, clock=clock))
        assert mock_req.call_count == 1
        assert sleeps == []


class TestNotionTransportObservability:
    def test_metrics_emitted(self):
        hook = RecordingMetricsHook()
        transport = NotionTransport(make_config(metrics=hook), sleep=lambda s: None)
        responses = [make_response(429), make_response(200, {})]
        with patch.object(transport._client, "request", side_effect=responses):
            transport.request("GET", "/pages/p1")
        names = hook.names()
        assert names.count("notionsync.requests_total") == 2
        assert "notionsync.rate_limited_total" in names
        assert "notionsync.retries_total" in names
        assert any(name == "notionsync.request_duration_ms" for name, _ in hook.timings)

    def test_debug_dump_redacts_token(self, capsys):
        transport = NotionTransport(make_config(debug_dump_payload=True))
        body = {"echo": "Bearer test-token-1234"}
        with patch.object(transport._client, "request", return_value=make_response(200, body)):
            transport.request("POST", "/pages", json={"x": 1})
        err = capsys.readouterr().err
        assert "test-token-1234" not in err
        assert '"response_status": 200' in err


# ---------------------------------------------------------------------------
# AsyncNotionTransport
# ---------------------------------------------------------------------------


def make_async_transport(sleeps: list[float], **overrides: Any) -> AsyncNotionTransport:
    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return AsyncNotionTransport(make_config(**overrides), sleep=fake_sleep)


class TestAsyncNotionTransport:
    async def test_empty_token_raises_not_connected(self):
        with pytest.raises(NotionSyncNotConnectedError):
            AsyncNotionTransport(NotionSyncConfig(token=""))

    async def test_success(self):
        transport = make_async_transport([])
        with patch.object(
            transport._client, "request",
            new_callable=AsyncMock, return_value=make_response(200, {"id": "p"}),
        ):
            assert await transport.request("GET", "/pages/p") == {"id": "p"}
        await transport.close()

    async def test_non_json_success_body_raises_server_error(self):
        transport = make_async_transport([])
        with patch.object(
            transport._client, "request",
            new_callable=AsyncMock, return_value=make_raw_response(200, b"<html>gateway</html>"),
        ):
            with pytest.raises(NotionSyncServerError) as exc_info:
                await transport.request("GET", "/pages/p")
        assert exc_info.value.status == 200
        assert "gateway" in exc_info.value.message
        await transport.close()

    async def test_429_twice_then_success(self):
        sleeps: list[float] = []
        transport = make_async_transport(sleeps)
        responses = [make_response(429), make_response(429), make_response(200, {"ok": 1})]
        with patch.object(
            transport._client, "request", new_callable=AsyncMock, side_effect=responses,
        ) as mock_req:
            assert await transport.request("GET", "/x") == {"ok": 1}
        assert mock_req.call_count == 3
        assert sleeps == [1.0, 2.0]

    async def test_persistent_500(self):
        sleeps: list[float] = []
        transport = make_async_transport(sleeps)
        with patch.object(
            transport._client, "request",
            new_callable=AsyncMock, return_value=make_response(500),
        ) as mock_req:
            with pytest.raises(NotionSyncServerError):
                await transport.request("GET", "/x")
        assert mock_req.call_count == 4
        assert sleeps == [1.0, 2.0, 4.0]

    async def test_403_not_retried(self):
        transport = make_async_transport([])
        with patch.object(
            transport._client, "request",
            new_callable=AsyncMock, return_value=make_response(403, {"message": "no"}),
        ) as mock_req:
            with pytest.raises(NotionSyncPermissionError):
                await transport.request("GET", "/x")
        assert mock_req.call_count == 1

    async def test_network_error_exhausted(self):
        transport = make_async_transport([], retry_budget=1)
        with patch.object(
            transport._client, "request",
            new_callable=AsyncMock, side_effect=httpx.ConnectError("down"),
        ) as mock_req:
            with pytest.raises(NotionSyncNetworkError):
                await transport.request("GET", "/x")
        assert mock_req.call_count == 2

    async def test_deadline(self):
        clock = FakeClock()
        transport = make_async_transport([])
        with patch.object(transport._client, "request", new_callable=AsyncMock) as mock_req:
            with pytest.raises(NotionSyncDeadlineError):
                await transport.request(
                    "GET", "/x", deadline=Deadline.after(-1.0, clock=clock),
                )
        mock_req.assert_not_called()

    async def test_pacing_wait_goes_through_injected_sleep(self):
        sleeps: list[float] = []
        transport = make_async_transport(sleeps, rate_limit_rps=1.0, rate_limit_burst=1)
        with patch.object(
            transport._client, "request",
            new_callable=AsyncMock, return_value=make_response(200, {}),
        ):
            await transport.request("GET", "/a")
            await transport.request("GET", "/b")
        assert sleeps == [pytest.approx(1.0, abs=0.2)]
        await transport.close()

    async def test_pacing_wait_past_deadline_aborts(self):
        sleeps: list[float] = []
        clock = FakeClock()
        transport = make_async_transport(sleeps, rate_limit_rps=1.0, rate_limit_burst=1)
        with patch.object(
            transport._client, "request",
            new_callable=AsyncMock, return_value=make_response(200, {}),
        ) as mock_req:
            await transport.request("GET", "/a")
            with pytest.raises(NotionSyncDeadlineError):
                await transport.request(
                    "GET", "/b", deadline=Deadline.after(0.5, clock=clock),
                )
        assert mock_req.call_count == 1
        assert sleeps == []
        await transport.close()

    async def test_async_context_manager(self):
        async with make_async_transport([]) as transport:
            client = transport._client
        assert client.is_closed
