"""Error hierarchy for the notionsync client.

Every public error class inherits from :class:`NotionSyncError`.  Each
carries a machine-readable ``code`` (from :class:`ErrorCode`), a
human-readable ``message``, an optional structured ``context`` dict, and
an optional ``cause`` (chained exception).

Errors raised for an HTTP response additionally derive from
:class:`NotionSyncAPIError`, which exposes the response ``status``, the
Notion error ``notion_code`` and, for rate limiting, the
``retry_after_seconds`` the server asked for.

Taxonomy
--------

* Retried by the transport, then surfaced:
  :class:`NotionSyncNetworkError`, :class:`NotionSyncServerError`,
  :class:`NotionSyncRateLimitError`.
* Never retried: :class:`NotionSyncClientError` and its subclasses.
* Raised before any I/O: :class:`NotionSyncNotConnectedError`.
* Cancellation: :class:`NotionSyncDeadlineError`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the client can raise."""

    CLIENT_ERROR = "CLIENT_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    NOT_CONNECTED = "NOT_CONNECTED"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class NotionSyncError(Exception):
    """Base exception for all notionsync errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` identifying the error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# HTTP response errors
# ---------------------------------------------------------------------------

class NotionSyncAPIError(NotionSyncError):
    """The Notion API answered with a non-2xx status.

    Attributes
    ----------
    status:
        HTTP status code of the final response.
    notion_code:
        The ``code`` field of the Notion error body (``"object_not_found"``,
        ``"rate_limit_exceeded"``, ...), or ``None`` when absent.
    retry_after_seconds:
        Delay the server asked for before retrying, if any.
    """

    def __init__(
        self,
        message: str,
        status: int,
        notion_code: str | None = None,
        retry_after_seconds: float | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.CLIENT_ERROR,
    ) -> None:
        self.status: int = status
        self.notion_code: str | None = notion_code
        self.retry_after_seconds: float | None = retry_after_seconds
        ctx = {"status_code": status, "notion_code": notion_code}
        ctx.update(context or {})
        super().__init__(code=code, message=message, context=ctx, cause=cause)


class NotionSyncClientError(NotionSyncAPIError):
    """A 4xx response other than 429.  Client errors are never retried."""


class NotionSyncAuthError(NotionSyncClientError):
    """401: the integration token is invalid, expired or revoked."""

    def __init__(self, message: str, status: int = 401, **kwargs: Any) -> None:
        super().__init__(message, status, code=ErrorCode.AUTH_ERROR, **kwargs)


class NotionSyncPermissionError(NotionSyncClientError):
    """403: the integration lacks access to the resource."""

    def __init__(self, message: str, status: int = 403, **kwargs: Any) -> None:
        super().__init__(message, status, code=ErrorCode.PERMISSION_ERROR, **kwargs)


class NotionSyncNotFoundError(NotionSyncClientError):
    """404: the page, database or block does not exist (or is not shared)."""

    def __init__(self, message: str, status: int = 404, **kwargs: Any) -> None:
        super().__init__(message, status, code=ErrorCode.NOT_FOUND, **kwargs)


class NotionSyncRateLimitError(NotionSyncAPIError):
    """429 persisted after the retry budget was spent.

    ``retry_after_seconds`` holds the last ``Retry-After`` value, or the
    computed backoff when the server sent none.
    """

    def __init__(
        self,
        message: str,
        retry_after_seconds: float | None = None,
        notion_code: str | None = "rate_limit_exceeded",
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            429,
            notion_code=notion_code,
            retry_after_seconds=retry_after_seconds,
            code=ErrorCode.RATE_LIMITED,
            **kwargs,
        )


class NotionSyncServerError(NotionSyncAPIError):
    """A 5xx response persisted after the retry budget was spent.

    Context keys: ``attempts``, ``body``.
    """

    def __init__(self, message: str, status: int, **kwargs: Any) -> None:
        super().__init__(message, status, code=ErrorCode.SERVER_ERROR, **kwargs)


# ---------------------------------------------------------------------------
# Non-HTTP errors
# ---------------------------------------------------------------------------

class NotionSyncNetworkError(NotionSyncError):
    """A transport-level failure (timeout, DNS, connection reset) persisted
    after the retry budget was spent.

    Context keys: ``path``, ``attempts``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class NotionSyncNotConnectedError(NotionSyncError):
    """No credential is available for the requested user.

    Context keys: ``user_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NOT_CONNECTED,
            message=message,
            context=context,
            cause=cause,
        )


class NotionSyncDeadlineError(NotionSyncError):
    """The caller's deadline expired; pending retries were abandoned.

    Context keys: ``path``, ``attempt``, ``remaining_seconds``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DEADLINE_EXCEEDED,
            message=message,
            context=context,
            cause=cause,
        )
