"""Credential scrubbing for debug dumps.

:func:`redact` is applied to every request/response dump before it is
written to *stderr*:

* values under credential-like keys (``authorization``, ``token``,
  ``secret`` ...) are masked;
* the bearer token itself is scrubbed from every string in the tree;
* ``Bearer <tok>`` patterns are masked even when the token is unknown.
"""

from __future__ import annotations

import re
from typing import Any

# Case-insensitive substrings that mark a key as sensitive.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "cookie",
    "api_key",
})

_BEARER_RE = re.compile(r"(Bearer\s+)\S+")


def _mask(value: str, token: str | None) -> str:
    if token and token in value:
        tail = token[-4:] if len(token) >= 8 else ""
        value = value.replace(token, f"<redacted:...{tail}>" if tail else "<redacted>")
    return _BEARER_RE.sub(r"\1<redacted>", value)


def _is_sensitive(key: Any) -> bool:
    return isinstance(key, str) and any(p in key.lower() for p in _SENSITIVE_KEY_PATTERNS)


def _scrub(value: Any, token: str | None) -> Any:
    if isinstance(value, dict):
        return {
            k: ("<redacted>" if _is_sensitive(k) else _scrub(v, token))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_scrub(item, token) for item in value]
    if isinstance(value, str):
        return _mask(value, token)
    return value


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a scrubbed copy of *payload*; the input is never mutated.

    >>> redact({"Authorization": "Bearer ntn_abc123", "ok": 1})
    {'Authorization': '<redacted>', 'ok': 1}
    """
    return _scrub(payload, token)
