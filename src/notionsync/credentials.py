"""Per-user credential lookup.

Tokens live in an external store (a database row, a secrets manager,
...).  notionsync only reads them, through the :class:`CredentialStore`
protocol, and never persists them.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from notionsync.async_client import AsyncNotionSyncClient
from notionsync.client import NotionSyncClient
from notionsync.errors import NotionSyncNotConnectedError


@runtime_checkable
class CredentialStore(Protocol):
    """Maps a user identity to that user's Notion token."""

    def get_token(self, user_id: str) -> str | None:
        """Return the user's token, or ``None`` if they never connected."""
        ...


def _require_token(store: CredentialStore, user_id: str) -> str:
    token = store.get_token(user_id)
    if not token:
        raise NotionSyncNotConnectedError(
            "Notion is not connected for this user",
            context={"user_id": user_id},
        )
    return token


def client_for_user(store: CredentialStore, user_id: str, **kwargs: Any) -> NotionSyncClient:
    """Build a :class:`NotionSyncClient` with *user_id*'s token.

    Raises
    ------
    NotionSyncNotConnectedError
        If the store has no token for *user_id*.  No request is made.
    """
    return NotionSyncClient(_require_token(store, user_id), **kwargs)


def async_client_for_user(
    store: CredentialStore, user_id: str, **kwargs: Any,
) -> AsyncNotionSyncClient:
    """Async counterpart of :func:`client_for_user`."""
    return AsyncNotionSyncClient(_require_token(store, user_id), **kwargs)
