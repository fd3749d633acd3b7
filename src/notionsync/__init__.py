"""notionsync: resilient Notion API client and block-to-markdown exporter.

Public re-exports
-----------------

* **Clients:** :class:`NotionSyncClient`, :class:`AsyncNotionSyncClient`,
  :func:`client_for_user`, :func:`async_client_for_user`
* **Configuration:** :class:`NotionSyncConfig`
* **Errors:** Every :class:`NotionSyncError` subclass and :class:`ErrorCode`
* **Models:** Blocks, payload variants, and result dataclasses

Usage::

    from notionsync import NotionSyncClient

    client = NotionSyncClient(token="secret_xxx")
    export = client.export_page("<page_id>")
    print(export.title, export.content_hash)
"""

from __future__ import annotations

# ── Clients ────────────────────────────────────────────────────────────
from notionsync.async_client import AsyncNotionSyncClient
from notionsync.client import NotionSyncClient

# ── Configuration ───────────────────────────────────────────────────────
from notionsync.config import NotionSyncConfig

# ── Conversion ──────────────────────────────────────────────────────────
from notionsync.converter import BlockConverter, render_rich_text, to_plaintext
from notionsync.credentials import CredentialStore, async_client_for_user, client_for_user

# ── Errors ──────────────────────────────────────────────────────────────
from notionsync.errors import (
    ErrorCode,
    NotionSyncAPIError,
    NotionSyncAuthError,
    NotionSyncClientError,
    NotionSyncDeadlineError,
    NotionSyncError,
    NotionSyncNetworkError,
    NotionSyncNotConnectedError,
    NotionSyncNotFoundError,
    NotionSyncPermissionError,
    NotionSyncRateLimitError,
    NotionSyncServerError,
)
from notionsync.materializer import AsyncBlockTreeMaterializer, BlockTreeMaterializer

# ── Models ──────────────────────────────────────────────────────────────
from notionsync.models import (
    Annotations,
    Block,
    CalloutPayload,
    ChildPagePayload,
    CodePayload,
    ConversionResult,
    ConversionWarning,
    DividerPayload,
    ListResponse,
    MaterializedNode,
    PageExport,
    ParentRef,
    RichTextSpan,
    TextPayload,
    ToDoPayload,
    UnknownPayload,
)
from notionsync.notion_api.retries import Deadline, RetryPolicy

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Clients
    "NotionSyncClient",
    "AsyncNotionSyncClient",
    "CredentialStore",
    "client_for_user",
    "async_client_for_user",
    # Configuration
    "NotionSyncConfig",
    "RetryPolicy",
    "Deadline",
    # Conversion
    "BlockConverter",
    "BlockTreeMaterializer",
    "AsyncBlockTreeMaterializer",
    "render_rich_text",
    "to_plaintext",
    # Errors
    "NotionSyncError",
    "ErrorCode",
    "NotionSyncAPIError",
    "NotionSyncClientError",
    "NotionSyncAuthError",
    "NotionSyncPermissionError",
    "NotionSyncNotFoundError",
    "NotionSyncRateLimitError",
    "NotionSyncServerError",
    "NotionSyncNetworkError",
    "NotionSyncNotConnectedError",
    "NotionSyncDeadlineError",
    # Models
    "Annotations",
    "RichTextSpan",
    "Block",
    "TextPayload",
    "ToDoPayload",
    "CalloutPayload",
    "CodePayload",
    "DividerPayload",
    "ChildPagePayload",
    "UnknownPayload",
    "MaterializedNode",
    "ListResponse",
    "ParentRef",
    "ConversionWarning",
    "ConversionResult",
    "PageExport",
]
