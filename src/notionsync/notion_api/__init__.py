"""notionsync.notion_api -- Notion API transport and endpoint wrappers.

This sub-package provides:

* :mod:`.retries` -- Retry policy, backoff and deadlines.
* :mod:`.rate_limit` -- Token bucket pacing (sync and async).
* :mod:`.transport` -- HTTP transport with auth, retries, and rate limiting.
* :mod:`.pagination` -- Cursor pagination walkers.
* :mod:`.pages`, :mod:`.databases`, :mod:`.blocks` -- Endpoint wrappers.
* :mod:`.parent` -- Database / data source target resolution.
"""

from __future__ import annotations

from .blocks import AsyncBlockAPI, BlockAPI
from .databases import AsyncDatabaseAPI, DatabaseAPI
from .pages import AsyncPageAPI, PageAPI
from .pagination import afetch_all, aiter_pages, fetch_all, iter_pages, iter_results
from .parent import AsyncParentResolver, ParentResolver
from .rate_limit import AsyncTokenBucket, TokenBucket
from .retries import Deadline, Fail, Retry, RetryPolicy
from .transport import AsyncNotionTransport, NotionTransport

__all__ = [
    "AsyncBlockAPI",
    "AsyncDatabaseAPI",
    "AsyncNotionTransport",
    "AsyncPageAPI",
    "AsyncParentResolver",
    "AsyncTokenBucket",
    "BlockAPI",
    "DatabaseAPI",
    "Deadline",
    "Fail",
    "NotionTransport",
    "PageAPI",
    "ParentResolver",
    "Retry",
    "RetryPolicy",
    "TokenBucket",
    "afetch_all",
    "aiter_pages",
    "fetch_all",
    "iter_pages",
    "iter_results",
]
