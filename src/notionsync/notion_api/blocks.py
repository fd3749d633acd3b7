"""Block API wrappers for the Notion API.

Provides :class:`BlockAPI` (sync) and :class:`AsyncBlockAPI` (async) thin
wrappers around ``GET /blocks/{id}/children``.  ``list_children`` returns
one page; ``get_children`` follows cursors to the end.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from notionsync.models import ListResponse

from .pagination import afetch_all, fetch_all, iter_results
from .retries import Deadline
from .transport import AsyncNotionTransport, NotionTransport

# Largest page the API will return.
PAGE_SIZE = 100


def _children_params(start_cursor: str | None) -> dict[str, Any]:
    params: dict[str, Any] = {"page_size": PAGE_SIZE}
    if start_cursor:
        params["start_cursor"] = start_cursor
    return params


class BlockAPI:
    """Synchronous wrapper for the Notion Blocks API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def list_children(
        self,
        block_id: str,
        start_cursor: str | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> ListResponse[dict[str, Any]]:
        """Fetch one page of a block's (or page's) children."""
        data = self._transport.request(
            "GET",
            f"/blocks/{block_id}/children",
            params=_children_params(start_cursor),
            deadline=deadline,
        )
        return ListResponse.from_api(data)

    def get_children(
        self, block_id: str, *, deadline: Deadline | None = None,
    ) -> list[dict[str, Any]]:
        """Retrieve all children of a block, auto-paginating.

        Returns
        -------
        list[dict]
            All child block objects in order.
        """
        return fetch_all(
            lambda cursor: self.list_children(block_id, cursor, deadline=deadline)
        )

    def iter_children(
        self, block_id: str, *, deadline: Deadline | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield children lazily, one API page at a time."""
        return iter_results(
            lambda cursor: self.list_children(block_id, cursor, deadline=deadline)
        )


class AsyncBlockAPI:
    """Asynchronous wrapper for the Notion Blocks API.

    Mirrors :class:`BlockAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def list_children(
        self,
        block_id: str,
        start_cursor: str | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> ListResponse[dict[str, Any]]:
        data = await self._transport.request(
            "GET",
            f"/blocks/{block_id}/children",
            params=_children_params(start_cursor),
            deadline=deadline,
        )
        return ListResponse.from_api(data)

    async def get_children(
        self, block_id: str, *, deadline: Deadline | None = None,
    ) -> list[dict[str, Any]]:
        return await afetch_all(
            lambda cursor: self.list_children(block_id, cursor, deadline=deadline)
        )
