"""Page API wrappers for the Notion API.

Provides :class:`PageAPI` (sync) and :class:`AsyncPageAPI` (async) thin
wrappers around the ``/pages`` endpoints.  Both delegate all HTTP concerns
(auth, retries, rate limiting) to the underlying transport.
"""

from __future__ import annotations

from typing import Any

from notionsync.models import ParentRef

from .retries import Deadline
from .transport import AsyncNotionTransport, NotionTransport


def _create_body(
    parent: ParentRef | dict[str, Any],
    properties: dict[str, Any],
    children: list[dict[str, Any]] | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "parent": parent.to_payload() if isinstance(parent, ParentRef) else parent,
        "properties": properties,
    }
    if children is not None:
        body["children"] = children
    return body


class PageAPI:
    """Synchronous wrapper for the Notion Pages API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def retrieve(self, page_id: str, *, deadline: Deadline | None = None) -> dict[str, Any]:
        """Retrieve a page object (``GET /pages/{id}``)."""
        return self._transport.request("GET", f"/pages/{page_id}", deadline=deadline)

    def create(
        self,
        parent: ParentRef | dict[str, Any],
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> dict[str, Any]:
        """Create a page (``POST /pages``).

        Parameters
        ----------
        parent:
            A resolved :class:`ParentRef`, or a raw ``parent`` object such
            as ``{"page_id": "..."}``.
        properties:
            Property values keyed by property name; the schema belongs to
            the caller.
        children:
            Optional block objects to use as initial page content.
        """
        return self._transport.request(
            "POST", "/pages", json=_create_body(parent, properties, children), deadline=deadline,
        )

    def update_properties(
        self,
        page_id: str,
        properties: dict[str, Any],
        *,
        deadline: Deadline | None = None,
    ) -> dict[str, Any]:
        """Update page properties (``PATCH /pages/{id}``).

        Properties omitted from *properties* are left untouched.
        """
        return self._transport.request(
            "PATCH", f"/pages/{page_id}", json={"properties": properties}, deadline=deadline,
        )


class AsyncPageAPI:
    """Asynchronous wrapper for the Notion Pages API.

    Mirrors :class:`PageAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(self, page_id: str, *, deadline: Deadline | None = None) -> dict[str, Any]:
        return await self._transport.request("GET", f"/pages/{page_id}", deadline=deadline)

    async def create(
        self,
        parent: ParentRef | dict[str, Any],
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "POST", "/pages", json=_create_body(parent, properties, children), deadline=deadline,
        )

    async def update_properties(
        self,
        page_id: str,
        properties: dict[str, Any],
        *,
        deadline: Deadline | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "PATCH", f"/pages/{page_id}", json={"properties": properties}, deadline=deadline,
        )
