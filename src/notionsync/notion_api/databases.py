"""Database API wrappers for the Notion API.

A database (collection) may delegate its schema and rows to one or more
data sources (sub-collections); ``GET /databases/{id}`` lists them under
``data_sources``.
"""

from __future__ import annotations

from typing import Any

from notionsync.models import ListResponse

from .pagination import afetch_all, fetch_all
from .retries import Deadline
from .transport import AsyncNotionTransport, NotionTransport


def _query_body(
    filter: dict[str, Any] | None,
    sorts: list[dict[str, Any]] | None,
    start_cursor: str | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if filter:
        body["filter"] = filter
    if sorts:
        body["sorts"] = sorts
    if start_cursor:
        body["start_cursor"] = start_cursor
    return body


class DatabaseAPI:
    """Synchronous wrapper for the Notion Databases API."""

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def retrieve(self, database_id: str, *, deadline: Deadline | None = None) -> dict[str, Any]:
        """Retrieve a database object, including its ``data_sources``."""
        return self._transport.request("GET", f"/databases/{database_id}", deadline=deadline)

    def query(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        start_cursor: str | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> ListResponse[dict[str, Any]]:
        """Fetch one page of rows (``POST /databases/{id}/query``)."""
        data = self._transport.request(
            "POST",
            f"/databases/{database_id}/query",
            json=_query_body(filter, sorts, start_cursor),
            deadline=deadline,
        )
        return ListResponse.from_api(data)

    def query_all(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch every matching row, following cursors."""
        return fetch_all(
            lambda cursor: self.query(database_id, filter, sorts, cursor, deadline=deadline)
        )


class AsyncDatabaseAPI:
    """Asynchronous wrapper for the Notion Databases API."""

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(self, database_id: str, *, deadline: Deadline | None = None) -> dict[str, Any]:
        return await self._transport.request("GET", f"/databases/{database_id}", deadline=deadline)

    async def query(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        start_cursor: str | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> ListResponse[dict[str, Any]]:
        data = await self._transport.request(
            "POST",
            f"/databases/{database_id}/query",
            json=_query_body(filter, sorts, start_cursor),
            deadline=deadline,
        )
        return ListResponse.from_api(data)

    async def query_all(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[dict[str, Any]]:
        return await afetch_all(
            lambda cursor: self.query(database_id, filter, sorts, cursor, deadline=deadline)
        )
