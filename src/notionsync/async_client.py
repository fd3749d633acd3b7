"""Asynchronous Notion client.

:class:`AsyncNotionSyncClient` mirrors :class:`NotionSyncClient` but every
I/O method is an ``async def`` coroutine, and nested children are fetched
concurrently.

Usage::

    import asyncio
    from notionsync import AsyncNotionSyncClient

    async def main():
        async with AsyncNotionSyncClient(token="secret_xxx") as client:
            export = await client.export_page("<page_id>")
            print(export.content_hash)

    asyncio.run(main())
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from notionsync.client import _deadline, build_export, convert_nodes
from notionsync.config import NotionSyncConfig
from notionsync.converter.notion_to_md import BlockConverter
from notionsync.materializer import AsyncBlockTreeMaterializer
from notionsync.models import Block, ConversionResult, ListResponse, PageExport, ParentRef
from notionsync.notion_api.blocks import AsyncBlockAPI
from notionsync.notion_api.databases import AsyncDatabaseAPI
from notionsync.notion_api.pages import AsyncPageAPI
from notionsync.notion_api.parent import AsyncParentResolver
from notionsync.notion_api.retries import Deadline
from notionsync.notion_api.transport import AsyncNotionTransport
from notionsync.observability import NoopMetricsHook


class AsyncNotionSyncClient:
    """Asynchronous Notion client.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`NotionSyncConfig`.
    """

    def __init__(self, token: str, **kwargs: Any) -> None:
        """Create client.  All kwargs are forwarded to NotionSyncConfig."""
        self._config = NotionSyncConfig(token=token, **kwargs)
        self._transport = AsyncNotionTransport(self._config)
        self._pages = AsyncPageAPI(self._transport)
        self._databases = AsyncDatabaseAPI(self._transport)
        self._blocks = AsyncBlockAPI(self._transport)
        self._resolver = AsyncParentResolver(self._databases)
        self._converter = BlockConverter(self._config.markdown_dialect)
        self._metrics = self._config.metrics or NoopMetricsHook()

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def get_page(self, page_id: str) -> dict[str, Any]:
        return await self._pages.retrieve(page_id)

    async def create_page(
        self,
        parent: ParentRef,
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Create a page under the data source *parent* resolves to."""
        target = await self._resolver.resolve(parent)
        return await self._pages.create(target, properties, children)

    async def update_page_properties(
        self, page_id: str, properties: dict[str, Any],
    ) -> dict[str, Any]:
        return await self._pages.update_properties(page_id, properties)

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------

    async def get_database(self, database_id: str) -> dict[str, Any]:
        return await self._databases.retrieve(database_id)

    async def query_database(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        start_cursor: str | None = None,
    ) -> ListResponse[dict[str, Any]]:
        return await self._databases.query(database_id, filter, sorts, start_cursor)

    async def query_database_all(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
    ) -> list[dict[str, Any]]:
        return await self._databases.query_all(database_id, filter, sorts)

    async def resolve_parent(self, ref: ParentRef) -> ParentRef:
        return await self._resolver.resolve(ref)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    async def get_block_children(
        self, block_id: str, start_cursor: str | None = None,
    ) -> ListResponse[dict[str, Any]]:
        return await self._blocks.list_children(block_id, start_cursor)

    async def get_all_block_children(self, block_id: str) -> list[dict[str, Any]]:
        return await self._blocks.get_children(block_id)

    # ------------------------------------------------------------------
    # Export (Notion -> Markdown)
    # ------------------------------------------------------------------

    async def blocks_to_markdown(
        self,
        blocks: Iterable[Block | dict[str, Any]],
        deadline_seconds: float | None = None,
    ) -> ConversionResult:
        return await self._convert(blocks, _deadline(deadline_seconds))

    async def page_to_markdown(
        self, page_id: str, deadline_seconds: float | None = None,
    ) -> ConversionResult:
        """Fetch and convert the content of a page.

        Parameters
        ----------
        page_id:
            The Notion page ID.
        deadline_seconds:
            Abort with :class:`~notionsync.errors.NotionSyncDeadlineError`
            once this many seconds have elapsed.  ``None`` means no limit.
        """
        deadline = _deadline(deadline_seconds)
        roots = await self._blocks.get_children(page_id, deadline=deadline)
        return await self._convert(roots, deadline)

    async def export_page(
        self, page_id: str, deadline_seconds: float | None = None,
    ) -> PageExport:
        deadline = _deadline(deadline_seconds)
        page = await self._pages.retrieve(page_id, deadline=deadline)
        roots = await self._blocks.get_children(page_id, deadline=deadline)
        return build_export(page, page_id, await self._convert(roots, deadline))

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP transport."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncNotionSyncClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _convert(
        self, blocks: Iterable[Block | dict[str, Any]], deadline: Deadline | None,
    ) -> ConversionResult:
        materializer = AsyncBlockTreeMaterializer(self._blocks, self._config)
        nodes = await materializer.materialize(blocks, deadline=deadline)
        return convert_nodes(nodes, self._converter, self._metrics, materializer.warnings)
