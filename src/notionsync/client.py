"""Synchronous Notion client.

:class:`NotionSyncClient` wires the transport, endpoint wrappers, parent
resolver, materializer and converters into one object.

Usage::

    from notionsync import NotionSyncClient

    with NotionSyncClient(token="secret_xxx") as client:
        result = client.page_to_markdown("<page_id>", deadline_seconds=60)
        print(result.plaintext)
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import Any

from notionsync.config import NotionSyncConfig
from notionsync.converter.notion_to_md import BlockConverter
from notionsync.converter.plaintext import to_plaintext
from notionsync.materializer import BlockTreeMaterializer
from notionsync.models import (
    Block,
    ConversionResult,
    ConversionWarning,
    ListResponse,
    MaterializedNode,
    PageExport,
    ParentRef,
)
from notionsync.notion_api.blocks import BlockAPI
from notionsync.notion_api.databases import DatabaseAPI
from notionsync.notion_api.pages import PageAPI
from notionsync.notion_api.parent import ParentResolver
from notionsync.notion_api.retries import Deadline
from notionsync.notion_api.transport import NotionTransport
from notionsync.observability import MetricsHook, NoopMetricsHook, get_logger
from notionsync.utils import content_hash, extract_page_title

log = get_logger("notionsync.client")


def _deadline(seconds: float | None) -> Deadline | None:
    return Deadline.after(seconds) if seconds is not None else None


def convert_nodes(
    nodes: Iterable[MaterializedNode],
    converter: BlockConverter,
    metrics: MetricsHook,
    warnings: list[ConversionWarning] | None = None,
) -> ConversionResult:
    """Render materialized *nodes* to markdown and plaintext."""
    start = time.monotonic()
    markdown = converter.convert_nodes(nodes)
    plaintext = to_plaintext(markdown)
    elapsed_ms = (time.monotonic() - start) * 1000
    metrics.timing(
        "notionsync.conversion_duration_ms", elapsed_ms, tags={"dialect": converter.dialect},
    )
    return ConversionResult(markdown=markdown, plaintext=plaintext, warnings=list(warnings or []))


def build_export(page: dict[str, Any], page_id: str, result: ConversionResult) -> PageExport:
    """Combine a page object and its conversion into a :class:`PageExport`."""
    return PageExport(
        page_id=page.get("id") or page_id,
        title=extract_page_title(page),
        markdown=result.markdown,
        plaintext=result.plaintext,
        content_hash=content_hash(result.markdown),
        last_edited_time=page.get("last_edited_time"),
        warnings=list(result.warnings),
    )


class NotionSyncClient:
    """Synchronous Notion client.

    Parameters
    ----------
    token:
        Notion integration token.  **Required**; an empty token raises
        :class:`~notionsync.errors.NotionSyncNotConnectedError`.
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`NotionSyncConfig`.
    """

    def __init__(self, token: str, **kwargs: Any) -> None:
        self._config = NotionSyncConfig(token=token, **kwargs)
        self._transport = NotionTransport(self._config)
        self._pages = PageAPI(self._transport)
        self._databases = DatabaseAPI(self._transport)
        self._blocks = BlockAPI(self._transport)
        self._resolver = ParentResolver(self._databases)
        self._converter = BlockConverter(self._config.markdown_dialect)
        self._metrics = self._config.metrics or NoopMetricsHook()

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def get_page(self, page_id: str) -> dict[str, Any]:
        return self._pages.retrieve(page_id)

    def create_page(
        self,
        parent: ParentRef,
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Create a page under *parent*.

        Database parents are resolved to their data source first, so the
        page always lands in a data source.
        """
        target = self._resolver.resolve(parent)
        log.debug(
            "Creating page",
            extra={"extra_fields": {"op": "create_page", "parent": target.id, "kind": target.kind}},
        )
        return self._pages.create(target, properties, children)

    def update_page_properties(self, page_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        return self._pages.update_properties(page_id, properties)

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------

    def get_database(self, database_id: str) -> dict[str, Any]:
        return self._databases.retrieve(database_id)

    def query_database(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        start_cursor: str | None = None,
    ) -> ListResponse[dict[str, Any]]:
        return self._databases.query(database_id, filter, sorts, start_cursor)

    def query_database_all(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
    ) -> list[dict[str, Any]]:
        return self._databases.query_all(database_id, filter, sorts)

    def resolve_parent(self, ref: ParentRef) -> ParentRef:
        return self._resolver.resolve(ref)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def get_block_children(
        self, block_id: str, start_cursor: str | None = None,
    ) -> ListResponse[dict[str, Any]]:
        return self._blocks.list_children(block_id, start_cursor)

    def get_all_block_children(self, block_id: str) -> list[dict[str, Any]]:
        return self._blocks.get_children(block_id)

    # ------------------------------------------------------------------
    # Export (Notion -> Markdown)
    # ------------------------------------------------------------------

    def blocks_to_markdown(
        self,
        blocks: Iterable[Block | dict[str, Any]],
        deadline_seconds: float | None = None,
    ) -> ConversionResult:
        """Materialize *blocks* (fetching nested children) and convert them.

        Failures below the given blocks are absorbed: the affected subtree
        is marked in the markdown and reported in ``warnings``.

        Raises
        ------
        NotionSyncDeadlineError
            If *deadline_seconds* elapse before the tree is fetched.
        """
        return self._convert(blocks, _deadline(deadline_seconds))

    def page_to_markdown(
        self, page_id: str, deadline_seconds: float | None = None,
    ) -> ConversionResult:
        """Fetch and convert the content of a page.

        Errors fetching the page's own children propagate to the caller.
        """
        deadline = _deadline(deadline_seconds)
        roots = self._blocks.get_children(page_id, deadline=deadline)
        return self._convert(roots, deadline)

    def export_page(self, page_id: str, deadline_seconds: float | None = None) -> PageExport:
        """Fetch a page and its content as a :class:`PageExport`."""
        deadline = _deadline(deadline_seconds)
        page = self._pages.retrieve(page_id, deadline=deadline)
        roots = self._blocks.get_children(page_id, deadline=deadline)
        return build_export(page, page_id, self._convert(roots, deadline))

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the HTTP transport."""
        self._transport.close()

    def __enter__(self) -> NotionSyncClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _convert(
        self, blocks: Iterable[Block | dict[str, Any]], deadline: Deadline | None,
    ) -> ConversionResult:
        # One materializer per conversion keeps warnings from leaking
        # between calls.
        materializer = BlockTreeMaterializer(self._blocks, self._config)
        nodes = materializer.materialize(blocks, deadline=deadline)
        return convert_nodes(nodes, self._converter, self._metrics, materializer.warnings)
