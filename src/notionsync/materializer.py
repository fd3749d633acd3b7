"""Block tree materialization.

The API returns children one level at a time; :class:`BlockTreeMaterializer`
walks ``has_children`` flags depth-first and builds an immutable
:class:`~notionsync.models.MaterializedNode` tree.

A failure while fetching one block's children does not abort the walk:
that node is marked ``incomplete`` and a ``SUBTREE_INCOMPLETE`` warning is
recorded, while its siblings are still materialized.  Blocks whose children
lie beyond ``config.max_depth`` get a ``DEPTH_LIMIT_REACHED`` warning.
Deadline expiry and cancellation are not absorbed; they abort the whole operation.

:class:`AsyncBlockTreeMaterializer` fetches siblings concurrently (bounded
by ``config.max_concurrent_fetches``) but always returns them in their
original order.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any

from notionsync.config import NotionSyncConfig
from notionsync.errors import NotionSyncDeadlineError, NotionSyncError
from notionsync.models import Block, ConversionWarning, MaterializedNode
from notionsync.notion_api.blocks import AsyncBlockAPI, BlockAPI
from notionsync.notion_api.retries import Deadline
from notionsync.observability import NoopMetricsHook, get_logger

log = get_logger("notionsync.materializer")


def _as_block(raw: Block | dict[str, Any]) -> Block:
    return raw if isinstance(raw, Block) else Block.from_api(raw)


async def _gather_all(coros: Iterable[Awaitable[MaterializedNode]]) -> list[MaterializedNode]:
    """Await *coros* concurrently, returning results in argument order.

    If any of them raises (or the caller is cancelled), the rest are
    cancelled and awaited before the exception propagates, so no fetch
    starts after the error has surfaced.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class _MaterializerBase:
    def __init__(self, config: NotionSyncConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self.warnings: list[ConversionWarning] = []

    def _should_descend(self, block: Block, depth: int) -> bool:
        if not block.has_children or not block.id:
            return False
        max_depth = self._config.max_depth
        if max_depth is None or depth < max_depth:
            return True
        self._truncated(block, max_depth)
        return False

    def _truncated(self, block: Block, max_depth: int) -> None:
        context: dict[str, Any] = {"block_id": block.id, "block_type": block.type,
                                   "max_depth": max_depth}
        self.warnings.append(
            ConversionWarning(
                code="DEPTH_LIMIT_REACHED",
                message=f"Children of block {block.id} skipped: max_depth={max_depth} reached",
                context=context,
            )
        )
        log.debug("Depth limit reached", extra={"extra_fields": {**context, "op": "materialize"}})

    def _incomplete(self, block: Block, exc: Exception) -> MaterializedNode:
        """Record a failed child fetch and return the incomplete node."""
        message = exc.message if isinstance(exc, NotionSyncError) else str(exc)
        context: dict[str, Any] = {"block_id": block.id, "block_type": block.type}
        if isinstance(exc, NotionSyncError):
            context["error_code"] = str(exc.code)
        self.warnings.append(
            ConversionWarning(
                code="SUBTREE_INCOMPLETE",
                message=f"Children of block {block.id} could not be fetched: {message}",
                context=context,
            )
        )
        log.warning(
            "Subtree incomplete",
            extra={"extra_fields": {**context, "op": "materialize", "error": message}},
        )
        self._metrics.increment(
            "notionsync.subtree_incomplete_total", tags={"block_type": block.type},
        )
        return MaterializedNode(block=block, incomplete=True, error=message)


class BlockTreeMaterializer(_MaterializerBase):
    """Sequential, depth-first materializer over a :class:`BlockAPI`.

    Parameters
    ----------
    blocks:
        Endpoint wrapper used to list children.
    config:
        Supplies ``max_depth`` and the metrics hook.
    """

    def __init__(self, blocks: BlockAPI, config: NotionSyncConfig) -> None:
        super().__init__(config)
        self._blocks = blocks

    def materialize(
        self,
        root_blocks: Iterable[Block | dict[str, Any]],
        *,
        deadline: Deadline | None = None,
    ) -> list[MaterializedNode]:
        """Materialize every root block, in order.

        Raises
        ------
        NotionSyncDeadlineError
            If *deadline* expires during the walk.
        """
        return [self._node(_as_block(raw), 0, deadline) for raw in root_blocks]

    def _node(self, block: Block, depth: int, deadline: Deadline | None) -> MaterializedNode:
        if not self._should_descend(block, depth):
            return MaterializedNode(block=block)
        try:
            raw_children = self._blocks.get_children(block.id, deadline=deadline)
        except NotionSyncDeadlineError:
            raise
        except Exception as exc:
            return self._incomplete(block, exc)
        children = tuple(
            self._node(Block.from_api(raw), depth + 1, deadline) for raw in raw_children
        )
        return MaterializedNode(block=block, children=children)


class AsyncBlockTreeMaterializer(_MaterializerBase):
    """Concurrent materializer over an :class:`AsyncBlockAPI`.

    At most ``config.max_concurrent_fetches`` child listings are in flight
    at once across the whole tree.
    """

    def __init__(self, blocks: AsyncBlockAPI, config: NotionSyncConfig) -> None:
        super().__init__(config)
        self._blocks = blocks
        self._semaphore = asyncio.Semaphore(config.max_concurrent_fetches)

    async def materialize(
        self,
        root_blocks: Iterable[Block | dict[str, Any]],
        *,
        deadline: Deadline | None = None,
    ) -> list[MaterializedNode]:
        return await _gather_all(
            self._node(_as_block(raw), 0, deadline) for raw in root_blocks
        )

    async def _fetch_children(
        self, block: Block, deadline: Deadline | None,
    ) -> list[dict[str, Any]]:
        async with self._semaphore:
            return await self._blocks.get_children(block.id, deadline=deadline)

    async def _node(
        self, block: Block, depth: int, deadline: Deadline | None,
    ) -> MaterializedNode:
        if not self._should_descend(block, depth):
            return MaterializedNode(block=block)
        try:
            raw_children = await self._fetch_children(block, deadline)
        except NotionSyncDeadlineError:
            raise
        except Exception as exc:
            return self._incomplete(block, exc)
        children = await _gather_all(
            self._node(Block.from_api(raw), depth + 1, deadline) for raw in raw_children
        )
        return MaterializedNode(block=block, children=tuple(children))
