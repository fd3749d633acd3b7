"""Materialized block tree to markdown.

:class:`BlockConverter` turns :class:`~notionsync.models.MaterializedNode`
trees into markdown fragments.  Every logical line ends with ``\\n`` and
nesting indents by two spaces per level.

Usage::

    from notionsync.converter import BlockConverter

    md = BlockConverter(dialect="gfm").convert_nodes(nodes)

Dispatch is by payload variant; any block type without a dedicated variant
arrives as :class:`~notionsync.models.UnknownPayload` and is rendered from
its rich text when it has some, or as an HTML comment naming the type.
Conversion never raises for unknown content.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from notionsync.config import MarkdownDialect
from notionsync.models import (
    BlockPayload,
    CalloutPayload,
    ChildPagePayload,
    CodePayload,
    DividerPayload,
    MaterializedNode,
    TextPayload,
    ToDoPayload,
    UnknownPayload,
    parse_rich_text,
)

from .rich_text import plain_text, render_rich_text

INDENT = "  "

DEFAULT_CALLOUT_ICON = "\N{ELECTRIC LIGHT BULB}"

_HEADING_PREFIXES: dict[str, str] = {
    "heading_1": "#",
    "heading_2": "##",
    "heading_3": "###",
}

_LIST_PREFIXES: dict[str, str] = {
    "bulleted_list_item": "-",
    "numbered_list_item": "1.",
}


def _quote_lines(indent: str, text: str) -> str:
    """Prefix *text* with ``> `` and keep embedded newlines quoted."""
    return f"{indent}> " + text.replace("\n", f"\n{indent}> ") + "\n"


def _looks_like_rich_text(value: Any) -> bool:
    return (
        isinstance(value, list)
        and bool(value)
        and all(isinstance(seg, dict) and "plain_text" in seg for seg in value)
    )


def _find_rich_text(data: dict[str, Any]) -> list[dict[str, Any]] | None:
    """Return ``rich_text`` or the first rich-text-shaped field of *data*."""
    if _looks_like_rich_text(data.get("rich_text")):
        return data["rich_text"]
    for value in data.values():
        if _looks_like_rich_text(value):
            return value
    return None


class BlockConverter:
    """Convert materialized Notion blocks to markdown.

    Parameters
    ----------
    dialect:
        ``"gfm"`` renders toggles as ``<details>`` and underline as
        ``<u>``; ``"commonmark"`` renders toggles as list items and drops
        underline/strikethrough markers.
    """

    def __init__(self, dialect: MarkdownDialect = "gfm") -> None:
        self.dialect = dialect
        self._renderers: dict[type, Callable[[MaterializedNode, int], str]] = {
            TextPayload: self._render_text_block,
            ToDoPayload: self._render_to_do,
            CalloutPayload: self._render_callout,
            CodePayload: self._render_code,
            DividerPayload: self._render_divider,
            ChildPagePayload: self._render_child_page,
            UnknownPayload: self._render_unknown,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def convert(self, node: MaterializedNode, indent_level: int = 0) -> str:
        """Convert one node and its materialized children."""
        if node.block.archived:
            return ""
        render = self._renderers.get(type(node.block.payload), self._render_unknown)
        return render(node, indent_level)

    def convert_nodes(self, nodes: Iterable[MaterializedNode], indent_level: int = 0) -> str:
        """Convert sibling nodes in order and concatenate the fragments."""
        return "".join(self.convert(node, indent_level) for node in nodes)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _text(self, payload: BlockPayload) -> str:
        return render_rich_text(getattr(payload, "rich_text", ()), self.dialect)

    def _children(self, node: MaterializedNode, indent_level: int) -> str:
        """Children at *indent_level*, followed by the incomplete-subtree
        marker when fetching them failed."""
        out = self.convert_nodes(node.children, indent_level)
        if node.incomplete:
            out += (
                f"{INDENT * indent_level}<!-- Incomplete subtree: children of block "
                f"{node.block.id} could not be fetched -->\n"
            )
        return out

    # ------------------------------------------------------------------
    # Block renderers
    # ------------------------------------------------------------------

    def _render_text_block(self, node: MaterializedNode, indent_level: int) -> str:
        block = node.block
        indent = INDENT * indent_level
        text = self._text(block.payload)

        if block.type == "toggle":
            return self._render_toggle(node, indent_level, text)

        if block.type in _LIST_PREFIXES:
            line = f"{indent}{_LIST_PREFIXES[block.type]} {text}\n"
        elif not text:
            line = ""
        elif block.type in _HEADING_PREFIXES:
            line = f"{indent}{_HEADING_PREFIXES[block.type]} {text}\n"
        elif block.type == "quote":
            line = _quote_lines(indent, text)
        else:
            line = f"{indent}{text}\n"

        return line + self._children(node, indent_level + 1)

    def _render_toggle(self, node: MaterializedNode, indent_level: int, text: str) -> str:
        indent = INDENT * indent_level
        if self.dialect == "commonmark":
            return f"{indent}- {text}\n" + self._children(node, indent_level + 1)
        return (
            f"{indent}<details>\n"
            f"{indent}<summary>{text}</summary>\n"
            + self._children(node, indent_level + 1)
            + f"{indent}</details>\n"
        )

    def _render_to_do(self, node: MaterializedNode, indent_level: int) -> str:
        payload = node.block.payload
        assert isinstance(payload, ToDoPayload)
        checkbox = "[x]" if payload.checked else "[ ]"
        line = f"{INDENT * indent_level}{checkbox} {self._text(payload)}\n"
        return line + self._children(node, indent_level + 1)

    def _render_callout(self, node: MaterializedNode, indent_level: int) -> str:
        payload = node.block.payload
        assert isinstance(payload, CalloutPayload)
        text = self._text(payload)
        line = ""
        if text:
            icon = payload.icon or DEFAULT_CALLOUT_ICON
            line = _quote_lines(INDENT * indent_level, f"{icon} {text}")
        return line + self._children(node, indent_level + 1)

    def _render_code(self, node: MaterializedNode, indent_level: int) -> str:
        payload = node.block.payload
        assert isinstance(payload, CodePayload)
        # Code is literal: annotations inside a code block are meaningless.
        code = plain_text(payload.rich_text)
        if not code:
            return self._children(node, indent_level + 1)
        indent = INDENT * indent_level
        body = "\n".join(f"{indent}{line}" if line else line for line in code.split("\n"))
        return (
            f"{indent}```{payload.language}\n{body}\n{indent}```\n"
            + self._children(node, indent_level + 1)
        )

    def _render_divider(self, node: MaterializedNode, indent_level: int) -> str:
        return f"{INDENT * indent_level}---\n" + self._children(node, indent_level + 1)

    def _render_child_page(self, node: MaterializedNode, indent_level: int) -> str:
        payload = node.block.payload
        assert isinstance(payload, ChildPagePayload)
        # Subpage content is not inlined; the link stands in for it.
        return f"{INDENT * indent_level}[{payload.title}](notion://{node.block.id})\n"

    def _render_unknown(self, node: MaterializedNode, indent_level: int) -> str:
        payload = node.block.payload
        data = payload.data if isinstance(payload, UnknownPayload) else {}
        indent = INDENT * indent_level

        segments = _find_rich_text(data)
        text = render_rich_text(parse_rich_text(segments), self.dialect) if segments else ""
        if text:
            line = f"{indent}{text}\n"
        else:
            line = f"{indent}<!-- Block type: {node.block.type} -->\n"
        return line + self._children(node, indent_level + 1)
