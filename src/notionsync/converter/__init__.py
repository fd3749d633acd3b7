"""Block tree to markdown / plain text conversion."""

from __future__ import annotations

from .notion_to_md import BlockConverter
from .plaintext import to_plaintext
from .rich_text import plain_text, render_rich_text, render_span

__all__ = [
    "BlockConverter",
    "plain_text",
    "render_rich_text",
    "render_span",
    "to_plaintext",
]
