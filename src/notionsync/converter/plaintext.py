"""Markdown to search-friendly plain text.

:func:`to_plaintext` strips the markup :class:`BlockConverter` emits:
HTML comments and tags, fenced and inline code, emphasis markers, link
syntax, and line prefixes for headings, lists, quotes and checkboxes.

The strip pass is applied until the text stops changing, so the function
is idempotent: ``to_plaintext(to_plaintext(md)) == to_plaintext(md)``.
Every substitution shortens or preserves the text, so the loop ends.
"""

from __future__ import annotations

import re

_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_HTML_TAG = re.compile(r"<[^>]+>")
_FENCED_CODE = re.compile(r"```.*?```", re.DOTALL)
_INLINE_CODE = re.compile(r"`([^`\n]+)`")
_BOLD = re.compile(r"\*\*(.+?)\*\*")
_ITALIC = re.compile(r"\*([^*\n]+)\*")
_STRIKE = re.compile(r"~~(.+?)~~")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")

_HEADING = re.compile(r"^[ \t]*#{1,6}[ \t]+", re.MULTILINE)
_BULLET = re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE)
_NUMBERED = re.compile(r"^[ \t]*\d+\.[ \t]+", re.MULTILINE)
_QUOTE = re.compile(r"^[ \t]*>[ \t]?", re.MULTILINE)
_CHECKBOX = re.compile(r"^[ \t]*\[[ xX]\](?:[ \t]+|$)", re.MULTILINE)
_RULE = re.compile(r"^[ \t]*-{3,}[ \t]*$", re.MULTILINE)
_BLANK_RUN = re.compile(r"\n{3,}")


def _strip_once(text: str) -> str:
    text = _HTML_COMMENT.sub("", text)
    text = _HTML_TAG.sub("", text)
    # Fenced blocks go before inline code so their backticks are not
    # mistaken for inline spans.
    text = _FENCED_CODE.sub("", text)
    text = _INLINE_CODE.sub(r"\1", text)
    text = _BOLD.sub(r"\1", text)
    text = _ITALIC.sub(r"\1", text)
    text = _STRIKE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _RULE.sub("", text)
    text = _HEADING.sub("", text)
    text = _CHECKBOX.sub("", text)
    text = _BULLET.sub("", text)
    text = _NUMBERED.sub("", text)
    text = _QUOTE.sub("", text)
    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()


def to_plaintext(markdown: str) -> str:
    """Strip markdown syntax from *markdown*.

    >>> to_plaintext("# **Title**\\nHello *world*\\n")
    'Title\\nHello world'
    """
    text = markdown
    while True:
        stripped = _strip_once(text)
        if stripped == text:
            return stripped
        text = stripped
