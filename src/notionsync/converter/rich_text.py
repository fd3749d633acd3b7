"""Inline rendering: rich text spans to markdown.

Annotation wraps are applied in one fixed order, innermost first::

    code -> bold -> italic -> strikethrough -> underline -> link

regardless of which flags are set, so the output is a pure function of the
span.  ``bold + code`` on ``text`` therefore renders as ``**`text`**``.

Span text is emitted verbatim (no escaping): the output is a read-only
rendition meant to round-trip through :func:`~notionsync.converter.plaintext.to_plaintext`.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from notionsync.config import MarkdownDialect
from notionsync.models import RichTextSpan, parse_rich_text


def escape_url(href: str) -> str:
    """Percent-encode parentheses so *href* cannot close a markdown link early."""
    return href.replace("(", "%28").replace(")", "%29")


def _wrap(text: str, marker: str) -> str:
    return f"{marker}{text}{marker}"


def render_span(span: RichTextSpan, dialect: MarkdownDialect = "gfm") -> str:
    """Render a single span."""
    if span.kind == "equation":
        text = f"${span.expression if span.expression is not None else span.plain_text}$"
    else:
        text = span.plain_text

    # Wrapping blank text would emit stray markers such as "****".
    if text.strip():
        ann = span.annotations
        if ann.code:
            text = _wrap(text, "`")
        if ann.bold:
            text = _wrap(text, "**")
        if ann.italic:
            text = _wrap(text, "*")
        if ann.strikethrough and dialect == "gfm":
            text = _wrap(text, "~~")
        if ann.underline and dialect == "gfm":
            text = f"<u>{text}</u>"

    if span.href:
        text = f"[{text}]({escape_url(span.href)})"
    return text


def render_rich_text(
    spans: Iterable[RichTextSpan | dict[str, Any]],
    dialect: MarkdownDialect = "gfm",
) -> str:
    """Render an ordered sequence of spans to inline markdown.

    Parameters
    ----------
    spans:
        :class:`RichTextSpan` objects, or raw Notion ``rich_text`` dicts.
    dialect:
        ``"gfm"`` or ``"commonmark"``.  CommonMark has neither underline
        nor strikethrough, so those flags leave the text unwrapped.

    Returns
    -------
    str
        The concatenated markdown, in span order.
    """
    parsed = [
        span if isinstance(span, RichTextSpan) else parse_rich_text([span])[0]
        for span in spans
    ]
    return "".join(render_span(span, dialect) for span in parsed)


def plain_text(spans: Iterable[RichTextSpan]) -> str:
    """Concatenate span text without any markup."""
    return "".join(span.plain_text for span in spans)
