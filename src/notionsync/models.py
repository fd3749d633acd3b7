"""Public data models for the notionsync client.

Block payloads form a closed set of variants (one dataclass per supported
block shape) plus :class:`UnknownPayload`, which carries the raw data of
any block type the converter does not know.  :meth:`Block.from_api`
builds the variant from an API dict without mutating it.

All tree types are frozen: a :class:`MaterializedNode` wraps a
:class:`Block` and the tuple of its already-materialized children.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar, Union

T = TypeVar("T")

# Block types whose payload is just a rich_text array.
TEXT_BLOCK_TYPES: frozenset[str] = frozenset({
    "paragraph",
    "heading_1",
    "heading_2",
    "heading_3",
    "bulleted_list_item",
    "numbered_list_item",
    "quote",
    "toggle",
})


# ---------------------------------------------------------------------------
# Rich text
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Annotations:
    """Stylistic flags attached to one rich text span."""

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    code: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> Annotations:
        data = data or {}
        return cls(
            bold=bool(data.get("bold", False)),
            italic=bool(data.get("italic", False)),
            strikethrough=bool(data.get("strikethrough", False)),
            underline=bool(data.get("underline", False)),
            code=bool(data.get("code", False)),
        )


@dataclass(frozen=True)
class RichTextSpan:
    """One run of text inside a block.

    Attributes
    ----------
    kind:
        ``"text"``, ``"mention"`` or ``"equation"``.
    plain_text:
        The span's text without any markup.
    href:
        Link target, taken from ``href`` or the text-level ``link.url``.
    annotations:
        Bold/italic/strikethrough/underline/code flags.
    expression:
        LaTeX source for equation spans.
    """

    plain_text: str
    kind: Literal["text", "mention", "equation"] = "text"
    href: str | None = None
    annotations: Annotations = field(default_factory=Annotations)
    expression: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RichTextSpan:
        kind = data.get("type", "text")
        if kind not in ("text", "mention", "equation"):
            kind = "text"
        text_obj = data.get("text") or {}
        # API responses carry plain_text; locally built spans only text.content.
        plain_text = data.get("plain_text") or text_obj.get("content", "") or ""
        link = text_obj.get("link") or {}
        href = data.get("href") or link.get("url") or None

        expression = None
        if kind == "equation":
            expression = (data.get("equation") or {}).get("expression", plain_text)

        return cls(
            plain_text=plain_text,
            kind=kind,
            href=href,
            annotations=Annotations.from_api(data.get("annotations")),
            expression=expression,
        )


def parse_rich_text(segments: list[dict[str, Any]] | None) -> tuple[RichTextSpan, ...]:
    """Parse a Notion ``rich_text`` array, preserving span order."""
    return tuple(RichTextSpan.from_api(seg) for seg in segments or [])


# ---------------------------------------------------------------------------
# Block payload variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextPayload:
    """Paragraphs, headings, list items, quotes and toggles."""

    rich_text: tuple[RichTextSpan, ...] = ()


@dataclass(frozen=True)
class ToDoPayload:
    rich_text: tuple[RichTextSpan, ...] = ()
    checked: bool = False


@dataclass(frozen=True)
class CalloutPayload:
    rich_text: tuple[RichTextSpan, ...] = ()
    icon: str | None = None


@dataclass(frozen=True)
class CodePayload:
    rich_text: tuple[RichTextSpan, ...] = ()
    language: str = ""


@dataclass(frozen=True)
class DividerPayload:
    pass


@dataclass(frozen=True)
class ChildPagePayload:
    title: str = "Untitled"


@dataclass(frozen=True)
class UnknownPayload:
    """Catch-all for block types without a dedicated variant.

    ``data`` is a shallow copy of the block's type-specific object.
    """

    data: dict[str, Any] = field(default_factory=dict, hash=False)


BlockPayload = Union[
    TextPayload,
    ToDoPayload,
    CalloutPayload,
    CodePayload,
    DividerPayload,
    ChildPagePayload,
    UnknownPayload,
]


def _parse_payload(block_type: str, data: dict[str, Any]) -> BlockPayload:
    if block_type in TEXT_BLOCK_TYPES:
        return TextPayload(rich_text=parse_rich_text(data.get("rich_text")))
    if block_type == "to_do":
        return ToDoPayload(
            rich_text=parse_rich_text(data.get("rich_text")),
            checked=bool(data.get("checked", False)),
        )
    if block_type == "callout":
        icon = data.get("icon") or {}
        return CalloutPayload(
            rich_text=parse_rich_text(data.get("rich_text")),
            icon=icon.get("emoji") if icon.get("type", "emoji") == "emoji" else None,
        )
    if block_type == "code":
        return CodePayload(
            rich_text=parse_rich_text(data.get("rich_text")),
            language=data.get("language") or "",
        )
    if block_type == "divider":
        return DividerPayload()
    if block_type == "child_page":
        return ChildPagePayload(title=data.get("title") or "Untitled")
    return UnknownPayload(data=dict(data))


@dataclass(frozen=True)
class Block:
    """One node of the remote document tree, as returned by the API.

    Children are never inlined: ``has_children`` only signals that a
    further ``GET /blocks/{id}/children`` is needed.
    """

    id: str
    type: str
    payload: BlockPayload
    has_children: bool = False
    archived: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Block:
        """Build a :class:`Block` from a Notion block object."""
        block_type = data.get("type") or "unknown"
        type_data = data.get(block_type)
        if not isinstance(type_data, dict):
            type_data = {}
        return cls(
            id=data.get("id", ""),
            type=block_type,
            payload=_parse_payload(block_type, type_data),
            has_children=bool(data.get("has_children", False)),
            archived=bool(data.get("archived", False) or data.get("in_trash", False)),
        )


@dataclass(frozen=True)
class MaterializedNode:
    """A block together with its fully fetched children.

    Attributes
    ----------
    block:
        The wrapped block; never mutated.
    children:
        Materialized children in original sibling order.
    incomplete:
        ``True`` when fetching this block's children failed.
    error:
        Message of the error that made the subtree incomplete.
    """

    block: Block
    children: tuple[MaterializedNode, ...] = ()
    incomplete: bool = False
    error: str | None = None


# ---------------------------------------------------------------------------
# Pagination and parents
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ListResponse(Generic[T]):
    """One page of a cursor-paginated list endpoint."""

    results: list[T]
    next_cursor: str | None = None
    has_more: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ListResponse[dict[str, Any]]:
        return cls(
            results=list(data.get("results") or []),
            next_cursor=data.get("next_cursor"),
            has_more=bool(data.get("has_more", False)),
        )


ParentKind = Literal["database", "data_source"]


@dataclass(frozen=True)
class ParentRef:
    """A write/read target: a database (collection) or one of its data
    sources (sub-collections)."""

    kind: ParentKind
    id: str

    @classmethod
    def database(cls, database_id: str) -> ParentRef:
        return cls(kind="database", id=database_id)

    @classmethod
    def data_source(cls, data_source_id: str) -> ParentRef:
        return cls(kind="data_source", id=data_source_id)

    def to_payload(self) -> dict[str, str]:
        """Return the ``parent`` object for ``POST /pages``."""
        key = "data_source_id" if self.kind == "data_source" else "database_id"
        return {"type": key, key: self.id}


# ---------------------------------------------------------------------------
# Conversion results
# ---------------------------------------------------------------------------

@dataclass
class ConversionWarning:
    """A non-fatal issue encountered during materialization or conversion.

    Attributes
    ----------
    code:
        A machine-readable warning code (e.g. ``"SUBTREE_INCOMPLETE"``).
    message:
        A human-readable description of the issue.
    context:
        Arbitrary structured data for diagnostics.
    """

    code: str
    message: str
    context: dict = field(default_factory=dict)


@dataclass
class ConversionResult:
    """Markdown and plaintext renditions of one block list."""

    markdown: str
    plaintext: str
    warnings: list[ConversionWarning] = field(default_factory=list)


@dataclass
class PageExport:
    """A page converted for storage by the caller.

    Attributes
    ----------
    page_id:
        The exported page.
    title:
        Plain text of the page's title property.
    markdown / plaintext:
        Converted page content.
    content_hash:
        SHA-256 of ``markdown``; equal hashes mean unchanged content.
    last_edited_time:
        ``last_edited_time`` reported by the API.
    warnings:
        Non-fatal issues (e.g. incomplete subtrees).
    """

    page_id: str
    title: str
    markdown: str
    plaintext: str
    content_hash: str
    last_edited_time: str | None = None
    warnings: list[ConversionWarning] = field(default_factory=list)
