"""Page title extraction."""

from __future__ import annotations

from typing import Any

# Property names tried first, in order, before scanning every property.
_TITLE_KEYS = ("title", "Name", "name", "Title")


def _join_title(prop: Any) -> str:
    if not isinstance(prop, dict) or prop.get("type") != "title":
        return ""
    return "".join(seg.get("plain_text", "") for seg in prop.get("title") or [])


def extract_page_title(page: dict[str, Any]) -> str:
    """Return the plain text of a page's title property, or ``"Untitled"``.

    Database pages name their title property freely, so the conventional
    names are tried first and then any property of type ``title``.
    """
    properties = page.get("properties") or {}

    for key in _TITLE_KEYS:
        title = _join_title(properties.get(key))
        if title:
            return title

    for prop in properties.values():
        title = _join_title(prop)
        if title:
            return title

    return "Untitled"
