"""Content fingerprints for change detection.

A page export carries the SHA-256 of its markdown so that callers can skip
rewriting stored notes whose content did not change since the last sync.
"""

from __future__ import annotations

import hashlib


def content_hash(markdown: str) -> str:
    """Return the hex-encoded SHA-256 digest of *markdown* (UTF-8).

    Examples
    --------
    >>> content_hash("")
    'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    return hashlib.sha256(markdown.encode("utf-8")).hexdigest()
