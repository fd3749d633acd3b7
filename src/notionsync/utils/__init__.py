from .hashing import content_hash
from .redact import redact
from .titles import extract_page_title

__all__ = [
    "content_hash",
    "extract_page_title",
    "redact",
]
