"""Tests for utility functions.

Tests for: content_hash, redact, extract_page_title.
"""

import hashlib

from notionsync.utils.hashing import content_hash
from notionsync.utils.redact import redact
from notionsync.utils.titles import extract_page_title

# =========================================================================
# content_hash
# =========================================================================


class TestContentHash:
    def test_sha256_hex(self):
        assert content_hash("# Title\n") == hashlib.sha256(b"# Title\n").hexdigest()

    def test_stable_for_equal_input(self):
        assert content_hash("same") == content_hash("same")

    def test_differs_for_different_input(self):
        assert content_hash("a") != content_hash("b")

    def test_unicode(self):
        assert content_hash("café") == hashlib.sha256("café".encode("utf-8")).hexdigest()


# =========================================================================
# redact
# =========================================================================


class TestRedact:
    def test_sensitive_keys_masked(self):
        result = redact({"Authorization": "Bearer abc", "api_key": "k", "ok": 1})
        assert result == {"Authorization": "<redacted>", "api_key": "<redacted>", "ok": 1}

    def test_nested_structures(self):
        result = redact({"outer": [{"token": "x"}, {"name": "y"}]})
        assert result == {"outer": [{"token": "<redacted>"}, {"name": "y"}]}

    def test_token_scrubbed_from_values(self):
        token = "ntn_1234567890abcd"
        result = redact({"message": f"token {token} rejected"}, token=token)
        assert token not in result["message"]
        assert "<redacted:...abcd>" in result["message"]

    def test_short_token_fully_masked(self):
        result = redact({"message": "tok1 leaked"}, token="tok1")
        assert result["message"] == "<redacted> leaked"

    def test_bearer_pattern_masked_without_token(self):
        result = redact({"header": "Bearer secret_xyz"})
        assert result["header"] == "Bearer <redacted>"

    def test_input_not_mutated(self):
        payload = {"token": "abc", "inner": {"secret": "s"}}
        redact(payload)
        assert payload == {"token": "abc", "inner": {"secret": "s"}}


# =========================================================================
# extract_page_title
# =========================================================================


def _title(text):
    return {"type": "title", "title": [{"plain_text": part} for part in text]}


class TestExtractPageTitle:
    def test_title_property(self):
        page = {"properties": {"title": _title(["Hello"])}}
        assert extract_page_title(page) == "Hello"

    def test_name_property(self):
        page = {"properties": {"Name": _title(["Row ", "one"])}}
        assert extract_page_title(page) == "Row one"

    def test_custom_title_property(self):
        page = {"properties": {
            "Status": {"type": "select", "select": {"name": "Done"}},
            "Task": _title(["Ship it"]),
        }}
        assert extract_page_title(page) == "Ship it"

    def test_empty_title_is_untitled(self):
        assert extract_page_title({"properties": {"title": _title([])}}) == "Untitled"

    def test_no_properties(self):
        assert extract_page_title({}) == "Untitled"
