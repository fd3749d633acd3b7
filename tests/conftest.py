"""Shared test fixtures for the notionsync test suite."""

from __future__ import annotations

import pytest

from notionsync.config import NotionSyncConfig
from notionsync.converter.notion_to_md import BlockConverter


@pytest.fixture
def config() -> NotionSyncConfig:
    """Default test configuration with a dummy token and no real waiting."""
    return NotionSyncConfig(
        token="test_token_1234",
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        rate_limit_rps=10_000.0,
    )


@pytest.fixture
def converter() -> BlockConverter:
    """GFM block converter."""
    return BlockConverter("gfm")


@pytest.fixture
def commonmark_converter() -> BlockConverter:
    return BlockConverter("commonmark")
