"""Tests for ParentResolver / AsyncParentResolver."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from notionsync.errors import (
    NotionSyncDeadlineError,
    NotionSyncNetworkError,
    NotionSyncNotFoundError,
)
from notionsync.models import ParentRef
from notionsync.notion_api.parent import AsyncParentResolver, ParentResolver


def make_databases(**retrieve_kwargs):
    databases = MagicMock()
    databases.retrieve = MagicMock(**retrieve_kwargs)
    return databases


class TestParentResolver:
    def test_database_resolves_to_first_data_source(self):
        databases = make_databases(return_value={
            "id": "db-1",
            "data_sources": [{"id": "ds-1", "name": "A"}, {"id": "ds-2", "name": "B"}],
        })
        ref = ParentResolver(databases).resolve(ParentRef.database("db-1"))
        assert ref == ParentRef.data_source("ds-1")

    def test_database_without_data_sources_uses_own_id(self):
        databases = make_databases(return_value={"id": "db-1", "data_sources": []})
        ref = ParentResolver(databases).resolve(ParentRef.database("db-1"))
        assert ref == ParentRef(kind="data_source", id="db-1")

    def test_missing_data_sources_key(self):
        databases = make_databases(return_value={"id": "db-1"})
        assert ParentResolver(databases).resolve(ParentRef.database("db-1")).id == "db-1"

    def test_entries_without_id_are_skipped(self):
        databases = make_databases(return_value={"data_sources": [{"name": "x"}, {"id": "ds-9"}]})
        assert ParentResolver(databases).resolve(ParentRef.database("db-1")).id == "ds-9"

    def test_lookup_failure_falls_back_to_database_id(self):
        databases = make_databases(side_effect=NotionSyncNotFoundError("gone"))
        ref = ParentResolver(databases).resolve(ParentRef.database("db-1"))
        assert ref == ParentRef.data_source("db-1")

    def test_network_failure_falls_back(self):
        databases = make_databases(side_effect=NotionSyncNetworkError("down"))
        assert ParentResolver(databases).resolve(ParentRef.database("db-1")).id == "db-1"

    def test_data_source_ref_passes_through_without_lookup(self):
        databases = make_databases()
        ref = ParentRef.data_source("ds-1")
        assert ParentResolver(databases).resolve(ref) is ref
        databases.retrieve.assert_not_called()

    def test_deadline_is_not_absorbed(self):
        databases = make_databases(side_effect=NotionSyncDeadlineError("late"))
        with pytest.raises(NotionSyncDeadlineError):
            ParentResolver(databases).resolve(ParentRef.database("db-1"))


class TestAsyncParentResolver:
    async def test_first_data_source(self):
        databases = MagicMock()
        databases.retrieve = AsyncMock(return_value={"data_sources": [{"id": "ds-a"}, {"id": "ds-b"}]})
        ref = await AsyncParentResolver(databases).resolve(ParentRef.database("db-1"))
        assert ref == ParentRef.data_source("ds-a")

    async def test_failure_falls_back(self):
        databases = MagicMock()
        databases.retrieve = AsyncMock(side_effect=NotionSyncNotFoundError("gone"))
        ref = await AsyncParentResolver(databases).resolve(ParentRef.database("db-1"))
        assert ref == ParentRef.data_source("db-1")

    async def test_data_source_passes_through(self):
        databases = MagicMock()
        databases.retrieve = AsyncMock()
        ref = ParentRef.data_source("ds-1")
        assert await AsyncParentResolver(databases).resolve(ref) == ref
        databases.retrieve.assert_not_awaited()
