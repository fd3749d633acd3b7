"""Resolution of the canonical write/read target for a database.

Since Notion-Version ``2025-09-03`` a database may delegate its rows to
one or more data sources, and pages must then be created under a data
source.  :class:`ParentResolver` maps any :class:`ParentRef` to a
``data_source`` ref:

* a ``data_source`` ref is returned unchanged;
* a ``database`` ref resolves to its **first** data source in the order
  the API lists them (no other tie-break is applied);
* a database without data sources is addressed by its own id;
* if the database cannot be fetched, the original id is used so that
  writes stay possible while metadata is unreachable.
"""

from __future__ import annotations

from typing import Any

from notionsync.errors import NotionSyncDeadlineError, NotionSyncError
from notionsync.models import ParentRef
from notionsync.observability import get_logger

from .databases import AsyncDatabaseAPI, DatabaseAPI
from .retries import Deadline

log = get_logger("notionsync.parent")


def _pick_data_source(ref: ParentRef, database: dict[str, Any]) -> ParentRef:
    data_sources = database.get("data_sources") or []
    for source in data_sources:
        if isinstance(source, dict) and source.get("id"):
            return ParentRef.data_source(source["id"])
    return ParentRef.data_source(ref.id)


def _log_fallback(ref: ParentRef, exc: NotionSyncError) -> None:
    log.warning(
        "Database lookup failed; using database id as target",
        extra={
            "extra_fields": {
                "op": "resolve_parent",
                "database_id": ref.id,
                "error_code": str(exc.code),
                "error": exc.message,
            }
        },
    )


class ParentResolver:
    """Resolve parents through a synchronous :class:`DatabaseAPI`."""

    def __init__(self, databases: DatabaseAPI) -> None:
        self._databases = databases

    def resolve(self, ref: ParentRef, *, deadline: Deadline | None = None) -> ParentRef:
        """Return the data source to target for *ref*.  Never raises for
        API or network failures."""
        if ref.kind == "data_source":
            return ref
        try:
            database = self._databases.retrieve(ref.id, deadline=deadline)
        except NotionSyncDeadlineError:
            raise
        except NotionSyncError as exc:
            _log_fallback(ref, exc)
            return ParentRef.data_source(ref.id)
        return _pick_data_source(ref, database)


class AsyncParentResolver:
    """Resolve parents through an :class:`AsyncDatabaseAPI`."""

    def __init__(self, databases: AsyncDatabaseAPI) -> None:
        self._databases = databases

    async def resolve(self, ref: ParentRef, *, deadline: Deadline | None = None) -> ParentRef:
        if ref.kind == "data_source":
            return ref
        try:
            database = await self._databases.retrieve(ref.id, deadline=deadline)
        except NotionSyncDeadlineError:
            raise
        except NotionSyncError as exc:
            _log_fallback(ref, exc)
            return ParentRef.data_source(ref.id)
        return _pick_data_source(ref, database)
