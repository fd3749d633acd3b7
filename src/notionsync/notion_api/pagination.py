"""Cursor pagination over Notion list endpoints.

Every list endpoint answers ``{results, next_cursor, has_more}``.  A
*page fetcher* is any callable taking the cursor to resume from (``None``
for the first page) and returning a :class:`ListResponse`::

    fetch_all(lambda cursor: blocks.list_children(block_id, start_cursor=cursor))

The walkers are iterative, so arbitrarily long result sets do not grow the
stack.  They stop as soon as a page reports ``has_more == False`` even if
it also carries a cursor, and when a page claims more results without
providing a cursor to fetch them.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from typing import TypeVar

from notionsync.models import ListResponse

T = TypeVar("T")

PageFetcher = Callable[[str | None], ListResponse[T]]
AsyncPageFetcher = Callable[[str | None], Awaitable[ListResponse[T]]]


def iter_pages(fetch_page: PageFetcher[T]) -> Iterator[ListResponse[T]]:
    """Lazily yield pages as they are fetched (one-shot, not restartable)."""
    cursor: str | None = None
    while True:
        page = fetch_page(cursor)
        yield page
        if not page.has_more or not page.next_cursor:
            return
        cursor = page.next_cursor


def iter_results(fetch_page: PageFetcher[T]) -> Iterator[T]:
    """Lazily yield individual results across all pages."""
    for page in iter_pages(fetch_page):
        yield from page.results


def fetch_all(fetch_page: PageFetcher[T]) -> list[T]:
    """Fetch every page and return the concatenated results in page order."""
    results: list[T] = []
    for page in iter_pages(fetch_page):
        results.extend(page.results)
    return results


async def aiter_pages(fetch_page: AsyncPageFetcher[T]) -> AsyncIterator[ListResponse[T]]:
    """Async equivalent of :func:`iter_pages`."""
    cursor: str | None = None
    while True:
        page = await fetch_page(cursor)
        yield page
        if not page.has_more or not page.next_cursor:
            return
        cursor = page.next_cursor


async def afetch_all(fetch_page: AsyncPageFetcher[T]) -> list[T]:
    """Async equivalent of :func:`fetch_all`."""
    results: list[T] = []
    async for page in aiter_pages(fetch_page):
        results.extend(page.results)
    return results
