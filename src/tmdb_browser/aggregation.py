"""Incremental accumulation of combined-search results across upstream pages.

A combined (``multi``) search returns movies, TV shows and people mixed
together. Only movies and TV shows are shown, so after filtering the local page
boundaries no longer line up with upstream pages. ``QueryContext`` keeps every
filtered item fetched so far for the active query, and ``ensure_filled`` pulls
further upstream pages until a requested local page can be served.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from tmdb_browser.models import (
    COMBINED_MEDIA_TYPES,
    UPSTREAM_MAX_PAGES,
    MediaItem,
    UpstreamPage,
)

logger = logging.getLogger(__name__)

FetchUpstreamPage = Callable[[str, int], Awaitable[UpstreamPage]]


@dataclass(slots=True)
class QueryContext:
    """Accumulation state for exactly one combined-search query string."""

    query: str = ""
    items: list[MediaItem] = field(default_factory=list)
    next_upstream_page: int = 1
    upstream_total_pages: int = 1
    upstream_total_results: int = 0

    @property
    def has_more(self) -> bool:
        return self.next_upstream_page <= self.upstream_total_pages

    @property
    def exhausted(self) -> bool:
        return not self.has_more

    def reset(self, query: str) -> None:
        """Drop all accumulated state and start over for ``query``."""
        self.query = query
        self.items = []
        self.next_upstream_page = 1
        self.upstream_total_pages = 1
        self.upstream_total_results = 0

    def reset_if_changed(self, query: str) -> bool:
        """Reset when ``query`` differs from the stored one. Returns True on reset."""
        if self.query == query:
            return False
        logger.debug("Query changed %r -> %r, resetting buffer", self.query, query)
        self.reset(query)
        return True


def filter_combined_items(items: list[MediaItem]) -> list[MediaItem]:
    """Keep only the media types shown in combined search."""
    return [item for item in items if item.media_type in COMBINED_MEDIA_TYPES]


async def fetch_next_upstream_page(
    context: QueryContext,
    fetch_page: FetchUpstreamPage,
    *,
    is_current: Callable[[], bool],
) -> bool:
    """Fetch ``context.next_upstream_page`` and merge it into the buffer.

    Returns False without touching ``context`` when upstream is exhausted or
    the caller's request was superseded while the fetch was in flight.
    """
    if context.exhausted:
        return False
    page_number = context.next_upstream_page
    page = await fetch_page(context.query, page_number)
    if not is_current():
        return False
    # Upstream totals are authoritative and may move in either direction.
    # TMDB refuses pages beyond UPSTREAM_MAX_PAGES even when it reports more.
    context.upstream_total_pages = max(1, min(page.total_pages, UPSTREAM_MAX_PAGES))
    context.upstream_total_results = max(0, page.total_results)
    kept = filter_combined_items(page.items)
    context.items.extend(kept)
    context.next_upstream_page = page_number + 1
    logger.debug(
        "Merged upstream page %d/%d for %r: %d of %d items kept, buffer=%d",
        page_number,
        context.upstream_total_pages,
        context.query,
        len(kept),
        len(page.items),
        len(context.items),
    )
    return True


async def ensure_filled(
    context: QueryContext,
    target_item_count: int,
    fetch_page: FetchUpstreamPage,
    *,
    is_current: Callable[[], bool],
    max_rounds: int | None = None,
) -> bool:
    """Grow the buffer until it holds ``target_item_count`` items or upstream runs out.

    ``max_rounds`` caps the number of upstream fetches made by this call.

    Returns False if a fetch turned out to be stale, True otherwise
    (including the no-op case where the buffer was already sufficient).
    Transport errors from ``fetch_page`` propagate.
    """
    rounds = 0
    while len(context.items) < target_item_count and context.has_more:
        if max_rounds is not None and rounds >= max_rounds:
            break
        if not await fetch_next_upstream_page(context, fetch_page, is_current=is_current):
            return False
        rounds += 1
    return True


def is_filled(context: QueryContext, target_item_count: int) -> bool:
    """True when no further fetching can or needs to happen for the target."""
    return len(context.items) >= target_item_count or context.exhausted


def window(context: QueryContext, local_page: int, local_page_size: int) -> list[MediaItem]:
    """Return the items belonging to ``local_page``."""
    start = (local_page - 1) * local_page_size
    return context.items[start : start + local_page_size]


def estimate_total(context: QueryContext, local_page: int, local_page_size: int) -> int:
    """Estimate the post-filter result count for the pager.

    While upstream has more pages the estimate always claims at least one item
    beyond ``local_page`` so a Next control is offered. Once upstream is
    exhausted the exact count is returned, which may be smaller than an
    earlier estimate.
    """
    if context.has_more:
        return max(len(context.items), local_page * local_page_size + 1)
    return len(context.items)


def max_local_page(context: QueryContext, local_page_size: int) -> int:
    """Highest local page the buffer can serve (at least 1)."""
    return max(1, math.ceil(len(context.items) / local_page_size))


__all__ = [
    "FetchUpstreamPage",
    "QueryContext",
    "ensure_filled",
    "estimate_total",
    "fetch_next_upstream_page",
    "filter_combined_items",
    "is_filled",
    "max_local_page",
    "window",
]
