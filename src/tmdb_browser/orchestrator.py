"""Screen-level fetch coordination for the three browsing modes.

``FetchOrchestrator`` owns the render-ready ``BrowseView`` and decides, per
mode, how a request for local page N is satisfied:

* Movies/TV listings and single-kind searches translate the local page to
  upstream page(s) and slice the reply directly.
* Combined (``multi``) search accumulates filtered results in a
  ``QueryContext``: one upstream round is awaited so something renders
  quickly, then a background task keeps filling until the page is complete
  or upstream is exhausted.

Every async step captures a ``RequestArbiter`` token and re-checks it before
touching shared state, so superseded replies are dropped silently.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

import httpx

from tmdb_browser.action_messages import describe_fetch_error
from tmdb_browser.aggregation import (
    QueryContext,
    ensure_filled,
    estimate_total,
    is_filled,
    max_local_page,
    window,
)
from tmdb_browser.models import (
    COMBINED_SEARCH_KIND,
    LOCAL_PAGE_SIZE,
    MOVIE_CATEGORIES,
    SEARCH_KINDS,
    TAB_KEYS,
    TAB_MOVIES,
    TAB_SEARCH,
    TAB_TV,
    TV_CATEGORIES,
    UPSTREAM_MAX_PAGES,
    UPSTREAM_PAGE_SIZE,
    BrowseView,
    MediaItem,
    SessionState,
    UpstreamPage,
)
from tmdb_browser.paging import STREAM_LIST, STREAM_SEARCH, RequestArbiter, upstream_spans
from tmdb_browser.query import EmptyQueryError, normalize_query
from tmdb_browser.services.interfaces import CatalogService

logger = logging.getLogger(__name__)

# Failures of a single catalog operation. None of them are retried.
FETCH_ERRORS: tuple[type[BaseException], ...] = (httpx.HTTPError, OSError, ValueError)

_MOVIE_CATEGORY_VALUES = frozenset(value for _, value in MOVIE_CATEGORIES)
_TV_CATEGORY_VALUES = frozenset(value for _, value in TV_CATEGORIES)
_SEARCH_KIND_VALUES = frozenset(value for _, value in SEARCH_KINDS)


class FetchOrchestrator:
    """Coordinates catalog fetches and commits results to a ``BrowseView``."""

    def __init__(
        self,
        catalog: CatalogService,
        *,
        on_change: Callable[[BrowseView], None] | None = None,
        spawn: Callable[[Coroutine[Any, Any, None]], Any] | None = None,
        session: SessionState | None = None,
        local_page_size: int = LOCAL_PAGE_SIZE,
        upstream_page_size: int = UPSTREAM_PAGE_SIZE,
        arbiter: RequestArbiter | None = None,
        context: QueryContext | None = None,
    ) -> None:
        session = session or SessionState()
        self.catalog = catalog
        self.local_page_size = local_page_size
        self.upstream_page_size = upstream_page_size
        self.arbiter = arbiter or RequestArbiter()
        self.context = context or QueryContext()

        self.tab: str = session.active_tab
        self.movie_category: str = session.movie_category
        self.tv_category: str = session.tv_category
        self.search_kind: str = session.search_kind
        self.query: str = ""  # last submitted search text

        self.view = BrowseView(tab=self.tab, page_size=local_page_size)
        self._on_change = on_change
        self._spawn_fn = spawn
        self._tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    @property
    def in_combined_search(self) -> bool:
        return self.tab == TAB_SEARCH and self.search_kind == COMBINED_SEARCH_KIND

    def session_state(self) -> SessionState:
        """Snapshot the browsing preferences for persistence."""
        return SessionState(
            active_tab=self.tab,
            movie_category=self.movie_category,
            tv_category=self.tv_category,
            search_kind=self.search_kind,
        )

    async def reload(self) -> None:
        """(Re)load the current local page of the active mode."""
        await self._load(self.view.current_page)

    async def change_mode(self, tab: str) -> None:
        """Switch tabs, superseding anything in flight, and load page 1."""
        if tab not in TAB_KEYS:
            raise ValueError(f"Unknown tab: {tab!r}")
        self.arbiter.invalidate(STREAM_LIST, STREAM_SEARCH)
        self.tab = tab
        self.view.tab = tab
        self.view.validation_error = ""
        self._reset_results(page=1)
        self._commit()
        await self._load(1)

    async def change_category(self, category: str) -> None:
        """Change the listing category of the Movies or TV tab."""
        if self.tab == TAB_MOVIES:
            if category not in _MOVIE_CATEGORY_VALUES:
                raise ValueError(f"Unknown movie category: {category!r}")
            self.movie_category = category
        elif self.tab == TAB_TV:
            if category not in _TV_CATEGORY_VALUES:
                raise ValueError(f"Unknown TV category: {category!r}")
            self.tv_category = category
        else:
            return
        self.arbiter.invalidate(STREAM_LIST)
        self._reset_results(page=1)
        await self._load(1)

    async def change_search_kind(self, kind: str) -> None:
        """Change between combined and single-kind search."""
        if kind not in _SEARCH_KIND_VALUES:
            raise ValueError(f"Unknown search kind: {kind!r}")
        self.search_kind = kind
        self.arbiter.invalidate(STREAM_SEARCH)
        self.view.current_page = 1
        if self.tab == TAB_SEARCH:
            await self._load(1)

    async def submit_query(self, text: str | None) -> bool:
        """Validate and run a new search from page 1.

        Returns False when the text was blank; no request is made then.
        """
        try:
            query = normalize_query(text)
        except EmptyQueryError as exc:
            self.arbiter.invalidate(STREAM_SEARCH)
            self.query = ""
            self.view.validation_error = str(exc)
            self.view.has_searched = False
            self._reset_results(page=1)
            self._commit()
            return False

        if self.tab != TAB_SEARCH:
            self.arbiter.invalidate(STREAM_LIST)
            self.tab = TAB_SEARCH
            self.view.tab = TAB_SEARCH
        self.query = query
        # An explicit submit always starts a fresh accumulation.
        self.context.reset(query)
        self.view.validation_error = ""
        self.view.has_searched = True
        self.view.current_page = 1
        await self._load(1)
        return True

    async def go_to_page(self, page: int) -> bool:
        """Request local page ``page``. Returns False if the request was refused."""
        if page < 1:
            return False
        if self.tab == TAB_SEARCH:
            if self.view.page_transition or not self.view.has_searched:
                return False
            if self.in_combined_search and self.context.query == self.query:
                if self.context.exhausted and page > max_local_page(
                    self.context, self.local_page_size
                ):
                    return False
            self.view.page_transition = True
            self.view.is_loading = True
        self.view.current_page = page
        self._commit()
        await self._load(page)
        return True

    async def wait_for_background(self) -> None:
        """Wait until background continuations started by this orchestrator finish."""
        while pending := [task for task in self._tasks if not task.done()]:
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Mode dispatch
    # ------------------------------------------------------------------

    async def _load(self, local_page: int) -> None:
        if self.tab == TAB_SEARCH:
            if not self.view.has_searched or not self.query:
                self._reset_results(page=1)
                self._commit()
                return
            if self.search_kind == COMBINED_SEARCH_KIND:
                await self._load_combined_search(local_page)
            else:
                await self._load_translated(
                    STREAM_SEARCH,
                    local_page,
                    lambda page: self.catalog.fetch_search(self.search_kind, self.query, page),
                )
            return
        media_type, category = (
            ("movie", self.movie_category) if self.tab == TAB_MOVIES else ("tv", self.tv_category)
        )
        await self._load_translated(
            STREAM_LIST,
            local_page,
            lambda page: self.catalog.fetch_listing(media_type, category, page),
        )

    # ------------------------------------------------------------------
    # Listings and single-kind search: stateless per request
    # ------------------------------------------------------------------

    async def _load_translated(
        self,
        stream: str,
        local_page: int,
        fetch: Callable[[int], Awaitable[UpstreamPage]],
    ) -> None:
        token = self.arbiter.begin(stream)
        self._begin_loading(local_page)
        items: list[MediaItem] = []
        total = 0
        try:
            for span in upstream_spans(local_page, self.local_page_size, self.upstream_page_size):
                if span.upstream_page > UPSTREAM_MAX_PAGES:
                    break
                page = await fetch(span.upstream_page)
                if not self.arbiter.is_current(stream, token):
                    return
                items.extend(page.items[span.start : span.stop])
                total = self._listing_total(page)
        except FETCH_ERRORS as exc:
            if self.arbiter.is_current(stream, token):
                self._fail(exc)
            return

        self.view.items = items
        self.view.estimated_total = total
        self.view.is_loading = False
        self.view.page_transition = False
        self._commit()

    def _listing_total(self, page: UpstreamPage) -> int:
        """Upstream total, capped at what TMDB will actually page through."""
        reachable = min(page.total_pages, UPSTREAM_MAX_PAGES) * self.upstream_page_size
        return min(page.total_results, reachable)

    # ------------------------------------------------------------------
    # Combined search: incremental accumulation
    # ------------------------------------------------------------------

    def _fetch_combined(self, query: str, page: int) -> Awaitable[UpstreamPage]:
        return self.catalog.fetch_search(COMBINED_SEARCH_KIND, query, page)

    async def _load_combined_search(self, local_page: int) -> None:
        token = self.arbiter.begin(STREAM_SEARCH)
        self.context.reset_if_changed(self.query)
        target = local_page * self.local_page_size
        self._begin_loading(local_page)

        def is_current() -> bool:
            return self.arbiter.is_current(STREAM_SEARCH, token)

        try:
            merged = await ensure_filled(
                self.context, target, self._fetch_combined, is_current=is_current, max_rounds=1
            )
        except FETCH_ERRORS as exc:
            if is_current():
                self._fail(exc)
            return
        if not merged or not is_current():
            return

        self._commit_combined(local_page)
        if not is_filled(self.context, target):
            self._spawn(self._continue_combined_search(token, local_page, target))

    async def _continue_combined_search(self, token: int, local_page: int, target: int) -> None:
        """Keep filling the buffer in the background, re-committing after each page."""

        def is_current() -> bool:
            return self.arbiter.is_current(STREAM_SEARCH, token)

        while not is_filled(self.context, target):
            try:
                merged = await ensure_filled(
                    self.context, target, self._fetch_combined, is_current=is_current, max_rounds=1
                )
            except FETCH_ERRORS as exc:
                if is_current():
                    self._fail(exc)
                return
            if not merged or not is_current():
                return
            self._commit_combined(local_page)

    def _commit_combined(self, local_page: int) -> None:
        size = self.local_page_size
        if self.context.exhausted:
            last_page = max_local_page(self.context, size)
            if local_page > last_page:
                logger.debug("Clamping page %d to last page %d", local_page, last_page)
                local_page = last_page
        page_items = window(self.context, local_page, size)
        settled = bool(page_items) or self.context.exhausted
        self.view.current_page = local_page
        self.view.items = page_items
        self.view.estimated_total = estimate_total(self.context, local_page, size)
        self.view.is_loading = not settled
        self.view.page_transition = not settled
        self._commit()

    # ------------------------------------------------------------------
    # View state helpers
    # ------------------------------------------------------------------

    def _begin_loading(self, local_page: int) -> None:
        self.view.current_page = local_page
        self.view.error = ""
        self.view.is_loading = True
        self.view.page_transition = True
        self._commit()

    def _reset_results(self, page: int) -> None:
        self.view.current_page = page
        self.view.items = []
        self.view.estimated_total = 0
        self.view.error = ""
        self.view.is_loading = False
        self.view.page_transition = False

    def _fail(self, exc: BaseException) -> None:
        logger.warning("Fetch for %s tab failed: %s", self.tab, exc, exc_info=True)
        self.view.items = []
        self.view.estimated_total = 0
        self.view.error = describe_fetch_error(self.tab, exc)
        self.view.is_loading = False
        self.view.page_transition = False
        self._commit()

    def _commit(self) -> None:
        if self._on_change is not None:
            self._on_change(self.view)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        if self._spawn_fn is not None:
            self._spawn_fn(coro)
            return
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


__all__ = [
    "FETCH_ERRORS",
    "FetchOrchestrator",
]
