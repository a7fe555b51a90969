"""Shared test fixtures for TMDB Browser tests."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

import pytest

from tmdb_browser.models import MediaDetails, MediaItem, UpstreamPage, UserConfig
from tmdb_browser.themes import DEFAULT_THEME, THEME_COLORS

# ── Module-level dict isolation ──────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_global_dicts():
    """Restore THEME_COLORS after each test.

    TmdbBrowser.__init__ swaps the active palette in place. Without this fixture
    tests that instantiate the app would pollute the state for later tests.
    """
    yield
    THEME_COLORS.clear()
    THEME_COLORS.update(DEFAULT_THEME)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_item():
    """Factory fixture for creating MediaItem instances with sensible defaults."""

    def _make(
        id: int = 1,
        media_type: str = "movie",
        title: str | None = None,
        popularity: float | None = 12.5,
        release_date: str = "2024-01-15",
        poster_path: str | None = "/poster.jpg",
        overview: str = "An overview.",
    ) -> MediaItem:
        return MediaItem(
            id=id,
            media_type=media_type,
            title=title if title is not None else f"Item {id}",
            popularity=popularity,
            release_date=release_date,
            poster_path=poster_path,
            overview=overview,
        )

    return _make


@pytest.fixture
def make_page(make_item):
    """Factory fixture for an UpstreamPage of ``count`` consecutive ids.

    ``media_types`` maps an item's position on the page to its media type;
    positions beyond its length are movies.
    """

    def _make(
        count: int = 20,
        *,
        start_id: int = 1,
        page: int = 1,
        total_pages: int = 1,
        total_results: int | None = None,
        media_types: Iterable[str] = (),
    ) -> UpstreamPage:
        types = list(media_types)
        items = [
            make_item(id=start_id + i, media_type=types[i] if i < len(types) else "movie")
            for i in range(count)
        ]
        if total_results is None:
            total_results = total_pages * 20
        return UpstreamPage(
            items=items, page=page, total_pages=total_pages, total_results=total_results
        )

    return _make


@pytest.fixture
def sample_config():
    """Factory fixture for creating UserConfig with optional overrides."""

    def _make(**kwargs: Any) -> UserConfig:
        kwargs.setdefault("tmdb_api_key", "test-key")
        return UserConfig(**kwargs)

    return _make


# ── Catalog double ───────────────────────────────────────────────────────────


class FakeCatalog:
    """In-memory CatalogService that records calls and can hold or fail requests.

    Keys are ``("listing", media_type, category, page)`` and
    ``("search", kind, query, page)``. Unknown keys answer with an empty page.
    """

    def __init__(self) -> None:
        self.pages: dict[tuple[Any, ...], UpstreamPage] = {}
        self.errors: dict[tuple[Any, ...], BaseException] = {}
        self.gates: dict[tuple[Any, ...], asyncio.Event] = {}
        self.details: dict[tuple[str, int], MediaDetails] = {}
        self.calls: list[tuple[Any, ...]] = []

    def add_listing(self, media_type: str, category: str, page: int, result: UpstreamPage) -> None:
        self.pages[("listing", media_type, category, page)] = result

    def add_search(self, kind: str, query: str, page: int, result: UpstreamPage) -> None:
        self.pages[("search", kind, query, page)] = result

    def hold(self, *key: Any) -> asyncio.Event:
        """Block the request for ``key`` until the returned event is set."""
        gate = asyncio.Event()
        self.gates[key] = gate
        return gate

    def fail(self, *key: Any, exc: BaseException) -> None:
        self.errors[key] = exc

    async def _respond(self, key: tuple[Any, ...]) -> UpstreamPage:
        self.calls.append(key)
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.errors:
            raise self.errors[key]
        return self.pages.get(key, UpstreamPage(items=[], page=key[-1]))

    async def fetch_listing(self, media_type: str, category: str, page: int) -> UpstreamPage:
        return await self._respond(("listing", media_type, category, page))

    async def fetch_search(self, search_kind: str, query: str, page: int) -> UpstreamPage:
        return await self._respond(("search", search_kind, query, page))

    async def fetch_details(self, media_type: str, media_id: int) -> MediaDetails:
        self.calls.append(("details", media_type, media_id))
        key = ("details", media_type, media_id)
        if key in self.errors:
            raise self.errors[key]
        return self.details[(media_type, media_id)]


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog()


async def wait_for_call(catalog: FakeCatalog, key: tuple[Any, ...], max_spins: int = 100) -> None:
    """Yield to the loop until ``key`` has been requested."""
    for _ in range(max_spins):
        if key in catalog.calls:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"{key!r} was never requested; calls={catalog.calls!r}")


@pytest.fixture
def call_waiter():
    return wait_for_call
