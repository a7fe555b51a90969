"""Data models and constants for the TMDB Browser application."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

# Application identity used for platformdirs config paths
CONFIG_APP_NAME = "tmdb-browser"

# Paging constants. TMDB serves fixed 20-item pages and refuses page > 500.
LOCAL_PAGE_SIZE = 10
UPSTREAM_PAGE_SIZE = 20
UPSTREAM_MAX_PAGES = 500

# Tabs
TAB_MOVIES = "movies"
TAB_SEARCH = "search"
TAB_TV = "tv"
TAB_KEYS = (TAB_MOVIES, TAB_SEARCH, TAB_TV)
TAB_LABELS: dict[str, str] = {
    TAB_MOVIES: "Movies",
    TAB_SEARCH: "Search Results",
    TAB_TV: "TV Shows",
}

# (label, value) pairs in display order
MOVIE_CATEGORIES: list[tuple[str, str]] = [
    ("Now Playing", "now_playing"),
    ("Popular", "popular"),
    ("Top Rated", "top_rated"),
    ("Upcoming", "upcoming"),
]
TV_CATEGORIES: list[tuple[str, str]] = [
    ("Airing Today", "airing_today"),
    ("On The Air", "on_the_air"),
    ("Popular", "popular"),
    ("Top Rated", "top_rated"),
]
SEARCH_KINDS: list[tuple[str, str]] = [
    ("Multi", "multi"),
    ("Movie", "movie"),
    ("TV", "tv"),
]

DEFAULT_MOVIE_CATEGORY = "now_playing"
DEFAULT_TV_CATEGORY = "popular"
DEFAULT_SEARCH_KIND = "multi"

# The search kind whose results span several media types and need accumulation
COMBINED_SEARCH_KIND = "multi"
COMBINED_MEDIA_TYPES = frozenset({"movie", "tv"})


@dataclass(slots=True)
class MediaItem:
    """One movie, TV show or other record returned by a TMDB list endpoint."""

    id: int
    media_type: str  # "movie" | "tv" | "person" | ...
    title: str
    popularity: float | None = None
    release_date: str = ""
    poster_path: str | None = None
    overview: str = ""


@dataclass(slots=True)
class UpstreamPage:
    """Result of a single TMDB page request, as reported by the API."""

    items: list[MediaItem]
    page: int = 1
    total_pages: int = 1
    total_results: int = 0


@dataclass(slots=True)
class MediaDetails:
    """Full record for the details modal."""

    id: int
    media_type: str
    title: str
    tagline: str = ""
    overview: str = ""
    genres: tuple[str, ...] = ()
    release_date: str = ""
    runtime_minutes: int | None = None
    vote_average: float | None = None
    vote_count: int = 0
    status: str = ""
    certification: str = ""
    poster_path: str | None = None
    homepage: str = ""


@dataclass(slots=True)
class BrowseView:
    """Render-ready state committed by the fetch orchestrator."""

    tab: str = TAB_MOVIES
    items: list[MediaItem] = field(default_factory=list)
    estimated_total: int = 0
    current_page: int = 1
    is_loading: bool = False
    page_transition: bool = False
    error: str = ""
    validation_error: str = ""
    has_searched: bool = False
    page_size: int = LOCAL_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.estimated_total / self.page_size))

    @property
    def awaiting_search(self) -> bool:
        """True while the search tab has nothing submitted yet."""
        return self.tab == TAB_SEARCH and not self.has_searched

    @property
    def show_pager(self) -> bool:
        return self.total_pages > 1 and self.estimated_total > 0 and not self.awaiting_search

    @property
    def controls_locked(self) -> bool:
        return self.is_loading or self.page_transition

    @property
    def can_go_previous(self) -> bool:
        return self.current_page > 1 and not self.controls_locked

    @property
    def can_go_next(self) -> bool:
        return self.current_page < self.total_pages and not self.controls_locked


@dataclass(slots=True)
class SessionState:
    """Browsing preferences to restore on next run."""

    active_tab: str = TAB_MOVIES
    movie_category: str = DEFAULT_MOVIE_CATEGORY
    tv_category: str = DEFAULT_TV_CATEGORY
    search_kind: str = DEFAULT_SEARCH_KIND

    def __post_init__(self) -> None:
        """Reset unknown values to defaults."""
        if self.active_tab not in TAB_KEYS:
            self.active_tab = TAB_MOVIES
        if self.movie_category not in {value for _, value in MOVIE_CATEGORIES}:
            self.movie_category = DEFAULT_MOVIE_CATEGORY
        if self.tv_category not in {value for _, value in TV_CATEGORIES}:
            self.tv_category = DEFAULT_TV_CATEGORY
        if self.search_kind not in {value for _, value in SEARCH_KINDS}:
            self.search_kind = DEFAULT_SEARCH_KIND


@dataclass(slots=True)
class UserConfig:
    """Complete user configuration including session state and credentials."""

    session: SessionState = field(default_factory=SessionState)
    tmdb_api_key: str = ""
    tmdb_read_token: str = ""
    language: str = "en-US"
    include_adult: bool = False
    request_timeout_seconds: int = 15
    theme_name: str = "monokai"
    version: int = 1


__all__ = [
    "COMBINED_MEDIA_TYPES",
    "COMBINED_SEARCH_KIND",
    "CONFIG_APP_NAME",
    "DEFAULT_MOVIE_CATEGORY",
    "DEFAULT_SEARCH_KIND",
    "DEFAULT_TV_CATEGORY",
    "LOCAL_PAGE_SIZE",
    "MOVIE_CATEGORIES",
    "SEARCH_KINDS",
    "TAB_KEYS",
    "TAB_LABELS",
    "TAB_MOVIES",
    "TAB_SEARCH",
    "TAB_TV",
    "TV_CATEGORIES",
    "UPSTREAM_MAX_PAGES",
    "UPSTREAM_PAGE_SIZE",
    "BrowseView",
    "MediaDetails",
    "MediaItem",
    "SessionState",
    "UpstreamPage",
    "UserConfig",
]
