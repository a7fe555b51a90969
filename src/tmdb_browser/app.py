#!/usr/bin/env python3
"""TMDB Browser TUI - Browse movies and TV shows from The Movie Database.

Usage:
    tmdb-browser                          # Restore last tab and categories
    tmdb-browser --tab tv                 # Start on the TV Shows tab
    tmdb-browser --search "alien"         # Start with a combined search
    tmdb-browser --no-restore             # Start fresh session

Key bindings:
    1/2/3   - Movies / Search Results / TV Shows tab
    /       - Focus the search box
    enter   - Show details for the highlighted row
    [       - Previous page
    ]       - Next page
    j/k     - Navigate down/up (vim-style)
    Ctrl+t  - Cycle color theme
    o       - Open on TMDB (details dialog)
    q       - Quit
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx
from textual import on
from textual.app import App, ComposeResult, ScreenStackError
from textual.containers import Horizontal
from textual.css.query import NoMatches
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    OptionList,
    Select,
    Tab,
    Tabs,
)
from textual.widgets.option_list import Option

from tmdb_browser.cli import main
from tmdb_browser.config import save_config
from tmdb_browser.modals import MediaDetailsModal
from tmdb_browser.models import (
    MOVIE_CATEGORIES,
    SEARCH_KINDS,
    TAB_KEYS,
    TAB_LABELS,
    TAB_MOVIES,
    TAB_SEARCH,
    TAB_TV,
    TV_CATEGORIES,
    BrowseView,
    MediaItem,
    SessionState,
    UserConfig,
)
from tmdb_browser.orchestrator import FetchOrchestrator
from tmdb_browser.services.interfaces import (
    AppServices,
    DefaultCatalogService,
    build_default_app_services,
)
from tmdb_browser.themes import TEXTUAL_THEMES, THEME_NAMES, apply_theme
from tmdb_browser.ui_constants import APP_BINDINGS, APP_CSS
from tmdb_browser.ui_runtime import UiRefs
from tmdb_browser.widgets.listing import (
    build_list_empty_message,
    format_page_label,
    render_media_option,
)

logger = logging.getLogger(__name__)

_TAB_ID_PREFIX = "tab-"


def _tab_id(tab: str) -> str:
    return f"{_TAB_ID_PREFIX}{tab}"


def _tab_from_id(tab_id: str | None) -> str | None:
    if not tab_id or not tab_id.startswith(_TAB_ID_PREFIX):
        return None
    tab = tab_id[len(_TAB_ID_PREFIX) :]
    return tab if tab in TAB_KEYS else None


def format_status_text(view: BrowseView, query: str = "") -> str:
    """Build the one-line status bar text for the current view."""
    if view.is_loading:
        return "Loading..."
    if view.error:
        return "Request failed"
    if view.awaiting_search:
        return "Enter a title and press Search"
    parts = [format_page_label(view)]
    if view.tab == TAB_SEARCH and query:
        parts.append(f'"{query}"')
    parts.append(f"{view.estimated_total} results")
    return " · ".join(parts)


class TmdbBrowser(App):
    """A TUI application to browse TMDB movies and TV shows."""

    TITLE = "TMDB Browser"

    # Theme-aware CSS and key bindings are defined in ui_constants for maintainability.
    CSS = APP_CSS

    BINDINGS = APP_BINDINGS

    def __init__(
        self,
        config: UserConfig | None = None,
        restore_session: bool = True,
        session: SessionState | None = None,
        initial_query: str | None = None,
        services: AppServices | None = None,
    ) -> None:
        super().__init__()
        # Register all Textual themes so $th-* CSS variables resolve before compose()
        for textual_theme in TEXTUAL_THEMES.values():
            self.register_theme(textual_theme)

        # Configuration and persistence
        self._config = config or UserConfig()
        self._config.theme_name = apply_theme(self._config.theme_name)
        self._restore_session = restore_session
        if session is None:
            session = self._config.session if restore_session else SessionState()
        self._initial_query = initial_query
        self._services: AppServices = services or build_default_app_services(self._config)

        # Background task tracking (prevent GC of fire-and-forget tasks)
        self._background_tasks: set[asyncio.Task[None]] = set()

        # Shared HTTP client for connection pooling (created in on_mount)
        self._http_client: httpx.AsyncClient | None = None

        # Rows currently shown in the result list, in display order
        self._row_items: list[MediaItem] = []
        self._rendered_tab: str = session.active_tab

        self._orchestrator = FetchOrchestrator(
            self._services.catalog,
            on_change=self._on_view_change,
            spawn=self._track_task,
            session=session,
        )

        # Internal UI boundary (cached refs)
        self._ui_refs = UiRefs()

    @property
    def orchestrator(self) -> FetchOrchestrator:
        return self._orchestrator

    @property
    def view(self) -> BrowseView:
        return self._orchestrator.view

    def compose(self) -> ComposeResult:
        orchestrator = self._orchestrator
        yield Header()
        yield Tabs(
            *(Tab(TAB_LABELS[key], id=_tab_id(key)) for key in TAB_KEYS),
            active=_tab_id(orchestrator.tab),
            id="mode-tabs",
        )
        with Horizontal(id="controls"):
            yield Select(
                MOVIE_CATEGORIES,
                prompt="Choose Movie Type",
                value=orchestrator.movie_category,
                allow_blank=False,
                id="movie-category",
            )
            yield Select(
                TV_CATEGORIES,
                prompt="Choose TV Show Type",
                value=orchestrator.tv_category,
                allow_blank=False,
                id="tv-category",
            )
            with Horizontal(id="search-form"):
                yield Input(placeholder="Movie or TV show name", id="search-input")
                yield Select(
                    SEARCH_KINDS,
                    prompt="Choose Search Type",
                    value=orchestrator.search_kind,
                    allow_blank=False,
                    id="search-kind",
                )
                yield Button("Search", variant="primary", id="search-button")
        yield Label("", id="validation-error")
        yield Label("", id="api-error")
        yield Label("", id="list-header")
        yield OptionList(id="result-list")
        with Horizontal(id="pager"):
            yield Button("Previous", id="prev-page")
            yield Label("", id="page-label")
            yield Button("Next", id="next-page")
        yield Label("", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Create the shared HTTP client and load the initial tab."""
        self._http_client = httpx.AsyncClient()
        catalog = self._services.catalog
        if isinstance(catalog, DefaultCatalogService):
            catalog.client = self._http_client

        self.theme = self._config.theme_name
        self._prime_ui_refs()
        self._render_view(self.view)

        if self._initial_query is not None:
            self._get_search_input_widget().value = self._initial_query
            self._track_task(self._orchestrator.submit_query(self._initial_query))
        else:
            self._track_task(self._orchestrator.reload())

        logger.debug(
            "App mounted: tab=%s, movie_category=%s, tv_category=%s, search_kind=%s",
            self._orchestrator.tab,
            self._orchestrator.movie_category,
            self._orchestrator.tv_category,
            self._orchestrator.search_kind,
        )

        try:
            self._get_result_list_widget().focus()
        except NoMatches:
            pass

    async def on_unmount(self) -> None:
        """Save session preferences, cancel background work and close the client."""
        self._save_session_state()

        # Cancel tracked background tasks to avoid leaks during teardown.
        pending = [task for task in self._background_tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=0.5)
            for task in still_pending:
                logger.debug("Background task did not cancel before shutdown: %r", task)
        self._background_tasks.clear()

        client = self._http_client
        self._http_client = None
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug(
                    "Failed to close shared HTTP client during shutdown: %s", e, exc_info=True
                )
        self._ui_refs.reset()

    # ------------------------------------------------------------------
    # Widget refs
    # ------------------------------------------------------------------

    @staticmethod
    def _is_live_widget(widget: Any) -> bool:
        """Return True for mounted/attached widgets safe to reuse."""
        return bool(widget is not None and getattr(widget, "is_attached", False))

    def _get_cached_widget(self, ref_name: str, resolver: Callable[[], Any]) -> Any:
        """Resolve and cache a widget reference by UiRefs attribute name."""
        widget = getattr(self._ui_refs, ref_name)
        if self._is_live_widget(widget):
            return widget
        widget = resolver()
        setattr(self._ui_refs, ref_name, widget)
        return widget

    def _get_tabs_widget(self) -> Tabs:
        return self._get_cached_widget("mode_tabs", lambda: self.query_one("#mode-tabs", Tabs))

    def _get_search_input_widget(self) -> Input:
        return self._get_cached_widget(
            "search_input", lambda: self.query_one("#search-input", Input)
        )

    def _get_result_list_widget(self) -> OptionList:
        return self._get_cached_widget(
            "result_list", lambda: self.query_one("#result-list", OptionList)
        )

    def _get_label_widget(self, ref_name: str, widget_id: str) -> Label:
        return self._get_cached_widget(ref_name, lambda: self.query_one(f"#{widget_id}", Label))

    def _get_button_widget(self, ref_name: str, widget_id: str) -> Button:
        return self._get_cached_widget(ref_name, lambda: self.query_one(f"#{widget_id}", Button))

    def _prime_ui_refs(self) -> None:
        """Warm caches for frequently queried widgets once the DOM is mounted."""
        refs = self._ui_refs
        try:
            refs.mode_tabs = self.query_one("#mode-tabs", Tabs)
            refs.movie_category = self.query_one("#movie-category", Select)
            refs.tv_category = self.query_one("#tv-category", Select)
            refs.search_form = self.query_one("#search-form")
            refs.search_input = self.query_one("#search-input", Input)
            refs.search_kind = self.query_one("#search-kind", Select)
            refs.validation_error = self.query_one("#validation-error", Label)
            refs.api_error = self.query_one("#api-error", Label)
            refs.list_header = self.query_one("#list-header", Label)
            refs.result_list = self.query_one("#result-list", OptionList)
            refs.pager = self.query_one("#pager")
            refs.prev_button = self.query_one("#prev-page", Button)
            refs.next_button = self.query_one("#next-page", Button)
            refs.page_label = self.query_one("#page-label", Label)
            refs.status_bar = self.query_one("#status-bar", Label)
        except NoMatches:
            logger.debug("UI refs primed before compose finished", exc_info=True)

    # ------------------------------------------------------------------
    # Background tasks
    # ------------------------------------------------------------------

    def _track_task(self, coro: Any) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    async def wait_for_background_tasks(self) -> None:
        """Wait until every tracked task (including ones they spawn) has finished."""
        while pending := [task for task in self._background_tasks if not task.done()]:
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Session persistence
    # ------------------------------------------------------------------

    def _save_session_state(self) -> None:
        """Save browsing preferences to config."""
        self._config.session = self._orchestrator.session_state()
        if not save_config(self._config):
            logger.warning("Failed to save session state to config file")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _on_view_change(self, view: BrowseView) -> None:
        try:
            self._render_view(view)
        except (NoMatches, ScreenStackError):
            logger.debug("View change after teardown ignored", exc_info=True)

    def _render_view(self, view: BrowseView) -> None:
        """Push a committed BrowseView into the widgets."""
        refs = self._ui_refs
        if refs.result_list is None:
            return
        self._sync_mode_controls(view.tab)
        self._render_errors(view)
        self._render_list(view)
        self._render_pager(view)

        query = self._orchestrator.query
        header = f" {TAB_LABELS[view.tab]}"
        if not view.awaiting_search and view.estimated_total:
            header += f" ({view.estimated_total} results)"
        self._get_label_widget("list_header", "list-header").update(header)
        self._get_label_widget("status_bar", "status-bar").update(
            format_status_text(view, query)
        )

    def _sync_mode_controls(self, tab: str) -> None:
        refs = self._ui_refs
        # Only follow tab changes made by the orchestrator (e.g. a search
        # submitted from another tab); user clicks are already reflected.
        if tab != self._rendered_tab:
            self._rendered_tab = tab
            tabs = self._get_tabs_widget()
            if _tab_from_id(tabs.active) != tab:
                tabs.active = _tab_id(tab)
        if refs.movie_category is not None:
            refs.movie_category.display = tab == TAB_MOVIES
        if refs.tv_category is not None:
            refs.tv_category.display = tab == TAB_TV
        if refs.search_form is not None:
            refs.search_form.display = tab == TAB_SEARCH

    def _render_errors(self, view: BrowseView) -> None:
        validation = self._get_label_widget("validation_error", "validation-error")
        validation.update(view.validation_error)
        validation.set_class(bool(view.validation_error), "visible")
        api_error = self._get_label_widget("api_error", "api-error")
        api_error.update(view.error)
        api_error.set_class(bool(view.error), "visible")

    def _render_list(self, view: BrowseView) -> None:
        option_list = self._get_result_list_widget()
        option_list.clear_options()
        self._row_items = list(view.items)
        if self._row_items:
            show_media_type = self._orchestrator.in_combined_search
            option_list.add_options(
                [
                    Option(render_media_option(item, show_media_type=show_media_type))
                    for item in self._row_items
                ]
            )
            option_list.highlighted = 0
        else:
            option_list.add_option(Option(build_list_empty_message(view), disabled=True))

    def _render_pager(self, view: BrowseView) -> None:
        refs = self._ui_refs
        if refs.pager is not None:
            refs.pager.set_class(not view.show_pager, "hidden")
        prev_button = self._get_button_widget("prev_button", "prev-page")
        next_button = self._get_button_widget("next_button", "next-page")
        prev_button.display = view.current_page > 1
        next_button.display = view.current_page < view.total_pages
        prev_button.disabled = view.controls_locked
        next_button.disabled = view.controls_locked
        self._get_label_widget("page_label", "page-label").update(format_page_label(view))

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    @on(Tabs.TabActivated, "#mode-tabs")
    def on_tab_activated(self, event: Tabs.TabActivated) -> None:
        tab = _tab_from_id(event.tab.id)
        if tab is None or tab == self._orchestrator.tab:
            return
        # Mount-time activations can arrive after the tab already moved on.
        if event.tab.id != event.tabs.active:
            return
        self._track_task(self._orchestrator.change_mode(tab))

    @on(Select.Changed, "#movie-category")
    @on(Select.Changed, "#tv-category")
    def on_category_changed(self, event: Select.Changed) -> None:
        value = event.value
        if not isinstance(value, str):
            return
        orchestrator = self._orchestrator
        owner_tab = TAB_MOVIES if event.select.id == "movie-category" else TAB_TV
        current = orchestrator.movie_category if owner_tab == TAB_MOVIES else orchestrator.tv_category
        if owner_tab != orchestrator.tab or value == current:
            return
        self._track_task(orchestrator.change_category(value))

    @on(Select.Changed, "#search-kind")
    def on_search_kind_changed(self, event: Select.Changed) -> None:
        value = event.value
        if not isinstance(value, str) or value == self._orchestrator.search_kind:
            return
        self._track_task(self._orchestrator.change_search_kind(value))

    @on(Input.Submitted, "#search-input")
    def on_search_submitted(self, event: Input.Submitted) -> None:
        self._submit_search(event.value)

    @on(Button.Pressed, "#search-button")
    def on_search_pressed(self) -> None:
        self._submit_search(self._get_search_input_widget().value)

    def _submit_search(self, text: str) -> None:
        self._track_task(self._orchestrator.submit_query(text))

    @on(Button.Pressed, "#prev-page")
    def on_prev_pressed(self) -> None:
        self.action_prev_page()

    @on(Button.Pressed, "#next-page")
    def on_next_pressed(self) -> None:
        self.action_next_page()

    @on(OptionList.OptionSelected, "#result-list")
    def on_result_selected(self, event: OptionList.OptionSelected) -> None:
        index = event.option_index
        if 0 <= index < len(self._row_items):
            self.show_details(self._row_items[index])

    def show_details(self, item: MediaItem) -> None:
        """Open the details dialog for ``item``."""
        if item.media_type not in ("movie", "tv"):
            self.notify("Details are only available for movies and TV shows.", timeout=3)
            return
        self.push_screen(MediaDetailsModal(item, self._services.catalog.fetch_details))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_prev_page(self) -> None:
        view = self.view
        if view.can_go_previous:
            self._track_task(self._orchestrator.go_to_page(view.current_page - 1))

    def action_next_page(self) -> None:
        view = self.view
        if view.can_go_next:
            self._track_task(self._orchestrator.go_to_page(view.current_page + 1))

    def action_show_tab(self, tab: str) -> None:
        if tab not in TAB_KEYS:
            return
        self._get_tabs_widget().active = _tab_id(tab)

    def action_focus_search(self) -> None:
        self.action_show_tab(TAB_SEARCH)
        search_form = self._ui_refs.search_form
        if search_form is not None:
            search_form.display = True
        self._get_search_input_widget().focus()

    def action_focus_results(self) -> None:
        self._get_result_list_widget().focus()

    def action_cursor_down(self) -> None:
        self._get_result_list_widget().action_cursor_down()

    def action_cursor_up(self) -> None:
        self._get_result_list_widget().action_cursor_up()

    def action_cycle_theme(self) -> None:
        """Cycle through available color themes."""
        try:
            idx = THEME_NAMES.index(self._config.theme_name)
        except ValueError:
            idx = 0
        name = apply_theme(THEME_NAMES[(idx + 1) % len(THEME_NAMES)])
        self._config.theme_name = name
        self.theme = name
        # Row markup embeds palette colors.
        self._render_view(self.view)
        self.notify(f"Theme: {name}", timeout=2)


__all__ = [
    "TmdbBrowser",
    "format_status_text",
    "main",
]
