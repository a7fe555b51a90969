"""End-to-end TUI tests driving TmdbBrowser through Textual's run_test() pilot."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest
from textual.widgets import Button, Input, Label, OptionList, Static, Tabs

from tmdb_browser.app import TmdbBrowser, format_status_text
from tmdb_browser.modals import MediaDetailsModal
from tmdb_browser.models import (
    TAB_MOVIES,
    TAB_SEARCH,
    TAB_TV,
    BrowseView,
    MediaDetails,
    SessionState,
    UserConfig,
)
from tmdb_browser.query import SEARCH_REQUIRED_MESSAGE
from tmdb_browser.services.interfaces import AppServices
from tmdb_browser.themes import CATPPUCCIN_MOCHA_THEME, THEME_COLORS, apply_theme


def _make_app(fake_catalog, **kwargs) -> TmdbBrowser:
    kwargs.setdefault("config", UserConfig(tmdb_api_key="test-key"))
    return TmdbBrowser(services=AppServices(catalog=fake_catalog), **kwargs)


async def _settle(app: TmdbBrowser, pilot) -> None:
    """Let queued messages run, then drain fetch tasks and repaint."""
    await pilot.pause()
    await app.wait_for_background_tasks()
    await pilot.pause()


def _option_texts(app: TmdbBrowser) -> list[str]:
    option_list = app.query_one("#result-list", OptionList)
    return [
        str(option_list.get_option_at_index(i).prompt) for i in range(option_list.option_count)
    ]


def test_format_status_text_states() -> None:
    assert format_status_text(BrowseView(is_loading=True)) == "Loading..."
    assert format_status_text(BrowseView(error="boom")) == "Request failed"
    assert format_status_text(BrowseView(tab=TAB_SEARCH)) == "Enter a title and press Search"
    view = BrowseView(tab=TAB_SEARCH, has_searched=True, estimated_total=25, current_page=2)
    assert format_status_text(view, "alien") == 'Page 2 of 3 · "alien" · 25 results'


class TestInitialLoad:
    async def test_first_page_of_restored_tab_is_rendered(self, fake_catalog, make_page):
        fake_catalog.add_listing("movie", "now_playing", 1, make_page(20, total_pages=3))
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                texts = _option_texts(app)
                assert len(texts) == 10
                assert "Item 1" in texts[0]
                assert "Item 10" in texts[9]
                assert "Page 1 of 6" in str(app.query_one("#page-label", Label).content)
                assert not app.query_one("#pager").has_class("hidden")

    async def test_session_tab_and_category_are_restored(self, fake_catalog, make_page):
        fake_catalog.add_listing("tv", "top_rated", 1, make_page(4, total_results=4))
        config = UserConfig(
            tmdb_api_key="k", session=SessionState(active_tab=TAB_TV, tv_category="top_rated")
        )
        app = _make_app(fake_catalog, config=config)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                assert fake_catalog.calls == [("listing", "tv", "top_rated", 1)]
                assert app.query_one("#mode-tabs", Tabs).active == "tab-tv"
                assert app.query_one("#tv-category").display
                assert not app.query_one("#movie-category").display
                assert app.query_one("#pager").has_class("hidden")

    async def test_no_restore_starts_on_default_tab(self, fake_catalog):
        config = UserConfig(tmdb_api_key="k", session=SessionState(active_tab=TAB_TV))
        app = _make_app(fake_catalog, config=config, restore_session=False)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                assert app.orchestrator.tab == TAB_MOVIES
                assert fake_catalog.calls == [("listing", "movie", "now_playing", 1)]

    async def test_initial_query_runs_combined_search(self, fake_catalog, make_page):
        fake_catalog.add_search(
            "multi", "alien", 1, make_page(3, media_types=["movie", "person", "tv"])
        )
        app = _make_app(fake_catalog, initial_query="alien")
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                assert app.orchestrator.tab == TAB_SEARCH
                assert app.query_one("#search-input", Input).value == "alien"
                texts = _option_texts(app)
                assert len(texts) == 2
                assert "MOVIE" in texts[0]
                assert "TV" in texts[1]

    async def test_fetch_failure_shows_error_banner(self, fake_catalog):
        fake_catalog.fail("listing", "movie", "now_playing", 1, exc=httpx.ConnectError("down"))
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                banner = app.query_one("#api-error", Label)
                assert banner.has_class("visible")
                assert "Could not load movies." in str(banner.content)
                assert "Could not load movies." in _option_texts(app)[0]
                assert str(app.query_one("#status-bar", Label).content) == "Request failed"


class TestNavigation:
    async def test_number_key_switches_tab(self, fake_catalog, make_page):
        fake_catalog.add_listing("tv", "popular", 1, make_page(5, start_id=100, total_results=5))
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                await pilot.press("3")
                await _settle(app, pilot)
                assert app.orchestrator.tab == TAB_TV
                assert ("listing", "tv", "popular", 1) in fake_catalog.calls
                assert "Item 100" in _option_texts(app)[0]

    async def test_search_tab_prompts_before_first_search(self, fake_catalog):
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                await pilot.press("2")
                await _settle(app, pilot)
                assert app.orchestrator.tab == TAB_SEARCH
                assert app.query_one("#search-form").display
                assert "Please initiate a search." in _option_texts(app)[0]
                assert not any(call[0] == "search" for call in fake_catalog.calls)

    async def test_next_and_previous_page(self, fake_catalog, make_page):
        fake_catalog.add_listing("movie", "now_playing", 1, make_page(20, total_pages=3))
        fake_catalog.add_listing(
            "movie", "now_playing", 2, make_page(20, start_id=21, page=2, total_pages=3)
        )
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                assert not app.query_one("#prev-page", Button).display

                app.action_next_page()
                await _settle(app, pilot)
                assert app.view.current_page == 2
                assert "Item 11" in _option_texts(app)[0]
                assert app.query_one("#prev-page", Button).display

                app.action_next_page()
                await _settle(app, pilot)
                assert app.view.current_page == 3
                assert "Item 21" in _option_texts(app)[0]

                app.action_prev_page()
                await _settle(app, pilot)
                assert app.view.current_page == 2
                assert fake_catalog.calls.count(("listing", "movie", "now_playing", 1)) == 3

    async def test_next_page_is_ignored_on_last_page(self, fake_catalog, make_page):
        fake_catalog.add_listing("movie", "now_playing", 1, make_page(8, total_results=8))
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                app.action_next_page()
                await _settle(app, pilot)
                assert app.view.current_page == 1
                assert len(fake_catalog.calls) == 1


class TestSearch:
    async def test_typed_search_submits_query(self, fake_catalog, make_page):
        fake_catalog.add_search("multi", "alien", 1, make_page(12))
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                await pilot.press("slash")
                for ch in "alien":
                    await pilot.press(ch)
                await pilot.press("enter")
                await _settle(app, pilot)

                assert app.orchestrator.query == "alien"
                assert ("search", "multi", "alien", 1) in fake_catalog.calls
                assert len(_option_texts(app)) == 10
                status = str(app.query_one("#status-bar", Label).content)
                assert '"alien"' in status
                assert "12 results" in status

    async def test_blank_search_shows_validation_message(self, fake_catalog):
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                await pilot.press("slash")
                await pilot.press("space", "enter")
                await _settle(app, pilot)

                label = app.query_one("#validation-error", Label)
                assert label.has_class("visible")
                assert str(label.content) == SEARCH_REQUIRED_MESSAGE
                assert not any(call[0] == "search" for call in fake_catalog.calls)

    async def test_search_button_uses_input_text(self, fake_catalog, make_page):
        fake_catalog.add_search("multi", "heat", 1, make_page(1, total_results=1))
        app = _make_app(fake_catalog, session=SessionState(active_tab=TAB_SEARCH))
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                app.query_one("#search-input", Input).value = "  heat "
                app.query_one("#search-button", Button).press()
                await _settle(app, pilot)
                assert ("search", "multi", "heat", 1) in fake_catalog.calls
                assert not app.query_one("#validation-error", Label).has_class("visible")


class TestDetailsModal:
    async def test_selecting_a_row_opens_details(self, fake_catalog, make_page):
        fake_catalog.add_listing("movie", "now_playing", 1, make_page(3, total_results=3))
        fake_catalog.details[("movie", 1)] = MediaDetails(
            id=1, media_type="movie", title="Item 1", genres=("Drama",), runtime_minutes=95
        )
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                await pilot.press("enter")
                await _settle(app, pilot)

                modal = app.screen
                assert isinstance(modal, MediaDetailsModal)
                assert modal.details is not None
                body = str(modal.query_one("#details-body", Static).content)
                assert "Drama" in body
                assert "95 min" in body

                await pilot.press("escape")
                await pilot.pause()
                assert not isinstance(app.screen, MediaDetailsModal)

    async def test_details_failure_is_reported_in_modal(self, fake_catalog, make_item):
        fake_catalog.fail("details", "tv", 7, exc=httpx.ConnectError("down"))
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                app.show_details(make_item(id=7, media_type="tv"))
                await _settle(app, pilot)

                modal = app.screen
                assert isinstance(modal, MediaDetailsModal)
                assert modal.details is None
                assert modal.error.startswith("Could not load details.")

    async def test_open_web_uses_tmdb_url(self, fake_catalog, make_item):
        fake_catalog.details[("movie", 5)] = MediaDetails(id=5, media_type="movie", title="X")
        app = _make_app(fake_catalog)
        with (
            patch("tmdb_browser.app.save_config", return_value=True),
            patch("tmdb_browser.modals.details.webbrowser.open") as open_url,
        ):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                app.show_details(make_item(id=5))
                await _settle(app, pilot)
                await pilot.press("o")
                await pilot.pause()
        open_url.assert_called_once_with("https://www.themoviedb.org/movie/5")

    async def test_person_rows_do_not_open_details(self, fake_catalog, make_item):
        app = _make_app(fake_catalog)
        with patch("tmdb_browser.app.save_config", return_value=True):
            async with app.run_test() as pilot:
                await _settle(app, pilot)
                app.show_details(make_item(id=9, media_type="person"))
                await pilot.pause()
                assert not isinstance(app.screen, MediaDetailsModal)
                assert ("details", "person", 9) not in fake_catalog.calls


@pytest.mark.asyncio
async def test_session_is_saved_on_exit(fake_catalog):
    app = _make_app(fake_catalog)
    saver = MagicMock(return_value=True)
    with patch("tmdb_browser.app.save_config", saver):
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            await pilot.press("3")
            await _settle(app, pilot)

    saver.assert_called_once()
    saved: UserConfig = saver.call_args.args[0]
    assert saved.session.active_tab == TAB_TV
    assert saved.tmdb_api_key == "test-key"


@pytest.fixture
def _restore_theme():
    yield
    apply_theme("monokai")


@pytest.mark.asyncio
@pytest.mark.usefixtures("_restore_theme")
async def test_ctrl_t_cycles_theme_and_persists_it(fake_catalog, make_page):
    fake_catalog.add_listing("movie", "now_playing", 1, make_page(3, total_results=3))
    app = _make_app(fake_catalog)
    saver = MagicMock(return_value=True)
    with patch("tmdb_browser.app.save_config", saver):
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            await pilot.press("ctrl+t")
            await pilot.pause()
            assert app.theme == "catppuccin-mocha"
            assert THEME_COLORS["accent"] == CATPPUCCIN_MOCHA_THEME["accent"]

            await pilot.press("ctrl+t", "ctrl+t")
            await pilot.pause()
            assert app.theme == "monokai"
            await pilot.press("ctrl+t")
            await pilot.pause()

    saved: UserConfig = saver.call_args.args[0]
    assert saved.theme_name == "catppuccin-mocha"
