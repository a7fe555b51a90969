"""Details modal for a single movie or TV show."""

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Awaitable, Callable

import httpx
from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static

from tmdb_browser.action_messages import build_actionable_error
from tmdb_browser.models import MediaDetails, MediaItem
from tmdb_browser.query import escape_rich_text
from tmdb_browser.themes import THEME_COLORS
from tmdb_browser.tmdb import get_poster_url, get_web_url
from tmdb_browser.widgets.listing import format_popularity

logger = logging.getLogger(__name__)

DetailsFetcher = Callable[[str, int], Awaitable[MediaDetails]]


def render_media_details(details: MediaDetails, popularity: float | None = None) -> str:
    """Render the body of the details modal as Rich markup."""
    accent = THEME_COLORS["accent"]
    lines = [f"[bold {accent}]{escape_rich_text(details.title)}[/]"]
    if details.tagline:
        lines.append(f"[italic]{escape_rich_text(details.tagline)}[/]")
    lines.append("")

    facts: list[tuple[str, str]] = [
        ("Type", "Movie" if details.media_type == "movie" else "TV Show"),
        ("Release Date", details.release_date or "—"),
        ("Status", details.status or "—"),
        ("Genres", ", ".join(details.genres) or "—"),
        ("Popularity", format_popularity(popularity)),
    ]
    if details.runtime_minutes:
        facts.append(("Runtime", f"{details.runtime_minutes} min"))
    if details.vote_average is not None:
        facts.append(("Rating", f"{details.vote_average:.1f}/10 ({details.vote_count} votes)"))
    if details.certification:
        facts.append(("Certification", details.certification))
    for label, value in facts:
        lines.append(f"[bold]{label}:[/] {escape_rich_text(value)}")

    poster = get_poster_url(details.poster_path)
    lines.append(f"[bold]Poster:[/] {escape_rich_text(poster) if poster else 'No Image'}")
    if details.homepage:
        lines.append(f"[bold]Homepage:[/] {escape_rich_text(details.homepage)}")
    lines.append("")
    lines.append(escape_rich_text(details.overview) or "[dim italic]No overview available.[/]")
    return "\n".join(lines)


class MediaDetailsModal(ModalScreen[None]):
    """Modal that fetches and shows the full record behind a result row."""

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("o", "open_web", "Open on TMDB"),
    ]

    CSS = """
    MediaDetailsModal {
        align: center middle;
    }

    #details-dialog {
        width: 80%;
        height: 80%;
        min-width: 60;
        background: $th-background;
        border: tall $th-accent;
        padding: 0 2;
    }

    #details-header {
        text-style: bold;
        color: $th-accent;
        margin-bottom: 1;
    }

    #details-scroll {
        height: 1fr;
        background: $th-panel;
    }

    #details-body {
        padding: 0 1;
    }

    #details-buttons {
        height: auto;
        margin-top: 1;
        align: right middle;
    }

    #details-buttons Button {
        margin-left: 1;
    }
    """

    def __init__(self, item: MediaItem, fetch_details: DetailsFetcher) -> None:
        super().__init__()
        self._item = item
        self._fetch_details = fetch_details
        self.details: MediaDetails | None = None
        self.error: str = ""

    def compose(self) -> ComposeResult:
        with Vertical(id="details-dialog"):
            yield Label("More Details", id="details-header")
            with VerticalScroll(id="details-scroll"):
                yield Static("[dim italic]Loading details...[/]", id="details-body")
            with Horizontal(id="details-buttons"):
                yield Button("Open on TMDB (o)", variant="primary", id="details-open-btn")
                yield Button("Close (Esc)", variant="default", id="details-close-btn")

    def on_mount(self) -> None:
        self.app._track_task(self.load_details())  # type: ignore[attr-defined]

    async def load_details(self) -> None:
        """Fetch the record and render it, or render a failure message."""
        item = self._item
        try:
            details = await self._fetch_details(item.media_type, item.id)
        except (httpx.HTTPError, OSError, ValueError):
            logger.warning(
                "Details fetch failed for %s %d", item.media_type, item.id, exc_info=True
            )
            self.error = build_actionable_error(
                "load details",
                why="the TMDB request failed",
                next_step="close this dialog and try again",
            )
            if self.is_attached:
                body = f"[{THEME_COLORS['pink']}]{escape_rich_text(self.error)}[/]"
                self.query_one("#details-body", Static).update(body)
            return
        self.details = details
        if self.is_attached:
            self.query_one("#details-body", Static).update(
                render_media_details(details, item.popularity)
            )

    def action_close(self) -> None:
        self.dismiss(None)

    def action_open_web(self) -> None:
        webbrowser.open(get_web_url(self._item.media_type, self._item.id))

    @on(Button.Pressed, "#details-close-btn")
    def on_close_pressed(self) -> None:
        self.action_close()

    @on(Button.Pressed, "#details-open-btn")
    def on_open_pressed(self) -> None:
        self.action_open_web()
