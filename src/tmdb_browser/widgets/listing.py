"""List rendering helpers for result rows, empty states, and the pager."""

from __future__ import annotations

from tmdb_browser.models import BrowseView, MediaItem
from tmdb_browser.query import escape_rich_text, truncate_text
from tmdb_browser.themes import THEME_COLORS, get_media_type_color

PREVIEW_OVERVIEW_MAX_LEN = 120  # Max overview preview length in list rows

_MEDIA_TYPE_LABELS: dict[str, str] = {
    "movie": "MOVIE",
    "tv": "TV",
}


def format_popularity(popularity: float | None) -> str:
    """Format popularity with three decimals, or an em dash when unknown."""
    if popularity is None:
        return "—"
    return f"{popularity:.3f}"


def _render_title_line(item: MediaItem, show_media_type: bool) -> str:
    title = f"[bold]{escape_rich_text(item.title)}[/]"
    if not show_media_type:
        return title
    label = _MEDIA_TYPE_LABELS.get(item.media_type, item.media_type.upper())
    return f"[{get_media_type_color(item.media_type)}]{label}[/] {title}"


def _render_meta_line(item: MediaItem) -> str:
    parts = [
        f"Popularity: [{THEME_COLORS['accent']}]{format_popularity(item.popularity)}[/]",
        f"Release Date: {escape_rich_text(item.release_date)}",
    ]
    if not item.poster_path:
        parts.append(f"[{THEME_COLORS['muted']}]No Image[/]")
    return "  ".join(parts)


def render_media_option(
    item: MediaItem,
    *,
    show_media_type: bool = False,
    show_overview: bool = False,
) -> str:
    """Render a result row as Rich markup for OptionList display."""
    lines = [_render_title_line(item, show_media_type), _render_meta_line(item)]
    if show_overview and item.overview:
        overview = truncate_text(item.overview, PREVIEW_OVERVIEW_MAX_LEN)
        lines.append(f"[dim italic]{escape_rich_text(overview)}[/]")
    return "\n".join(lines)


def build_list_empty_message(view: BrowseView) -> str:
    """Build the placeholder shown when the result list has no rows."""
    if view.awaiting_search:
        return (
            "[bold]Please initiate a search.[/]\n"
            "[dim]Try: press [bold]/[/bold] and enter a movie or TV show name.[/]"
        )
    if view.is_loading:
        return "[dim italic]Loading...[/]"
    if view.error:
        return f"[{THEME_COLORS['pink']}]{escape_rich_text(view.error)}[/]"
    return "[dim italic]No results found.[/]"


def format_page_label(view: BrowseView) -> str:
    """Build the pager caption, e.g. ``Page 2 of 7``."""
    return f"Page {view.current_page} of {view.total_pages}"


__all__ = [
    "PREVIEW_OVERVIEW_MAX_LEN",
    "build_list_empty_message",
    "format_page_label",
    "format_popularity",
    "render_media_option",
]
