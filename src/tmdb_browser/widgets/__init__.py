"""Widget helpers extracted from app.py for modular UI composition."""

from tmdb_browser.widgets.listing import (
    PREVIEW_OVERVIEW_MAX_LEN,
    build_list_empty_message,
    format_page_label,
    format_popularity,
    render_media_option,
)

__all__ = [
    "PREVIEW_OVERVIEW_MAX_LEN",
    "build_list_empty_message",
    "format_page_label",
    "format_popularity",
    "render_media_option",
]
