"""Modal dialogs for the TMDB Browser TUI.

Import modals from this package: ``from tmdb_browser.modals import MediaDetailsModal``
"""

from tmdb_browser.modals.details import MediaDetailsModal, render_media_details

__all__ = [
    "MediaDetailsModal",
    "render_media_details",
]
