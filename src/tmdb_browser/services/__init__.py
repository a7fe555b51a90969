"""Internal service layer between the TUI and the TMDB API."""

from tmdb_browser.services.catalog_service import (
    fetch_details,
    fetch_listing,
    fetch_search,
)

__all__ = [
    "fetch_details",
    "fetch_listing",
    "fetch_search",
]
