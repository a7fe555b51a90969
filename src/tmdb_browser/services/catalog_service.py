"""Internal TMDB catalog service helpers for listings, searches, and details."""

from __future__ import annotations

import httpx

from tmdb_browser.models import MediaDetails, UpstreamPage
from tmdb_browser.tmdb import (
    TMDB_REQUEST_TIMEOUT,
    TmdbCredentials,
    parse_certification,
    parse_media_details,
    parse_upstream_page,
    tmdb_get,
)

LISTING_MEDIA_TYPES = ("movie", "tv")


async def fetch_listing(
    *,
    client: httpx.AsyncClient | None,
    credentials: TmdbCredentials,
    media_type: str,
    category: str,
    page: int,
    language: str = "en-US",
    timeout_seconds: float = TMDB_REQUEST_TIMEOUT,
) -> UpstreamPage:
    """Fetch one upstream page of a movie or TV category listing."""
    if media_type not in LISTING_MEDIA_TYPES:
        raise ValueError(f"Unsupported listing media type: {media_type!r}")
    data = await tmdb_get(
        f"/{media_type}/{category}",
        client=client,
        credentials=credentials,
        params={"page": page},
        language=language,
        timeout_seconds=timeout_seconds,
    )
    return parse_upstream_page(data, default_media_type=media_type)


async def fetch_search(
    *,
    client: httpx.AsyncClient | None,
    credentials: TmdbCredentials,
    search_kind: str,
    query: str,
    page: int,
    language: str = "en-US",
    include_adult: bool = False,
    timeout_seconds: float = TMDB_REQUEST_TIMEOUT,
) -> UpstreamPage:
    """Fetch one upstream page of ``/search/{kind}`` results."""
    data = await tmdb_get(
        f"/search/{search_kind}",
        client=client,
        credentials=credentials,
        params={
            "query": query,
            "page": page,
            "include_adult": "true" if include_adult else "false",
        },
        language=language,
        timeout_seconds=timeout_seconds,
    )
    # Multi results carry their own media_type; single-kind ones do not.
    default_type = search_kind if search_kind in LISTING_MEDIA_TYPES else "movie"
    return parse_upstream_page(data, default_media_type=default_type)


async def fetch_details(
    *,
    client: httpx.AsyncClient | None,
    credentials: TmdbCredentials,
    media_type: str,
    media_id: int,
    language: str = "en-US",
    timeout_seconds: float = TMDB_REQUEST_TIMEOUT,
) -> MediaDetails:
    """Fetch a movie or TV show record, plus its US certification for movies."""
    if media_type not in LISTING_MEDIA_TYPES:
        raise ValueError(f"Unsupported details media type: {media_type!r}")
    data = await tmdb_get(
        f"/{media_type}/{media_id}",
        client=client,
        credentials=credentials,
        language=language,
        timeout_seconds=timeout_seconds,
    )
    details = parse_media_details(data, media_type)
    if media_type == "movie":
        release_dates = await tmdb_get(
            f"/movie/{media_id}/release_dates",
            client=client,
            credentials=credentials,
            language=language,
            timeout_seconds=timeout_seconds,
        )
        details.certification = parse_certification(release_dates)
    return details


__all__ = [
    "LISTING_MEDIA_TYPES",
    "fetch_details",
    "fetch_listing",
    "fetch_search",
]
