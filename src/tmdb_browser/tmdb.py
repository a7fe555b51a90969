"""TMDB v3 API client: credentials, requests, and response parsing.

All request helpers accept an ``httpx.AsyncClient`` (or ``None`` for a
one-shot client) and raise on failure: ``httpx.HTTPStatusError`` for
non-2xx responses, ``httpx.HTTPError`` for transport problems and
``ValueError`` for missing credentials or malformed payloads. Callers decide
how to present the failure.
"""

from __future__ import annotations

__all__ = [
    # Constants
    "POSTER_BASE_URL",
    "TMDB_BASE_URL",
    "TMDB_REQUEST_TIMEOUT",
    "TMDB_WEB_URL",
    # Credentials
    "MissingCredentialsError",
    "TmdbCredentials",
    "resolve_credentials",
    # Parsing
    "parse_certification",
    "parse_media_details",
    "parse_media_item",
    "parse_upstream_page",
    # URLs
    "get_poster_url",
    "get_web_url",
    # Requests
    "tmdb_get",
]

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from tmdb_browser.models import MediaDetails, MediaItem, UpstreamPage, UserConfig

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_WEB_URL = "https://www.themoviedb.org"
POSTER_BASE_URL = "https://image.tmdb.org/t/p/w185"
TMDB_REQUEST_TIMEOUT = 15  # seconds
TMDB_API_KEY_ENV = "TMDB_API_KEY"
TMDB_READ_TOKEN_ENV = "TMDB_READ_TOKEN"
CERTIFICATION_COUNTRY = "US"

# ============================================================================
# Credentials
# ============================================================================


class MissingCredentialsError(ValueError):
    """Raised before any request when neither an API key nor a read token is set."""


@dataclass(frozen=True, slots=True)
class TmdbCredentials:
    """TMDB credentials. A v4 read token is preferred over a v3 API key."""

    api_key: str = ""
    read_token: str = ""

    @property
    def kind(self) -> str:
        if self.read_token:
            return "bearer"
        if self.api_key:
            return "api_key"
        return "missing"

    def require(self) -> None:
        if self.kind == "missing":
            raise MissingCredentialsError(
                f"Missing TMDB credentials. Set {TMDB_API_KEY_ENV} or {TMDB_READ_TOKEN_ENV}."
            )

    def headers(self) -> dict[str, str]:
        if self.kind == "bearer":
            return {"Authorization": f"Bearer {self.read_token}"}
        return {}

    def params(self) -> dict[str, str]:
        if self.kind == "api_key":
            return {"api_key": self.api_key}
        return {}


def resolve_credentials(
    config: UserConfig | None = None, environ: Mapping[str, str] | None = None
) -> TmdbCredentials:
    """Merge credentials from the environment over those stored in config."""
    env = os.environ if environ is None else environ
    api_key = env.get(TMDB_API_KEY_ENV, "").strip()
    read_token = env.get(TMDB_READ_TOKEN_ENV, "").strip()
    if config is not None:
        api_key = api_key or config.tmdb_api_key.strip()
        read_token = read_token or config.tmdb_read_token.strip()
    return TmdbCredentials(api_key=api_key, read_token=read_token)


# ============================================================================
# Response Parsing
# ============================================================================


def _str_field(data: dict[str, Any], *keys: str) -> str:
    """Return the first non-empty string among ``keys``."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def _int_field(data: dict[str, Any], key: str, default: int = 0) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        return default
    return int(value)


def parse_media_item(item: Any, default_media_type: str = "movie") -> MediaItem | None:
    """Parse one result entry. Returns None if it has no usable id."""
    if not isinstance(item, dict):
        return None
    media_id = item.get("id")
    if isinstance(media_id, bool) or not isinstance(media_id, int):
        return None

    media_type = item.get("media_type")
    if not isinstance(media_type, str) or not media_type:
        media_type = default_media_type

    popularity = item.get("popularity")
    if isinstance(popularity, bool) or not isinstance(popularity, int | float):
        popularity = None

    poster_path = item.get("poster_path")
    if not isinstance(poster_path, str) or not poster_path:
        poster_path = None

    return MediaItem(
        id=media_id,
        media_type=media_type,
        title=_str_field(item, "title", "name", "original_title", "original_name") or "Untitled",
        popularity=float(popularity) if popularity is not None else None,
        release_date=_str_field(item, "release_date", "first_air_date"),
        poster_path=poster_path,
        overview=_str_field(item, "overview"),
    )


def parse_upstream_page(data: Any, default_media_type: str = "movie") -> UpstreamPage:
    """Parse a paginated TMDB list/search payload.

    Raises:
        ValueError: If the payload is not a JSON object.
    """
    if not isinstance(data, dict):
        raise ValueError("TMDB returned a non-object payload")
    raw_results = data.get("results")
    if not isinstance(raw_results, list):
        raw_results = []
    items: list[MediaItem] = []
    for raw in raw_results:
        parsed = parse_media_item(raw, default_media_type)
        if parsed is not None:
            items.append(parsed)
    return UpstreamPage(
        items=items,
        page=max(1, _int_field(data, "page", 1)),
        total_pages=max(1, _int_field(data, "total_pages", 1)),
        total_results=max(0, _int_field(data, "total_results", 0)),
    )


def parse_certification(data: Any, country: str = CERTIFICATION_COUNTRY) -> str:
    """Pick the first non-empty certification for ``country`` from /release_dates."""
    if not isinstance(data, dict):
        return ""
    results = data.get("results")
    if not isinstance(results, list):
        return ""
    for entry in results:
        if not isinstance(entry, dict) or entry.get("iso_3166_1") != country:
            continue
        release_dates = entry.get("release_dates")
        if not isinstance(release_dates, list):
            return ""
        for release in release_dates:
            if isinstance(release, dict):
                certification = release.get("certification")
                if isinstance(certification, str) and certification.strip():
                    return certification.strip()
    return ""


def parse_media_details(data: Any, media_type: str) -> MediaDetails:
    """Parse a /movie/{id} or /tv/{id} payload.

    Raises:
        ValueError: If the payload has no usable id.
    """
    if not isinstance(data, dict):
        raise ValueError("TMDB returned a non-object payload")
    media_id = data.get("id")
    if isinstance(media_id, bool) or not isinstance(media_id, int):
        raise ValueError("TMDB details payload is missing an id")

    genres = data.get("genres")
    genre_names = (
        tuple(g["name"] for g in genres if isinstance(g, dict) and isinstance(g.get("name"), str))
        if isinstance(genres, list)
        else ()
    )

    runtime: int | None = None
    if media_type == "movie":
        raw_runtime = _int_field(data, "runtime", 0)
        runtime = raw_runtime or None
    else:
        episode_runtimes = data.get("episode_run_time")
        if isinstance(episode_runtimes, list):
            runtime = next((r for r in episode_runtimes if isinstance(r, int) and r > 0), None)

    vote_average = data.get("vote_average")
    if isinstance(vote_average, bool) or not isinstance(vote_average, int | float):
        vote_average = None

    poster_path = data.get("poster_path")
    if not isinstance(poster_path, str) or not poster_path:
        poster_path = None

    return MediaDetails(
        id=media_id,
        media_type=media_type,
        title=_str_field(data, "title", "name", "original_title", "original_name") or "Untitled",
        tagline=_str_field(data, "tagline"),
        overview=_str_field(data, "overview"),
        genres=genre_names,
        release_date=_str_field(data, "release_date", "first_air_date"),
        runtime_minutes=runtime,
        vote_average=float(vote_average) if vote_average is not None else None,
        vote_count=max(0, _int_field(data, "vote_count", 0)),
        status=_str_field(data, "status"),
        poster_path=poster_path,
        homepage=_str_field(data, "homepage"),
    )


# ============================================================================
# URLs
# ============================================================================


def get_poster_url(poster_path: str | None) -> str | None:
    """Return the w185 poster URL, or None when the record has no poster."""
    if not poster_path:
        return None
    return f"{POSTER_BASE_URL}{poster_path}"


def get_web_url(media_type: str, media_id: int) -> str:
    """Return the public themoviedb.org page for a record."""
    return f"{TMDB_WEB_URL}/{media_type}/{media_id}"


# ============================================================================
# Requests
# ============================================================================


async def tmdb_get(
    path: str,
    *,
    client: httpx.AsyncClient | None,
    credentials: TmdbCredentials,
    params: Mapping[str, Any] | None = None,
    language: str = "en-US",
    timeout_seconds: float = TMDB_REQUEST_TIMEOUT,
) -> Any:
    """GET a TMDB v3 path and return the decoded JSON body."""
    credentials.require()
    query: dict[str, Any] = {"language": language}
    if params:
        query.update(params)
    query.update(credentials.params())
    url = f"{TMDB_BASE_URL}{path}"
    headers = credentials.headers()

    logger.debug("TMDB GET %s page=%s", path, query.get("page"))
    if client is not None:
        response = await client.get(url, params=query, headers=headers, timeout=timeout_seconds)
    else:
        async with httpx.AsyncClient() as tmp_client:
            response = await tmp_client.get(
                url, params=query, headers=headers, timeout=timeout_seconds
            )

    response.raise_for_status()
    try:
        return response.json()
    except ValueError as exc:
        raise ValueError(f"TMDB returned invalid JSON for {path}") from exc
