"""Service interfaces + default adapters for app-level dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from tmdb_browser.models import MediaDetails, UpstreamPage, UserConfig
from tmdb_browser.services import catalog_service as _catalog
from tmdb_browser.tmdb import TMDB_REQUEST_TIMEOUT, TmdbCredentials, resolve_credentials


@runtime_checkable
class CatalogService(Protocol):
    """Interface for the paginated TMDB catalog consumed by the orchestrator."""

    async def fetch_listing(self, media_type: str, category: str, page: int) -> UpstreamPage:
        """Fetch one upstream page of a category listing."""
        ...

    async def fetch_search(self, search_kind: str, query: str, page: int) -> UpstreamPage:
        """Fetch one upstream page of search results."""
        ...

    async def fetch_details(self, media_type: str, media_id: int) -> MediaDetails:
        """Fetch the full record for one movie or TV show."""
        ...


class DefaultCatalogService:
    """Default adapter that delegates to function-based catalog services.

    ``client`` is assigned by the app once its shared ``httpx.AsyncClient``
    exists; until then each call uses a one-shot client.
    """

    def __init__(
        self,
        credentials: TmdbCredentials,
        *,
        client: httpx.AsyncClient | None = None,
        language: str = "en-US",
        include_adult: bool = False,
        timeout_seconds: float = TMDB_REQUEST_TIMEOUT,
    ) -> None:
        self.credentials = credentials
        self.client = client
        self.language = language
        self.include_adult = include_adult
        self.timeout_seconds = timeout_seconds

    async def fetch_listing(self, media_type: str, category: str, page: int) -> UpstreamPage:
        return await _catalog.fetch_listing(
            client=self.client,
            credentials=self.credentials,
            media_type=media_type,
            category=category,
            page=page,
            language=self.language,
            timeout_seconds=self.timeout_seconds,
        )

    async def fetch_search(self, search_kind: str, query: str, page: int) -> UpstreamPage:
        return await _catalog.fetch_search(
            client=self.client,
            credentials=self.credentials,
            search_kind=search_kind,
            query=query,
            page=page,
            language=self.language,
            include_adult=self.include_adult,
            timeout_seconds=self.timeout_seconds,
        )

    async def fetch_details(self, media_type: str, media_id: int) -> MediaDetails:
        return await _catalog.fetch_details(
            client=self.client,
            credentials=self.credentials,
            media_type=media_type,
            media_id=media_id,
            language=self.language,
            timeout_seconds=self.timeout_seconds,
        )


@dataclass(slots=True)
class AppServices:
    """Aggregated service interfaces consumed by the app layer."""

    catalog: CatalogService


def build_default_app_services(config: UserConfig | None = None) -> AppServices:
    """Build default app services backed by the function-based catalog module."""
    config = config or UserConfig()
    return AppServices(
        catalog=DefaultCatalogService(
            resolve_credentials(config),
            language=config.language,
            include_adult=config.include_adult,
            timeout_seconds=config.request_timeout_seconds,
        )
    )


__all__ = [
    "AppServices",
    "CatalogService",
    "DefaultCatalogService",
    "build_default_app_services",
]
