"""Local/upstream page arithmetic and request-token arbitration.

The UI pages through results ``LOCAL_PAGE_SIZE`` at a time while TMDB serves
fixed pages of ``UPSTREAM_PAGE_SIZE``. ``translate_page`` maps one onto the
other. When the upstream size is a whole multiple of the local size (the
deployed 20:10 case) every local page lives inside exactly one upstream page.
Other ratios are handled on absolute item indices: a local page may then
straddle two upstream pages, and ``upstream_spans`` lists every slice needed.

``RequestArbiter`` hands out strictly increasing tokens per stream so an async
fetch can tell, on arrival, whether a newer operation has superseded it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

STREAM_LIST = "list"
STREAM_SEARCH = "search"


@dataclass(frozen=True, slots=True)
class PageLocation:
    """Where a local page starts inside the upstream result sequence."""

    upstream_page: int
    offset: int


@dataclass(frozen=True, slots=True)
class UpstreamSpan:
    """A ``[start, stop)`` slice of one upstream page."""

    upstream_page: int
    start: int
    stop: int


def _validate(local_page: int, local_page_size: int, upstream_page_size: int) -> None:
    if local_page < 1:
        raise ValueError(f"local_page must be >= 1, got {local_page}")
    if local_page_size < 1 or upstream_page_size < 1:
        raise ValueError(
            f"page sizes must be positive, got local={local_page_size} "
            f"upstream={upstream_page_size}"
        )


def is_aligned(local_page_size: int, upstream_page_size: int) -> bool:
    """Return True when every local page fits inside a single upstream page."""
    return upstream_page_size % local_page_size == 0


def translate_page(local_page: int, local_page_size: int, upstream_page_size: int) -> PageLocation:
    """Map a 1-based local page to its upstream page and in-page offset.

    For an integer ratio ``r = upstream // local`` this is
    ``(ceil(local_page / r), ((local_page - 1) % r) * local_page_size)``.

    >>> translate_page(3, 10, 20)
    PageLocation(upstream_page=2, offset=0)
    >>> translate_page(4, 10, 20)
    PageLocation(upstream_page=2, offset=10)
    """
    _validate(local_page, local_page_size, upstream_page_size)
    start = (local_page - 1) * local_page_size
    return PageLocation(
        upstream_page=start // upstream_page_size + 1,
        offset=start % upstream_page_size,
    )


def upstream_spans(
    local_page: int, local_page_size: int, upstream_page_size: int
) -> list[UpstreamSpan]:
    """List the upstream slices that, concatenated, make up ``local_page``."""
    _validate(local_page, local_page_size, upstream_page_size)
    start = (local_page - 1) * local_page_size
    end = start + local_page_size
    spans: list[UpstreamSpan] = []
    while start < end:
        page_index = start // upstream_page_size
        page_end = (page_index + 1) * upstream_page_size
        stop = min(end, page_end)
        spans.append(
            UpstreamSpan(
                upstream_page=page_index + 1,
                start=start - page_index * upstream_page_size,
                stop=stop - page_index * upstream_page_size,
            )
        )
        start = stop
    return spans


class RequestArbiter:
    """Per-stream monotonically increasing request tokens.

    Streams are independent: beginning a ``"search"`` operation never
    invalidates an in-flight ``"list"`` one.
    """

    def __init__(self) -> None:
        self._latest: dict[str, int] = {}

    def begin(self, stream: str) -> int:
        """Start a new logical operation on ``stream`` and return its token."""
        token = self._latest.get(stream, 0) + 1
        self._latest[stream] = token
        return token

    def latest(self, stream: str) -> int:
        return self._latest.get(stream, 0)

    def is_current(self, stream: str, token: int) -> bool:
        current = token == self._latest.get(stream, 0)
        if not current:
            logger.debug("Discarding stale %s response (token %d)", stream, token)
        return current

    def invalidate(self, *streams: str) -> None:
        """Supersede whatever is in flight on ``streams`` without issuing a token."""
        for stream in streams:
            self._latest[stream] = self._latest.get(stream, 0) + 1


__all__ = [
    "STREAM_LIST",
    "STREAM_SEARCH",
    "PageLocation",
    "RequestArbiter",
    "UpstreamSpan",
    "is_aligned",
    "translate_page",
    "upstream_spans",
]
