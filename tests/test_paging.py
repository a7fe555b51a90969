"""Tests for local/upstream page translation and request arbitration."""

from __future__ import annotations

import pytest

from tmdb_browser.paging import (
    STREAM_LIST,
    STREAM_SEARCH,
    PageLocation,
    RequestArbiter,
    UpstreamSpan,
    is_aligned,
    translate_page,
    upstream_spans,
)


class TestTranslatePage:
    @pytest.mark.parametrize(
        ("local_page", "expected"),
        [
            (1, PageLocation(upstream_page=1, offset=0)),
            (2, PageLocation(upstream_page=1, offset=10)),
            (3, PageLocation(upstream_page=2, offset=0)),
            (4, PageLocation(upstream_page=2, offset=10)),
            (7, PageLocation(upstream_page=4, offset=0)),
        ],
    )
    def test_deployed_ratio(self, local_page, expected):
        assert translate_page(local_page, 10, 20) == expected

    def test_equal_sizes_map_one_to_one(self):
        assert translate_page(5, 20, 20) == PageLocation(upstream_page=5, offset=0)

    def test_ratio_of_four(self):
        assert translate_page(6, 5, 20) == PageLocation(upstream_page=2, offset=5)

    def test_non_integer_ratio_uses_absolute_index(self):
        # local page 3 of size 15 starts at item 30 -> upstream page 2, offset 10
        assert translate_page(3, 15, 20) == PageLocation(upstream_page=2, offset=10)

    @pytest.mark.parametrize(
        ("local_page", "local_size", "upstream_size"),
        [(0, 10, 20), (-1, 10, 20), (1, 0, 20), (1, 10, 0)],
    )
    def test_rejects_invalid_input(self, local_page, local_size, upstream_size):
        with pytest.raises(ValueError):
            translate_page(local_page, local_size, upstream_size)


class TestUpstreamSpans:
    def test_aligned_page_is_single_span(self):
        assert upstream_spans(2, 10, 20) == [UpstreamSpan(upstream_page=1, start=10, stop=20)]

    def test_straddling_page_needs_two_spans(self):
        assert upstream_spans(2, 15, 20) == [
            UpstreamSpan(upstream_page=1, start=15, stop=20),
            UpstreamSpan(upstream_page=2, start=0, stop=10),
        ]

    def test_local_larger_than_upstream(self):
        spans = upstream_spans(1, 50, 20)
        assert [s.upstream_page for s in spans] == [1, 2, 3]
        assert sum(s.stop - s.start for s in spans) == 50

    def test_first_span_matches_translate_page(self):
        location = translate_page(3, 15, 20)
        first = upstream_spans(3, 15, 20)[0]
        assert (first.upstream_page, first.start) == (location.upstream_page, location.offset)

    def test_rejects_page_zero(self):
        with pytest.raises(ValueError):
            upstream_spans(0, 10, 20)


def test_is_aligned():
    assert is_aligned(10, 20)
    assert is_aligned(20, 20)
    assert not is_aligned(15, 20)


class TestRequestArbiter:
    def test_tokens_strictly_increase(self):
        arbiter = RequestArbiter()
        first = arbiter.begin(STREAM_SEARCH)
        second = arbiter.begin(STREAM_SEARCH)
        assert second > first
        assert arbiter.latest(STREAM_SEARCH) == second

    def test_only_latest_token_is_current(self):
        arbiter = RequestArbiter()
        old = arbiter.begin(STREAM_LIST)
        new = arbiter.begin(STREAM_LIST)
        assert not arbiter.is_current(STREAM_LIST, old)
        assert arbiter.is_current(STREAM_LIST, new)

    def test_streams_are_independent(self):
        arbiter = RequestArbiter()
        list_token = arbiter.begin(STREAM_LIST)
        arbiter.begin(STREAM_SEARCH)
        arbiter.begin(STREAM_SEARCH)
        assert arbiter.is_current(STREAM_LIST, list_token)

    def test_invalidate_supersedes_in_flight_tokens(self):
        arbiter = RequestArbiter()
        list_token = arbiter.begin(STREAM_LIST)
        search_token = arbiter.begin(STREAM_SEARCH)
        arbiter.invalidate(STREAM_LIST, STREAM_SEARCH)
        assert not arbiter.is_current(STREAM_LIST, list_token)
        assert not arbiter.is_current(STREAM_SEARCH, search_token)
        assert arbiter.begin(STREAM_LIST) > list_token + 1

    def test_unknown_stream_starts_at_zero(self):
        assert RequestArbiter().latest("other") == 0
