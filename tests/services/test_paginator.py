"""Tests for the cross-partition paginator."""

from __future__ import annotations

import asyncio
import math

import pytest

from auction_listing.domain.models import FilterSet, Partition
from auction_listing.infrastructure.cache import InMemoryCache, ResultCache
from auction_listing.infrastructure.db.repositories import RepositoryError
from auction_listing.services.dto import PartitionCounts
from auction_listing.services.paginator import (
    CrossPartitionPaginator,
    PartitionSlice,
    gather_or_cancel,
    plan_slices,
)

RUNNING = [1, 2]
UPCOMING = [3, 4, 5]
EXPIRED = [6, 7, 8, 9, 10]


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _StubSource:
    def __init__(self, rows=None, newest=None, existing=None, fail_on=None):
        self.rows = rows or {
            Partition.RUNNING: RUNNING,
            Partition.UPCOMING: UPCOMING,
            Partition.EXPIRED: EXPIRED,
        }
        self.newest = newest or []
        self.existing = set(existing or [])
        self.fail_on = fail_on
        self.calls = []

    def count_partition(self, filters, partition):
        self.calls.append(("count", partition))
        return len(self.rows[partition])

    def fetch_partition(self, filters, partition, limit, offset):
        self.calls.append(("fetch", partition, limit, offset))
        if partition is self.fail_on:
            raise RepositoryError("disk I/O error")
        return self.rows[partition][offset : offset + limit]

    def fetch_newest(self, filters, limit, offset):
        self.calls.append(("newest", limit, offset))
        return self.newest[offset : offset + limit]

    def fetch_pinned(self, ids):
        self.calls.append(("pinned", tuple(ids)))
        return [row_id for row_id in ids if row_id in self.existing]

    def calls_of(self, name):
        return [call for call in self.calls if call[0] == name]


def _paginator(source, mode="concurrent", clock=None):
    backend = InMemoryCache(clock or FakeClock())
    return CrossPartitionPaginator(
        source,
        "auctions",
        ids_cache=ResultCache("ids", backend),
        counts_cache=ResultCache("counts", backend),
        mode=mode,
    )


def _page(paginator, page, per_page=3, **filters):
    return asyncio.run(paginator.page(FilterSet(**filters), page, per_page))


class TestPlanSlices:
    COUNTS = PartitionCounts(2, 3, 5)

    def test_first_page_spans_running_and_upcoming(self):
        assert plan_slices(self.COUNTS, 0, 3) == [
            PartitionSlice(Partition.RUNNING, 2, 0),
            PartitionSlice(Partition.UPCOMING, 1, 0),
        ]

    def test_running_is_skipped_when_offset_passes_it(self):
        assert plan_slices(self.COUNTS, 3, 3) == [
            PartitionSlice(Partition.UPCOMING, 2, 1),
            PartitionSlice(Partition.EXPIRED, 1, 0),
        ]

    def test_window_inside_expired(self):
        assert plan_slices(self.COUNTS, 9, 3) == [PartitionSlice(Partition.EXPIRED, 1, 4)]

    def test_beyond_last_row_plans_nothing(self):
        assert plan_slices(self.COUNTS, 10, 3) == []
        assert plan_slices(PartitionCounts(), 0, 3) == []

    def test_empty_partitions_are_skipped(self):
        assert plan_slices(PartitionCounts(0, 0, 4), 0, 2) == [
            PartitionSlice(Partition.EXPIRED, 2, 0)
        ]


@pytest.mark.parametrize("mode", ["concurrent", "sequential"])
def test_mixed_page_boundaries(mode):
    paginator = _paginator(_StubSource(), mode)

    pages = [_page(paginator, number) for number in range(1, 5)]

    assert [list(page.ids) for page in pages] == [[1, 2, 3], [4, 5, 6], [7, 8, 9], [10]]
    assert all(page.total_count == 10 for page in pages)
    assert math.ceil(pages[0].total_count / 3) == 4
    assert pages[0].counts == PartitionCounts(2, 3, 5)


@pytest.mark.parametrize("mode", ["concurrent", "sequential"])
def test_only_overlapping_partitions_are_fetched(mode):
    source = _StubSource()
    paginator = _paginator(source, mode)

    _page(paginator, 2)

    assert sorted(source.calls_of("fetch"), key=lambda call: call[1]) == [
        ("fetch", Partition.UPCOMING, 2, 1),
        ("fetch", Partition.EXPIRED, 1, 0),
    ]
    assert len(source.calls_of("count")) == 3


def test_first_page_never_touches_expired():
    source = _StubSource()
    _page(_paginator(source), 1)

    fetched = {call[1] for call in source.calls_of("fetch")}
    assert fetched == {Partition.RUNNING, Partition.UPCOMING}


@pytest.mark.parametrize("mode", ["concurrent", "sequential"])
@pytest.mark.parametrize("per_page", [1, 2, 3, 4, 7, 10, 50])
def test_pages_cover_every_row_exactly_once(mode, per_page):
    paginator = _paginator(_StubSource(), mode)
    collected = []
    page_number = 1
    while True:
        result = _page(paginator, page_number, per_page)
        if not result.ids:
            break
        collected.extend(result.ids)
        page_number += 1

    assert collected == RUNNING + UPCOMING + EXPIRED
    assert page_number - 1 == math.ceil(10 / per_page)


def test_repeated_request_within_ttl_hits_no_store():
    source = _StubSource()
    paginator = _paginator(source)

    first = _page(paginator, 2)
    calls_after_first = len(source.calls)
    second = _page(paginator, 2)

    assert second == first
    assert len(source.calls) == calls_after_first


def test_ids_expire_before_counts():
    clock = FakeClock()
    source = _StubSource()
    paginator = _paginator(source, clock=clock)

    _page(paginator, 1)
    clock.now += 301
    _page(paginator, 1)

    assert len(source.calls_of("count")) == 3
    assert len(source.calls_of("fetch")) == 4

    clock.now += 600
    _page(paginator, 1)
    assert len(source.calls_of("count")) == 6


def test_other_pages_reuse_cached_counts():
    source = _StubSource()
    paginator = _paginator(source)

    _page(paginator, 1)
    _page(paginator, 3)

    assert len(source.calls_of("count")) == 3


def test_page_beyond_range_is_empty_with_total():
    source = _StubSource()
    result = _page(_paginator(source), 10)

    assert result.ids == ()
    assert result.total_count == 10
    assert source.calls_of("fetch") == []


def test_empty_listing():
    source = _StubSource(rows={p: [] for p in Partition})
    result = _page(_paginator(source), 1)

    assert result.ids == ()
    assert result.total_count == 0


def test_newest_uses_single_query():
    source = _StubSource(newest=[10, 9, 8, 7, 6, 5, 4, 3, 2, 1])
    paginator = _paginator(source)

    result = _page(paginator, 2, sort="newest")

    assert result.ids == (7, 6, 5)
    assert result.total_count == 10
    assert source.calls_of("newest") == [("newest", 3, 3)]
    assert source.calls_of("fetch") == []


def test_pinned_ids_keep_caller_order():
    source = _StubSource(existing={3, 7, 9})
    paginator = _paginator(source)

    result = _page(paginator, 1, ids="7,3,9", search="ignored")

    assert result.ids == (7, 3, 9)
    assert result.total_count == 3
    assert result.counts is None
    assert source.calls_of("count") == []


def test_pinned_ids_drop_missing_and_paginate():
    source = _StubSource(existing={3, 7, 9})
    paginator = _paginator(source)

    first = _page(paginator, 1, per_page=2, ids=[7, 5, 3, 9])
    second = _page(paginator, 2, per_page=2, ids=[7, 5, 3, 9])

    assert first.ids == (7, 3)
    assert second.ids == (9,)
    assert second.total_count == 3
    assert len(source.calls_of("pinned")) == 1


@pytest.mark.parametrize("mode", ["concurrent", "sequential"])
def test_store_failure_propagates(mode):
    source = _StubSource(fail_on=Partition.UPCOMING)
    paginator = _paginator(source, mode)

    with pytest.raises(RepositoryError):
        _page(paginator, 1)

    # Nothing partial was cached; a retry hits the store again.
    with pytest.raises(RepositoryError):
        _page(paginator, 1)


def test_cache_failures_do_not_break_paging():
    class Broken:
        def get(self, key):
            raise ConnectionError("cache unreachable")

        def set(self, key, value, ttl):
            raise ConnectionError("cache unreachable")

    source = _StubSource()
    paginator = CrossPartitionPaginator(
        source,
        "auctions",
        ids_cache=ResultCache("ids", Broken()),
        counts_cache=ResultCache("counts", Broken()),
    )

    assert _page(paginator, 1).ids == (1, 2, 3)
    assert _page(paginator, 1).ids == (1, 2, 3)
    assert len(source.calls_of("count")) == 6


def test_invalid_mode_is_rejected():
    with pytest.raises(ValueError):
        CrossPartitionPaginator(_StubSource(), "auctions", mode="parallel")


class TestGatherOrCancel:
    def test_failure_cancels_siblings(self):
        cancelled = []

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append("slow")
                raise

        async def failing():
            await asyncio.sleep(0)
            raise RepositoryError("boom")

        async def run():
            await gather_or_cancel(slow(), failing())

        with pytest.raises(RepositoryError):
            asyncio.run(run())
        assert cancelled == ["slow"]

    def test_cancelling_caller_cancels_subtasks(self):
        cancelled = []

        async def slow(name):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(name)
                raise

        async def run():
            task = asyncio.ensure_future(gather_or_cancel(slow("a"), slow("b")))
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run())
        assert sorted(cancelled) == ["a", "b"]

    def test_results_keep_argument_order(self):
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v

        async def run():
            return await gather_or_cancel(value(1, 0.02), value(2, 0), value(3, 0.01))

        assert asyncio.run(run()) == [1, 2, 3]
