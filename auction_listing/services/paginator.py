"""Merge the three status partitions into one globally ordered page.

The paginator never asks the store for rows it will not return: partition
counts (cached) tell it which partitions a page window overlaps, and only
those partitions are fetched, each with its own LIMIT/OFFSET.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Protocol, Sequence, TypeVar

from auction_listing.domain.models import (
    PARTITION_ORDER,
    FilterSet,
    Partition,
    SortOrder,
)
from auction_listing.infrastructure.cache import ResultCache
from auction_listing.infrastructure.observability import get_logger

from .dto import PageResult, PartitionCounts

T = TypeVar("T")

ConcurrencyMode = Literal["concurrent", "sequential"]

DEFAULT_IDS_TTL = 300
DEFAULT_COUNTS_TTL = 900

_logger = get_logger(__name__)


class PartitionSource(Protocol):
    """Read capability the paginator needs from one listing kind."""

    def count_partition(self, filters: FilterSet, partition: Partition) -> int: ...

    def fetch_partition(
        self, filters: FilterSet, partition: Partition, limit: int, offset: int
    ) -> list[int]: ...

    def fetch_newest(self, filters: FilterSet, limit: int, offset: int) -> list[int]: ...

    def fetch_pinned(self, ids: Sequence[int]) -> list[int]: ...


@dataclass(frozen=True)
class PartitionSlice:
    partition: Partition
    limit: int
    offset: int


def plan_slices(counts: PartitionCounts, offset: int, limit: int) -> list[PartitionSlice]:
    """Split the global window ``[offset, offset + limit)`` across partitions.

    Partitions wholly before the window are skipped; the walk stops once the
    window is filled, so partitions after it are never queried.

    With counts 2/3/5, offset 3 and limit 3 the window covers Upcoming rows
    1..2 and the first Expired row: two slices, (UPCOMING, 2, 1) and
    (EXPIRED, 1, 0).
    """
    slices: list[PartitionSlice] = []
    remaining_offset = max(0, offset)
    remaining_limit = max(0, limit)
    for partition in PARTITION_ORDER:
        if remaining_limit <= 0:
            break
        count = counts.of(partition)
        if remaining_offset >= count:
            remaining_offset -= count
            continue
        take = min(remaining_limit, count - remaining_offset)
        slices.append(PartitionSlice(partition, take, remaining_offset))
        remaining_limit -= take
        remaining_offset = 0
    return slices


async def gather_or_cancel(*aws: Awaitable[T]) -> list[T]:
    """Run awaitables concurrently; on any failure cancel the rest and re-raise.

    Cancelling the caller cancels every pending sub-task as well. Work already
    running in a thread pool finishes in the background, but its result is
    discarded.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class CrossPartitionPaginator:
    """Compute one page of ids for a kind across Running, Upcoming and Expired.

    Args:
        source: Partition-aware store access for one listing kind.
        kind: Listing kind name, part of every cache key.
        ids_cache: Cache for page id lists (key includes the page).
        counts_cache: Cache for partition counts (key excludes the page).
        mode: ``"concurrent"`` plans all partition slices from the counts and
            fetches them at once; ``"sequential"`` walks the partitions and
            uses the number of rows actually returned.
        executor: Executor for blocking source calls (default loop executor).
    """

    def __init__(
        self,
        source: PartitionSource,
        kind: str,
        *,
        ids_cache: ResultCache | None = None,
        counts_cache: ResultCache | None = None,
        ids_ttl: float = DEFAULT_IDS_TTL,
        counts_ttl: float = DEFAULT_COUNTS_TTL,
        mode: ConcurrencyMode = "concurrent",
        executor: Executor | None = None,
    ) -> None:
        if mode not in ("concurrent", "sequential"):
            raise ValueError("mode must be 'concurrent' or 'sequential'")
        self.source = source
        self.kind = kind
        self.ids_cache = ids_cache if ids_cache is not None else ResultCache("ids")
        self.counts_cache = (
            counts_cache if counts_cache is not None else ResultCache("counts")
        )
        self.ids_ttl = ids_ttl
        self.counts_ttl = counts_ttl
        self.mode = mode
        self._executor = executor

    async def _call(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------

    async def counts(self, filters: FilterSet) -> PartitionCounts:
        """Return partition counts for ``filters``, from cache when fresh."""

        async def compute() -> tuple[int, int, int]:
            values = await gather_or_cancel(
                *(
                    self._call(self.source.count_partition, filters, partition)
                    for partition in PARTITION_ORDER
                )
            )
            return (values[0], values[1], values[2])

        cached = await self.counts_cache.aget_or_compute(
            filters.criteria_key(self.kind), self.counts_ttl, compute
        )
        return PartitionCounts.from_tuple(cached)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def page(
        self,
        filters: FilterSet,
        page_number: int | None = None,
        per_page: int | None = None,
    ) -> PageResult:
        """Return the ids of one page and the total number of matching rows.

        Pages beyond the last one return no ids with an accurate total.
        """
        if page_number is not None or per_page is not None:
            filters = filters.with_paging(
                page_number if page_number is not None else filters.page,
                per_page if per_page is not None else filters.per_page,
            )

        if filters.pinned:
            return await self._pinned_page(filters)

        counts = await self.counts(filters)
        if counts.total == 0 or filters.offset >= counts.total:
            _logger.debug(
                "Page %s is beyond %s matching rows", filters.page, counts.total
            )
            return PageResult(ids=(), total_count=counts.total, counts=counts)

        if filters.sort is SortOrder.NEWEST:
            fetch = self._newest_ids
        elif self.mode == "sequential":
            fetch = self._sequential_ids
        else:
            fetch = self._concurrent_ids

        ids = await self.ids_cache.aget_or_compute(
            filters.page_key(self.kind),
            self.ids_ttl,
            lambda: fetch(filters, counts),
        )
        return PageResult(ids=tuple(ids), total_count=counts.total, counts=counts)

    async def _concurrent_ids(
        self, filters: FilterSet, counts: PartitionCounts
    ) -> tuple[int, ...]:
        slices = plan_slices(counts, filters.offset, filters.per_page)
        _logger.debug("Fetching %d partition slices concurrently", len(slices))
        results = await gather_or_cancel(
            *(
                self._call(
                    self.source.fetch_partition,
                    filters,
                    part.partition,
                    part.limit,
                    part.offset,
                )
                for part in slices
            )
        )
        return tuple(row_id for rows in results for row_id in rows)

    async def _sequential_ids(
        self, filters: FilterSet, counts: PartitionCounts
    ) -> tuple[int, ...]:
        ids: list[int] = []
        remaining_offset = filters.offset
        remaining_limit = filters.per_page
        for partition in PARTITION_ORDER:
            if remaining_limit <= 0:
                break
            count = counts.of(partition)
            if remaining_offset >= count:
                remaining_offset -= count
                continue
            take = min(remaining_limit, count - remaining_offset)
            rows = await self._call(
                self.source.fetch_partition, filters, partition, take, remaining_offset
            )
            ids.extend(rows)
            remaining_limit -= len(rows)
            remaining_offset = 0
        return tuple(ids)

    async def _newest_ids(
        self, filters: FilterSet, counts: PartitionCounts
    ) -> tuple[int, ...]:
        rows = await self._call(
            self.source.fetch_newest, filters, filters.per_page, filters.offset
        )
        return tuple(rows)

    async def _pinned_page(self, filters: FilterSet) -> PageResult:
        async def compute() -> tuple[int, ...]:
            rows = await self._call(self.source.fetch_pinned, list(filters.ids))
            return tuple(rows)

        existing = await self.ids_cache.aget_or_compute(
            "pinned:" + filters.criteria_key(self.kind), self.ids_ttl, compute
        )
        start = filters.offset
        page_ids = tuple(existing[start : start + filters.per_page])
        return PageResult(ids=page_ids, total_count=len(existing), counts=None)


__all__ = [
    "ConcurrencyMode",
    "CrossPartitionPaginator",
    "PartitionSlice",
    "PartitionSource",
    "gather_or_cancel",
    "plan_slices",
]
