"""Partition-aware read queries over the listing tables.

All three partitions share one query template; only the time predicate and
the ORDER BY clause differ. Each query reads ``now`` from the injected clock
when it is built, so sub-queries of a single request may see slightly
different instants. A record on a boundary still lands in exactly one
partition per query.
"""

from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from auction_listing.domain.models import (
    FilterSet,
    ListingKind,
    ListingRecord,
    Partition,
)
from auction_listing.infrastructure.observability import record_partition_query

from .base import BaseRepository

Clock = Callable[[], int]

# Stored status is only a coarse pre-filter; membership comes from timestamps.
_VALID_STATUS_SQL = "t.status IN (10, 20, 30)"

_PARTITION_PREDICATES: dict[Partition, str] = {
    Partition.RUNNING: "t.starts_at <= ? AND t.ends_at > ?",
    Partition.UPCOMING: "t.starts_at > ?",
    Partition.EXPIRED: "t.starts_at <= ? AND t.ends_at <= ?",
}

# SQLite's historic default limit on bound parameters is 999.
_MAX_IN_PARAMS = 500


def unix_now() -> int:
    """Return the current Unix timestamp in whole seconds."""
    return int(time.time())


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class ListingTable:
    """Schema differences between the auction and item listing tables."""

    kind: ListingKind
    name: str
    has_lot_sort: bool
    has_parent: bool

    @property
    def columns(self) -> tuple[str, ...]:
        base = (
            "id",
            "parent_id",
            "owner_id",
            "status",
            "starts_at",
            "ends_at",
            "title",
            "location_country",
            "location_subdivision",
            "location_city",
            "created_at",
        )
        return base + ("lot_no", "lot_sort_key") if self.has_lot_sort else base


AUCTIONS_TABLE = ListingTable(
    kind=ListingKind.AUCTIONS, name="listing_auctions", has_lot_sort=False, has_parent=False
)
ITEMS_TABLE = ListingTable(
    kind=ListingKind.ITEMS, name="listing_items", has_lot_sort=True, has_parent=True
)

TABLES: dict[ListingKind, ListingTable] = {
    ListingKind.AUCTIONS: AUCTIONS_TABLE,
    ListingKind.ITEMS: ITEMS_TABLE,
}


class ListingRepository(BaseRepository):
    """Read-only partition queries for one listing table.

    Use :class:`AuctionListingRepository` or :class:`ItemListingRepository`
    rather than instantiating this class with a table directly.
    """

    table: ListingTable = AUCTIONS_TABLE

    def __init__(self, conn: sqlite3.Connection, clock: Clock | None = None) -> None:
        super().__init__(conn)
        self._clock = clock or unix_now

    @property
    def kind(self) -> ListingKind:
        return self.table.kind

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    def _filter_conditions(self, filters: FilterSet) -> tuple[list[str], list[Any]]:
        conditions = [_VALID_STATUS_SQL]
        params: list[Any] = []
        if filters.owner_id:
            conditions.append("t.owner_id = ?")
            params.append(filters.owner_id)
        if self.table.has_parent and filters.parent_id:
            conditions.append("t.parent_id = ?")
            params.append(filters.parent_id)
        if filters.country:
            conditions.append("t.location_country = ?")
            params.append(filters.country)
        if filters.subdivision:
            conditions.append("t.location_subdivision = ?")
            params.append(filters.subdivision)
        if filters.search:
            conditions.append("t.title LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(filters.search)}%")
        return conditions, params

    def _order_by(self, partition: Partition) -> str:
        lot = ", t.lot_sort_key ASC" if self.table.has_lot_sort else ""
        if partition is Partition.RUNNING:
            return f"t.ends_at ASC{lot}, t.id ASC"
        if partition is Partition.UPCOMING:
            return f"t.starts_at ASC{lot}, t.id ASC"
        return "t.ends_at DESC, t.id ASC"

    def _partition_query(
        self,
        select: str,
        filters: FilterSet,
        partition: Partition | None,
        *,
        order_by: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[str, list[Any]]:
        """Build the shared query for one partition (or all rows when ``None``)."""
        conditions, params = self._filter_conditions(filters)
        if partition is not None:
            predicate = _PARTITION_PREDICATES[partition]
            now = self._clock()
            conditions.append(predicate)
            params.extend([now] * predicate.count("?"))

        sql = f"SELECT {select} FROM {self.table.name} t WHERE " + " AND ".join(conditions)
        if order_by:
            sql += f" ORDER BY {order_by}"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, max(0, offset)])
        return sql, params

    # ------------------------------------------------------------------
    # Partition capability
    # ------------------------------------------------------------------

    def count_partition(self, filters: FilterSet, partition: Partition) -> int:
        """Count rows matching ``filters`` that belong to ``partition`` right now."""
        sql, params = self._partition_query("COUNT(*)", filters, partition)
        record_partition_query(self.kind.value, partition.label, "count")
        return int(self._fetch_scalar(sql, params) or 0)

    def fetch_partition(
        self, filters: FilterSet, partition: Partition, limit: int, offset: int
    ) -> list[int]:
        """Return up to ``limit`` ids of ``partition`` starting at ``offset``."""
        if limit <= 0:
            return []
        sql, params = self._partition_query(
            "t.id",
            filters,
            partition,
            order_by=self._order_by(partition),
            limit=limit,
            offset=offset,
        )
        record_partition_query(self.kind.value, partition.label, "fetch")
        return [int(row_id) for row_id in self._fetch_column(sql, params)]

    def fetch_newest(self, filters: FilterSet, limit: int, offset: int) -> list[int]:
        """Return ids across all partitions, newest first."""
        if limit <= 0:
            return []
        sql, params = self._partition_query(
            "t.id",
            filters,
            None,
            order_by="t.created_at DESC, t.id DESC",
            limit=limit,
            offset=offset,
        )
        record_partition_query(self.kind.value, "all", "fetch")
        return [int(row_id) for row_id in self._fetch_column(sql, params)]

    def fetch_pinned(self, ids: Sequence[int]) -> list[int]:
        """Return the ids that exist, preserving the caller's order.

        No other filter or ordering applies in pinned mode.
        """
        existing: set[int] = set()
        unique_ids = list(dict.fromkeys(ids))
        for start in range(0, len(unique_ids), _MAX_IN_PARAMS):
            chunk = unique_ids[start : start + _MAX_IN_PARAMS]
            placeholders = ",".join("?" * len(chunk))
            existing.update(
                int(row_id)
                for row_id in self._fetch_column(
                    f"SELECT id FROM {self.table.name} WHERE id IN ({placeholders})",
                    chunk,
                )
            )
            record_partition_query(self.kind.value, "pinned", "fetch")
        return [row_id for row_id in unique_ids if row_id in existing]

    # ------------------------------------------------------------------
    # Record lookup
    # ------------------------------------------------------------------

    def get_records(self, ids: Sequence[int]) -> list[ListingRecord]:
        """Load full records for ``ids``, in the caller's order."""
        unique_ids = list(dict.fromkeys(ids))
        by_id: dict[int, ListingRecord] = {}
        columns = ", ".join(self.table.columns)
        for start in range(0, len(unique_ids), _MAX_IN_PARAMS):
            chunk = unique_ids[start : start + _MAX_IN_PARAMS]
            placeholders = ",".join("?" * len(chunk))
            rows = self._fetch_all_as_dicts(
                f"SELECT {columns} FROM {self.table.name} WHERE id IN ({placeholders})",
                chunk,
            )
            for row in rows:
                record = ListingRecord.from_dict(row)
                by_id[record.id] = record
        return [by_id[row_id] for row_id in unique_ids if row_id in by_id]


class AuctionListingRepository(ListingRepository):
    table = AUCTIONS_TABLE


class ItemListingRepository(ListingRepository):
    table = ITEMS_TABLE


def repository_for(
    kind: ListingKind, conn: sqlite3.Connection, clock: Clock | None = None
) -> ListingRepository:
    """Return the repository serving ``kind`` bound to ``conn``."""
    if ListingKind.from_string(kind) is ListingKind.ITEMS:
        return ItemListingRepository(conn, clock)
    return AuctionListingRepository(conn, clock)
