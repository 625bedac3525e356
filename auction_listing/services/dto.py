"""
Centralized DTOs and result models for the listing services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict

from auction_listing.domain.models import PARTITION_ORDER, Partition


# --- Paginator results ---
@dataclass(frozen=True)
class PartitionCounts:
    """Row counts per partition for one filter set."""

    running: int = 0
    upcoming: int = 0
    expired: int = 0

    @property
    def total(self) -> int:
        return self.running + self.upcoming + self.expired

    def of(self, partition: Partition) -> int:
        return getattr(self, partition.label)

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.running, self.upcoming, self.expired)

    def as_dict(self) -> dict[str, int]:
        return {partition.label: self.of(partition) for partition in PARTITION_ORDER}

    @classmethod
    def from_tuple(cls, values: tuple[int, int, int] | list[int]) -> "PartitionCounts":
        running, upcoming, expired = (int(v) for v in values)
        return cls(running=running, upcoming=upcoming, expired=expired)


@dataclass(frozen=True)
class PageResult:
    """Ordered ids of one page plus the total number of matching rows.

    ``counts`` is ``None`` in pinned mode, where partitions do not apply.
    """

    ids: tuple[int, ...]
    total_count: int
    counts: PartitionCounts | None = None


# --- Listing DTOs ---
class EnrichedRow(BaseModel):
    """Display row produced by a row enricher.

    Enrichers backed by a content store may attach extra fields
    (permalinks, thumbnails); they are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    kind: str
    title: str = ""
    status: str = Partition.RUNNING.label
    starts_at: int = 0
    ends_at: int = 0
    parent_id: int | None = None
    owner_id: int | None = None
    lot_no: str | None = None
    lot_sort_key: int | None = None
    location: str | None = None


class ListingPage(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: str
    rows: list[EnrichedRow]
    page: int
    per_page: int
    pages: int
    total: int
    counts: dict[str, int] | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


__all__ = ["EnrichedRow", "ListingPage", "PageResult", "PartitionCounts"]
