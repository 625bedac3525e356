"""Listing record domain model and partition classification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class ListingKind(str, Enum):
    """The two entity collections served by the engine."""

    AUCTIONS = "auctions"
    ITEMS = "items"

    @classmethod
    def from_string(cls, value: str | "ListingKind") -> "ListingKind":
        """Convert ``"auctions"``/``"items"`` (singular accepted) to a kind."""
        if isinstance(value, ListingKind):
            return value
        normalized = (value or "").lower().strip()
        if normalized in ("auction", "auctions"):
            return cls.AUCTIONS
        if normalized in ("item", "items"):
            return cls.ITEMS
        raise ValueError(f"Unknown listing kind: {value!r}")


class Partition(IntEnum):
    """Lifecycle partitions, valued as stored in the ``status`` column."""

    RUNNING = 10
    UPCOMING = 20
    EXPIRED = 30

    @classmethod
    def from_label(cls, value: str | None) -> "Partition":
        """Map a stored status label to a partition, defaulting to RUNNING."""
        normalized = (value or "").lower().strip()
        if normalized in ("schedule", "scheduled", "upcoming"):
            return cls.UPCOMING
        if normalized in ("expire", "expired", "ended"):
            return cls.EXPIRED
        return cls.RUNNING

    @property
    def label(self) -> str:
        return self.name.lower()


# Fixed priority order used when merging partitions into one listing.
PARTITION_ORDER: tuple[Partition, ...] = (
    Partition.RUNNING,
    Partition.UPCOMING,
    Partition.EXPIRED,
)


def classify(starts_at: int, ends_at: int, now: int) -> Partition:
    """Return the partition a record belongs to at instant ``now``.

    Rules are evaluated in order so every (starts_at, ends_at, now) triple maps
    to exactly one partition:

    - Running if ``starts_at <= now < ends_at``
    - Upcoming if ``starts_at > now``
    - Expired otherwise (``ends_at <= now``)
    """
    if starts_at <= now < ends_at:
        return Partition.RUNNING
    if starts_at > now:
        return Partition.UPCOMING
    return Partition.EXPIRED


@dataclass
class ListingRecord:
    """A denormalized auction or item row as stored for the listing engine.

    ``status`` is a hint refreshed by the sync side; :meth:`partition_at`
    is authoritative.
    """

    id: int
    starts_at: int
    ends_at: int
    parent_id: int = 0
    owner_id: int = 0
    status: Partition = Partition.RUNNING
    title: str = ""
    lot_no: str = ""
    lot_sort_key: int = 0
    location_country: str = ""
    location_subdivision: str = ""
    location_city: str = ""
    created_at: int = 0

    def partition_at(self, now: int) -> Partition:
        return classify(self.starts_at, self.ends_at, now)

    @property
    def location(self) -> str | None:
        """Return the combined location string."""
        parts = [
            p
            for p in [self.location_city, self.location_subdivision, self.location_country]
            if p
        ]
        return ", ".join(parts) if parts else None

    @classmethod
    def from_dict(cls, data: dict) -> "ListingRecord":
        """Create a record from a dictionary (e.g. a database row)."""
        raw_status = data.get("status")
        if isinstance(raw_status, str) and not raw_status.isdigit():
            status = Partition.from_label(raw_status)
        else:
            try:
                status = Partition(int(raw_status))
            except (TypeError, ValueError):
                status = Partition.RUNNING

        return cls(
            id=int(data["id"]),
            starts_at=int(data.get("starts_at") or 0),
            ends_at=int(data.get("ends_at") or 0),
            parent_id=int(data.get("parent_id") or 0),
            owner_id=int(data.get("owner_id") or 0),
            status=status,
            title=data.get("title") or "",
            lot_no=data.get("lot_no") or "",
            lot_sort_key=int(data.get("lot_sort_key") or 0),
            location_country=data.get("location_country") or "",
            location_subdivision=data.get("location_subdivision") or "",
            location_city=data.get("location_city") or "",
            created_at=int(data.get("created_at") or 0),
        )


__all__ = ["ListingKind", "ListingRecord", "PARTITION_ORDER", "Partition", "classify"]
