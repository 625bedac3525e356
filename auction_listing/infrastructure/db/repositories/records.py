from __future__ import annotations

import sqlite3
from typing import Any, Mapping

from auction_listing.domain.models import (
    ListingKind,
    ListingRecord,
    encode_lot_sort_key,
)
from auction_listing.domain.models.lot_sort import MAX_SORT_KEY

from .base import BaseRepository, RepositoryError
from .listings import TABLES


class ListingRecordRepository(BaseRepository):
    """Write side of the listing tables, used by the sync collaborator.

    The engine itself never writes; this repository exists so records and
    their derived ``lot_sort_key`` can be kept consistent.
    """

    def upsert(self, kind: ListingKind | str, record: ListingRecord | Mapping[str, Any]) -> int:
        """Insert or replace one record and return its id.

        ``lot_sort_key`` is recomputed from ``lot_no`` for items whenever the
        caller leaves it at 0.

        Raises:
            ValueError: if the record violates the parent rules of ``kind``.
        """
        resolved_kind = ListingKind.from_string(kind)
        if not isinstance(record, ListingRecord):
            record = ListingRecord.from_dict(dict(record))
        self._validate(resolved_kind, record)

        table = TABLES[resolved_kind]
        values: dict[str, Any] = {
            "id": record.id,
            "parent_id": record.parent_id,
            "owner_id": record.owner_id,
            "status": int(record.status),
            "starts_at": record.starts_at,
            "ends_at": record.ends_at,
            "title": record.title,
            "location_country": record.location_country.upper(),
            "location_subdivision": record.location_subdivision,
            "location_city": record.location_city,
            "created_at": record.created_at,
        }
        if table.has_lot_sort:
            values["lot_no"] = record.lot_no
            values["lot_sort_key"] = record.lot_sort_key or encode_lot_sort_key(
                record.lot_no, record.id
            )

        columns = list(values)
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(f"{col} = excluded.{col}" for col in columns if col != "id")
        self._execute(
            f"""
            INSERT INTO {table.name} ({", ".join(columns)})
            VALUES ({placeholders})
            ON CONFLICT(id) DO UPDATE SET {updates}
            """,
            [values[col] for col in columns],
        )
        self.conn.commit()
        return record.id

    def delete(self, kind: ListingKind | str, record_id: int) -> bool:
        """Delete a record; returns ``True`` when a row was removed."""
        table = TABLES[ListingKind.from_string(kind)]
        cur = self._execute(f"DELETE FROM {table.name} WHERE id = ?", (record_id,))
        self.conn.commit()
        return cur.rowcount > 0

    def get(self, kind: ListingKind | str, record_id: int) -> ListingRecord | None:
        table = TABLES[ListingKind.from_string(kind)]
        rows = self._fetch_all_as_dicts(
            f"SELECT {', '.join(table.columns)} FROM {table.name} WHERE id = ?",
            (record_id,),
        )
        return ListingRecord.from_dict(rows[0]) if rows else None

    @staticmethod
    def _validate(kind: ListingKind, record: ListingRecord) -> None:
        if record.id <= 0:
            raise ValueError(f"Listing record id must be positive, got {record.id}")
        if kind is ListingKind.ITEMS and record.parent_id <= 0:
            raise ValueError(f"Item {record.id} requires a parent auction id")
        if kind is ListingKind.AUCTIONS and record.parent_id != 0:
            raise ValueError(f"Auction {record.id} must not have a parent id")
        if not 0 <= record.lot_sort_key <= MAX_SORT_KEY:
            raise ValueError(
                f"Lot sort key of {record.id} is outside 0..{MAX_SORT_KEY}: {record.lot_sort_key}"
            )

    # ------------------------------------------------------------------
    # Lot sort key backfill
    # ------------------------------------------------------------------

    def count_items(self) -> int:
        return int(self._fetch_scalar("SELECT COUNT(*) FROM listing_items") or 0)

    def count_items_after(self, after_id: int) -> int:
        return int(
            self._fetch_scalar(
                "SELECT COUNT(*) FROM listing_items WHERE id > ?", (after_id,)
            )
            or 0
        )

    def count_items_missing_sort_key(self) -> int:
        """Count items with a lot number but no computed sort key."""
        return int(
            self._fetch_scalar(
                "SELECT COUNT(*) FROM listing_items WHERE lot_sort_key = 0 AND lot_no != ''"
            )
            or 0
        )

    def fetch_lot_numbers(self, after_id: int, limit: int) -> dict[int, str]:
        """Return ``{id: lot_no}`` for the next ``limit`` items after ``after_id``."""
        rows = self._fetch_all_as_dicts(
            "SELECT id, lot_no FROM listing_items WHERE id > ? ORDER BY id ASC LIMIT ?",
            (after_id, limit),
        )
        return {int(row["id"]): row["lot_no"] or "" for row in rows}

    def update_sort_keys(self, keys: Mapping[int, int]) -> int:
        """Persist precomputed sort keys; returns the number of rows updated."""
        if not keys:
            return 0
        try:
            cur = self.conn.executemany(
                "UPDATE listing_items SET lot_sort_key = ? WHERE id = ?",
                [(key, item_id) for item_id, key in keys.items()],
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to update lot sort keys: {exc}") from exc
        return cur.rowcount


__all__ = ["ListingRecordRepository"]
