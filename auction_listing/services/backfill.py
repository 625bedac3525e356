"""Batch recomputation of item lot sort keys.

Used after the encoding changes or when items were imported without keys.
Batches walk ``listing_items`` in id order so an interrupted run resumes
from the last processed id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from auction_listing.domain.models import batch_compute
from auction_listing.infrastructure.db.repositories import ListingRecordRepository

from .base import BaseService, ConnectionFactory

DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True)
class BackfillProgress:
    total: int
    processed: int
    remaining: int

    @property
    def percentage(self) -> float:
        if self.total <= 0:
            return 100.0
        return round(self.processed / self.total * 100, 2)


@dataclass(frozen=True)
class BatchResult:
    processed: int
    remaining: int
    last_id: int

    @property
    def done(self) -> bool:
        return self.remaining == 0 or self.processed == 0


class LotSortBackfillService(BaseService):
    """Recompute ``lot_sort_key`` for every item in id-ordered batches."""

    def __init__(
        self, connection_factory: ConnectionFactory, *, batch_size: int = DEFAULT_BATCH_SIZE
    ) -> None:
        super().__init__(connection_factory)
        self.batch_size = max(1, int(batch_size))

    def is_needed(self) -> bool:
        """Return ``True`` when some item has a lot number but no sort key."""
        return self._with_connection(
            lambda conn: ListingRecordRepository(conn).count_items_missing_sort_key() > 0
        )

    def progress(self, last_id: int = 0) -> BackfillProgress:
        """Report progress of a run that has processed ids up to ``last_id``."""

        def _progress(conn) -> BackfillProgress:
            repo = ListingRecordRepository(conn)
            total = repo.count_items()
            remaining = repo.count_items_after(last_id)
            return BackfillProgress(
                total=total, processed=total - remaining, remaining=remaining
            )

        return self._with_connection(_progress)

    def process_batch(self, after_id: int = 0) -> BatchResult:
        """Recompute keys for the next batch of items with id > ``after_id``."""

        def _process(conn) -> BatchResult:
            repo = ListingRecordRepository(conn)
            lot_numbers = repo.fetch_lot_numbers(after_id, self.batch_size)
            if not lot_numbers:
                return BatchResult(processed=0, remaining=0, last_id=after_id)
            repo.update_sort_keys(batch_compute(lot_numbers))
            last_id = max(lot_numbers)
            return BatchResult(
                processed=len(lot_numbers),
                remaining=repo.count_items_after(last_id),
                last_id=last_id,
            )

        result = self._with_connection(_process)
        self._logger.debug(
            "Backfilled %d items up to id %d (%d remaining)",
            result.processed,
            result.last_id,
            result.remaining,
        )
        return result

    def run(
        self, on_batch: Callable[[BatchResult], None] | None = None
    ) -> int:
        """Process every batch; returns the number of items updated."""
        total = 0
        last_id = 0
        while True:
            result = self.process_batch(last_id)
            total += result.processed
            if on_batch is not None and result.processed:
                on_batch(result)
            if result.done:
                break
            last_id = result.last_id
        self._logger.info("Lot sort key backfill finished: %d items", total)
        return total


__all__ = [
    "BackfillProgress",
    "BatchResult",
    "DEFAULT_BATCH_SIZE",
    "LotSortBackfillService",
]
