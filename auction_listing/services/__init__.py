"""Service layer: pagination, listing facade and lot key backfill."""

from .backfill import LotSortBackfillService
from .dto import EnrichedRow, ListingPage, PageResult, PartitionCounts
from .listings import ListingService, RecordEnricher, RowEnricher
from .paginator import CrossPartitionPaginator, PartitionSource, plan_slices

__all__ = [
    "CrossPartitionPaginator",
    "EnrichedRow",
    "ListingPage",
    "ListingService",
    "LotSortBackfillService",
    "PageResult",
    "PartitionCounts",
    "PartitionSource",
    "RecordEnricher",
    "RowEnricher",
    "plan_slices",
]
