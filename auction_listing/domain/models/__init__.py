"""Domain models package.

This package contains the listing record model, partition classification,
filter sets and the lot sort key encoder.
"""

from .filters import DEFAULT_PER_PAGE, MAX_PER_PAGE, FilterSet, SortOrder
from .listing import PARTITION_ORDER, ListingKind, ListingRecord, Partition, classify
from .lot_sort import batch_compute, encode_lot_sort_key

__all__ = [
    "DEFAULT_PER_PAGE",
    "MAX_PER_PAGE",
    "FilterSet",
    "ListingKind",
    "ListingRecord",
    "PARTITION_ORDER",
    "Partition",
    "SortOrder",
    "batch_compute",
    "classify",
    "encode_lot_sort_key",
]
