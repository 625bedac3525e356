from .base import BaseRepository, ListingError, RepositoryError
from .listings import (
    AUCTIONS_TABLE,
    ITEMS_TABLE,
    AuctionListingRepository,
    ItemListingRepository,
    ListingRepository,
    ListingTable,
    repository_for,
    unix_now,
)
from .records import ListingRecordRepository

__all__ = [
    "AUCTIONS_TABLE",
    "ITEMS_TABLE",
    "AuctionListingRepository",
    "BaseRepository",
    "ItemListingRepository",
    "ListingError",
    "ListingRecordRepository",
    "ListingRepository",
    "ListingTable",
    "RepositoryError",
    "repository_for",
    "unix_now",
]
