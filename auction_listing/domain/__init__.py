"""Domain layer for auction_listing.

This package groups the pure business logic (lot sort keys, partition
classification, filter normalization) that does not concern storage or
interface details.
"""

from . import models

__all__ = ["models"]
