"""Status-partitioned listing engine for auctions and their items.

Pages run in Running, Upcoming, Expired order across both listing kinds;
see :class:`auction_listing.services.ListingService`.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("auction-listing")
except PackageNotFoundError:
    # source checkout without an install
    __version__ = "0.0.0.dev"

__all__: list[str] = ["__version__"]
