"""CLI interface for the listing engine.

This package is the home for all Click commands. Run it with
``python -m auction_listing.interfaces.cli`` or the ``auction-listing``
console script.
"""

from .__main__ import cli
from .backfill import backfill_lot_keys
from .listing import list_cmd
from .metrics import metrics_cmd

__all__ = ["backfill_lot_keys", "cli", "list_cmd", "metrics_cmd"]
