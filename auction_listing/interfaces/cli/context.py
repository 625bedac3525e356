"""Shared helpers for composing CLI command contexts.

This module centralises common CLI wiring such as resolving configuration
paths and building SQLite connections with the project defaults applied.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, ContextManager

from auction_listing.app.config import ListingSettings, load_settings
from auction_listing.infrastructure.cache import InMemoryCache
from auction_listing.infrastructure.db import get_connection
from auction_listing.services.backfill import DEFAULT_BATCH_SIZE, LotSortBackfillService
from auction_listing.services.listings import ListingService


@dataclass(frozen=True)
class CLIContext:
    """Container for CLI dependencies and configuration."""

    db_path: Path
    settings: ListingSettings
    connection_factory: Callable[[], ContextManager[sqlite3.Connection]]

    def listing_service(self) -> ListingService:
        # Each command invocation gets its own cache; results never outlive it.
        return ListingService(
            self.connection_factory,
            settings=self.settings,
            cache_backend=InMemoryCache(),
        )

    def backfill_service(self, batch_size: int = DEFAULT_BATCH_SIZE) -> LotSortBackfillService:
        return LotSortBackfillService(self.connection_factory, batch_size=batch_size)


def build_cli_context(
    db_path: str | Path | None = None, config_path: str | Path | None = None
) -> CLIContext:
    """Build the CLI context with resolved settings and connection factory."""

    settings = load_settings(config_path)
    if db_path is not None:
        resolved_db_path = Path(db_path).expanduser()
    elif settings.db_path is not None:
        resolved_db_path = settings.db_path
    else:
        resolved_db_path = Path("listings.db").resolve()

    def connection_factory() -> ContextManager[sqlite3.Connection]:
        return get_connection(
            resolved_db_path,
            timeout=settings.db_timeout_seconds,
            check_same_thread=False,
        )

    return CLIContext(
        db_path=resolved_db_path,
        settings=settings,
        connection_factory=connection_factory,
    )
