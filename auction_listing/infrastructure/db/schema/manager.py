from __future__ import annotations

import sqlite3

from .migrations import COLUMN_MIGRATIONS, SchemaMigrator
from .tables import (
    SCHEMA_LISTING_AUCTIONS_SQL,
    SCHEMA_LISTING_ITEMS_INDEXES_SQL,
    SCHEMA_LISTING_ITEMS_SQL,
)


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create the listing tables and indexes, applying pending column migrations.

    Item indexes reference migrated columns, so they are created last.
    """
    migrator = SchemaMigrator(conn)
    migrator.ensure_tables()
    conn.executescript(SCHEMA_LISTING_AUCTIONS_SQL)
    conn.executescript(SCHEMA_LISTING_ITEMS_SQL)
    for migration in COLUMN_MIGRATIONS:
        migrator.apply_column_migration(migration)
    conn.executescript(SCHEMA_LISTING_ITEMS_INDEXES_SQL)
    migrator.ensure_current_version()
    conn.commit()
