from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from ..connection import iso_utcnow
from .tables import SCHEMA_MIGRATIONS_SQL, SCHEMA_VERSION_SQL

# Bump when the listing tables change shape.
CURRENT_SCHEMA_VERSION = 2


@dataclass(frozen=True)
class ColumnMigration:
    """Columns added to an existing table after its first release."""

    name: str
    table: str
    columns: tuple[tuple[str, str], ...]


COLUMN_MIGRATIONS: tuple[ColumnMigration, ...] = (
    ColumnMigration(
        name="add_items_lot_sort_key_v2",
        table="listing_items",
        columns=(
            ("lot_no", "TEXT NOT NULL DEFAULT ''"),
            ("lot_sort_key", "INTEGER NOT NULL DEFAULT 0"),
        ),
    ),
)


class SchemaMigrator:
    """Tracks the schema version and the column migrations applied to a database.

    ``schema_version`` holds one row with the version number;
    ``schema_migrations`` records each named migration once, so replaying
    :meth:`apply_column_migration` against an up-to-date table is a no-op.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def ensure_tables(self) -> None:
        self.conn.executescript(SCHEMA_VERSION_SQL + SCHEMA_MIGRATIONS_SQL)

    def get_version(self) -> int | None:
        self.ensure_tables()
        row = self.conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
        return row[0] if row else None

    def ensure_current_version(self) -> None:
        current = self.get_version()
        if current is not None and current >= CURRENT_SCHEMA_VERSION:
            return
        self.conn.execute("DELETE FROM schema_version")
        self.conn.execute(
            "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
            (CURRENT_SCHEMA_VERSION, iso_utcnow()),
        )

    def has_migration(self, name: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM schema_migrations WHERE name = ?", (name,)
        ).fetchone()
        return row is not None

    def record(self, name: str, notes: str | None = None) -> None:
        self.conn.execute(
            "INSERT OR IGNORE INTO schema_migrations (name, applied_at, notes) VALUES (?, ?, ?)",
            (name, iso_utcnow(), notes),
        )

    def table_columns(self, table: str) -> set[str]:
        return {row[1] for row in self.conn.execute(f"PRAGMA table_info({table})").fetchall()}

    def apply_column_migration(self, migration: ColumnMigration) -> list[str]:
        """Add any of ``migration.columns`` missing from its table.

        Returns the names of the columns that were added.
        """
        existing = self.table_columns(migration.table)
        added = []
        for column, definition in migration.columns:
            if column in existing:
                continue
            self.conn.execute(f"ALTER TABLE {migration.table} ADD COLUMN {column} {definition}")
            added.append(column)
        if added:
            self.record(migration.name, ",".join(added))
        return added
