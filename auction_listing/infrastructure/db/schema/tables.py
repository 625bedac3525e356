from __future__ import annotations

SCHEMA_VERSION_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);
"""

SCHEMA_MIGRATIONS_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    applied_at TEXT NOT NULL,
    notes TEXT
);
"""

SCHEMA_LISTING_AUCTIONS_SQL = """
CREATE TABLE IF NOT EXISTS listing_auctions (
    id INTEGER PRIMARY KEY,
    parent_id INTEGER NOT NULL DEFAULT 0,
    owner_id INTEGER NOT NULL DEFAULT 0,
    status INTEGER NOT NULL DEFAULT 10,
    starts_at INTEGER NOT NULL DEFAULT 0,
    ends_at INTEGER NOT NULL DEFAULT 0,
    title TEXT NOT NULL DEFAULT '',
    location_country TEXT NOT NULL DEFAULT '',
    location_subdivision TEXT NOT NULL DEFAULT '',
    location_city TEXT NOT NULL DEFAULT '',
    created_at INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_auctions_running ON listing_auctions (status, ends_at, id);
CREATE INDEX IF NOT EXISTS idx_auctions_upcoming ON listing_auctions (status, starts_at, id);
CREATE INDEX IF NOT EXISTS idx_auctions_owner ON listing_auctions (owner_id, status, ends_at, id);
CREATE INDEX IF NOT EXISTS idx_auctions_location
    ON listing_auctions (location_country, location_subdivision, status, ends_at);
CREATE INDEX IF NOT EXISTS idx_auctions_created ON listing_auctions (created_at, id);
"""

SCHEMA_LISTING_ITEMS_SQL = """
CREATE TABLE IF NOT EXISTS listing_items (
    id INTEGER PRIMARY KEY,
    parent_id INTEGER NOT NULL CHECK (parent_id > 0),
    owner_id INTEGER NOT NULL DEFAULT 0,
    status INTEGER NOT NULL DEFAULT 10,
    starts_at INTEGER NOT NULL DEFAULT 0,
    ends_at INTEGER NOT NULL DEFAULT 0,
    title TEXT NOT NULL DEFAULT '',
    lot_no TEXT NOT NULL DEFAULT '',
    lot_sort_key INTEGER NOT NULL DEFAULT 0,
    location_country TEXT NOT NULL DEFAULT '',
    location_subdivision TEXT NOT NULL DEFAULT '',
    location_city TEXT NOT NULL DEFAULT '',
    created_at INTEGER NOT NULL DEFAULT 0
);
"""

SCHEMA_LISTING_ITEMS_INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_items_parent ON listing_items (parent_id);
CREATE INDEX IF NOT EXISTS idx_items_running
    ON listing_items (status, ends_at, lot_sort_key, id);
CREATE INDEX IF NOT EXISTS idx_items_upcoming
    ON listing_items (status, starts_at, lot_sort_key, id);
CREATE INDEX IF NOT EXISTS idx_items_parent_running
    ON listing_items (parent_id, status, ends_at, lot_sort_key, id);
CREATE INDEX IF NOT EXISTS idx_items_location
    ON listing_items (location_country, location_subdivision, status, ends_at);
CREATE INDEX IF NOT EXISTS idx_items_created ON listing_items (created_at, id);
"""
