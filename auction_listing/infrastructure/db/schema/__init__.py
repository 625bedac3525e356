from .manager import ensure_schema
from .migrations import (
    COLUMN_MIGRATIONS,
    CURRENT_SCHEMA_VERSION,
    ColumnMigration,
    SchemaMigrator,
)

__all__ = [
    "COLUMN_MIGRATIONS",
    "CURRENT_SCHEMA_VERSION",
    "ColumnMigration",
    "ensure_schema",
    "SchemaMigrator",
]
