from .config import (DEFAULT_DB_TIMEOUT, get_db_options, get_default_timeout,
                     get_listing_config, get_path_config, load_config)
from .connection import DatabaseError, apply_pragmas, get_connection, iso_utcnow
from .schema import CURRENT_SCHEMA_VERSION, SchemaMigrator, ensure_schema

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "DEFAULT_DB_TIMEOUT",
    "DatabaseError",
    "get_db_options",
    "get_listing_config",
    "apply_pragmas",
    "get_connection",
    "get_default_timeout",
    "get_path_config",
    "iso_utcnow",
    "load_config",
    "SchemaMigrator",
    "ensure_schema",
]
