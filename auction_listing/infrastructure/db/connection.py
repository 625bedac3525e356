"""SQLite connections for the listing tables.

Every sub-query of a listing request opens its own short-lived connection,
so opening must be cheap and fully configured in one call.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from .config import get_db_options, get_default_timeout, get_path_config


class DatabaseError(Exception):
    """Raised when a connection cannot be opened or configured."""


def iso_utcnow() -> str:
    """Return the current UTC time as ISO-8601 with a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def apply_pragmas(
    conn: sqlite3.Connection,
    *,
    enable_wal: bool = True,
    foreign_keys: bool = True,
    busy_timeout_ms: int | None = None,
) -> None:
    """Apply per-connection PRAGMAs.

    WAL lets the concurrent partition readers proceed while the sync side
    writes.
    """
    statements = []
    if enable_wal:
        statements.append("PRAGMA journal_mode=WAL;")
    if foreign_keys:
        statements.append("PRAGMA foreign_keys=ON;")
    if busy_timeout_ms is not None:
        statements.append(f"PRAGMA busy_timeout={int(busy_timeout_ms)};")
    try:
        for statement in statements:
            conn.execute(statement)
    except sqlite3.Error as exc:
        raise DatabaseError(f"Failed to apply PRAGMAs: {exc}") from exc


@contextmanager
def get_connection(
    db_path: str | Path | None = None,
    *,
    timeout: float | None = None,
    enable_wal: bool | None = None,
    foreign_keys: bool | None = None,
    check_same_thread: bool = True,
) -> Iterator[sqlite3.Connection]:
    """Yield a configured SQLite connection and close it on exit.

    Unset arguments fall back to ``config.json``. Pass
    ``check_same_thread=False`` when the connection is opened on an executor
    thread other than the one that closes it.

    Raises:
        DatabaseError: if the database cannot be opened or configured.
    """
    path = Path(db_path) if db_path is not None else get_path_config()["db_path"]
    path.parent.mkdir(parents=True, exist_ok=True)
    timeout_value = timeout if timeout is not None else get_default_timeout()
    options = get_db_options()

    try:
        conn = sqlite3.connect(path, timeout=timeout_value, check_same_thread=check_same_thread)
    except sqlite3.Error as exc:
        raise DatabaseError(f"Failed to connect to database {path}: {exc}") from exc
    try:
        apply_pragmas(
            conn,
            enable_wal=options["enable_wal"] if enable_wal is None else enable_wal,
            foreign_keys=options["foreign_keys"] if foreign_keys is None else foreign_keys,
            busy_timeout_ms=int(timeout_value * 1000),
        )
        yield conn
    finally:
        conn.close()
