"""Query helpers shared by the listing repositories.

Every helper converts ``sqlite3.Error`` into :class:`RepositoryError` so a
failing backing store can never be mistaken for an empty result.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Sequence


class ListingError(Exception):
    """Base class for listing engine failures."""


class RepositoryError(ListingError):
    """Raised when the backing store fails to answer a listing query."""


def _fetch(cur: sqlite3.Cursor, many: bool) -> Any:
    try:
        return cur.fetchall() if many else cur.fetchone()
    except sqlite3.Error as exc:
        raise RepositoryError(f"Fetch failed: {exc}") from exc


class BaseRepository:
    """Wraps one SQLite connection; subclasses add the table-specific SQL."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def _execute(
        self, query: str, params: Sequence[Any] | None = None
    ) -> sqlite3.Cursor:
        """Run ``query`` and hand back the cursor.

        Raises:
            RepositoryError: if SQLite rejects or fails the statement.
        """
        try:
            return self.conn.execute(query, tuple(params or ()))
        except sqlite3.Error as exc:
            raise RepositoryError(f"Query failed: {exc}") from exc

    def _fetch_all_as_dicts(
        self, query: str, params: Sequence[Any] | None = None
    ) -> list[dict[str, Any]]:
        """Rows of ``query`` as ``{column: value}`` dicts."""
        cur = self._execute(query, params)
        names = [desc[0] for desc in cur.description]
        return [dict(zip(names, row)) for row in _fetch(cur, many=True)]

    def _fetch_column(
        self, query: str, params: Sequence[Any] | None = None
    ) -> list[Any]:
        cur = self._execute(query, params)
        return [row[0] for row in _fetch(cur, many=True)]

    def _fetch_scalar(self, query: str, params: Sequence[Any] | None = None) -> Any:
        """First column of the first row, or ``None`` when there is no row."""
        row = _fetch(self._execute(query, params), many=False)
        return row[0] if row else None
