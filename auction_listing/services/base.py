"""Connection handling shared by the listing services.

Services hold a connection factory rather than a connection: every unit of
work, including each concurrent partition sub-query, opens its own SQLite
connection and closes it when done.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import AbstractContextManager
from typing import Any, Callable, TypeVar

from auction_listing.infrastructure.db import DatabaseError, ensure_schema, get_connection
from auction_listing.infrastructure.db.repositories import RepositoryError
from auction_listing.infrastructure.observability import get_logger

ConnectionFactory = Callable[[], AbstractContextManager[sqlite3.Connection]]
T = TypeVar("T")
S = TypeVar("S", bound="BaseService")


class BaseService:
    """Owns a connection factory and the one-time schema bootstrap.

    Tests pass a factory bound to a temporary database::

        service = ListingService(lambda: get_connection(tmp_path / "listings.db"))

    while applications usually go through :meth:`from_sqlite_path`.
    """

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        self._connection_factory = connection_factory
        self._logger = get_logger(type(self).__module__)
        self._schema_lock = threading.Lock()
        self._schema_ready = False

    @classmethod
    def from_sqlite_path(cls: type[S], db_path: str, **kwargs: Any) -> S:
        """Build a service whose connections point at ``db_path``.

        Sub-queries run on executor threads, so connections are opened with
        ``check_same_thread=False``.
        """

        def open_connection() -> AbstractContextManager[sqlite3.Connection]:
            return get_connection(db_path, check_same_thread=False)

        return cls(open_connection, **kwargs)

    def ensure_schema_once(self) -> None:
        """Create or migrate the listing tables the first time they are needed."""
        with self._schema_lock:
            if self._schema_ready:
                return
            self._with_connection(ensure_schema, ensure=False)
            self._schema_ready = True
            self._logger.debug("Listing schema ready")

    def _with_connection(
        self, fn: Callable[[sqlite3.Connection], T], *, ensure: bool = True
    ) -> T:
        """Run ``fn`` on a fresh connection, mapping store failures.

        Raises:
            RepositoryError: if the connection cannot be opened or SQLite
                fails outside a repository helper.
        """
        if ensure and not self._schema_ready:
            self.ensure_schema_once()
        try:
            with self._connection_factory() as conn:
                return fn(conn)
        except DatabaseError as exc:
            raise RepositoryError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise RepositoryError(f"Database error: {exc}") from exc
