"""Listing facade: normalize a request, page it, and enrich the ids.

Callers (the CLI, a web handler) only talk to :class:`ListingService`.
"""

from __future__ import annotations

import asyncio
import math
from concurrent.futures import Executor
from typing import Any, Mapping, Protocol, Sequence

from auction_listing.app.config import ListingSettings
from auction_listing.domain.models import (
    FilterSet,
    ListingKind,
    Partition,
)
from auction_listing.infrastructure.cache import CacheBackend, ResultCache
from auction_listing.infrastructure.db.repositories import (
    ListingError,
    repository_for,
    unix_now,
)
from auction_listing.infrastructure.db.repositories.listings import Clock
from auction_listing.infrastructure.observability import (
    get_logger,
    listing_request_timer,
    log_context,
    log_exception,
    record_listing_request,
)

from .base import BaseService, ConnectionFactory
from .dto import EnrichedRow, ListingPage
from .paginator import CrossPartitionPaginator

_logger = get_logger(__name__)


class RowEnricher(Protocol):
    """Turns listing ids into display rows.

    Implementations may omit ids they cannot resolve; they must not be
    relied upon to keep the order, the service restores it.
    """

    def enrich(self, kind: ListingKind, ids: Sequence[int]) -> list[EnrichedRow]: ...


class RecordEnricher:
    """Default enricher building rows from the listing tables themselves."""

    def __init__(self, service: BaseService, clock: Clock | None = None) -> None:
        self._service = service
        self._clock = clock or unix_now

    def enrich(self, kind: ListingKind, ids: Sequence[int]) -> list[EnrichedRow]:
        if not ids:
            return []
        records = self._service._with_connection(
            lambda conn: repository_for(kind, conn, self._clock).get_records(ids)
        )
        now = self._clock()
        return [
            EnrichedRow(
                id=record.id,
                kind=kind.value,
                title=record.title,
                status=record.partition_at(now).label,
                starts_at=record.starts_at,
                ends_at=record.ends_at,
                parent_id=record.parent_id or None,
                owner_id=record.owner_id or None,
                lot_no=record.lot_no or None,
                lot_sort_key=record.lot_sort_key if kind is ListingKind.ITEMS else None,
                location=record.location,
            )
            for record in records
        ]


class _RepositorySource:
    """Partition source opening a fresh connection for every sub-query."""

    def __init__(self, service: BaseService, kind: ListingKind, clock: Clock) -> None:
        self._service = service
        self._kind = kind
        self._clock = clock

    def _run(self, method: str, *args: Any) -> Any:
        return self._service._with_connection(
            lambda conn: getattr(repository_for(self._kind, conn, self._clock), method)(*args)
        )

    def count_partition(self, filters: FilterSet, partition: Partition) -> int:
        return self._run("count_partition", filters, partition)

    def fetch_partition(
        self, filters: FilterSet, partition: Partition, limit: int, offset: int
    ) -> list[int]:
        return self._run("fetch_partition", filters, partition, limit, offset)

    def fetch_newest(self, filters: FilterSet, limit: int, offset: int) -> list[int]:
        return self._run("fetch_newest", filters, limit, offset)

    def fetch_pinned(self, ids: Sequence[int]) -> list[int]:
        return self._run("fetch_pinned", ids)


class ListingService(BaseService):
    """Serve paginated, status-ordered listings of auctions and items.

    Args:
        connection_factory: Callable returning a context manager yielding a
            SQLite connection; called once per sub-query.
        settings: Page size default, cache TTLs and concurrency mode.
        cache_backend: Backend shared by the ids and counts caches. Defaults
            to the process-wide in-memory cache.
        enricher: Row enricher; defaults to :class:`RecordEnricher`.
        clock: Returns "now" in Unix seconds, read per sub-query.
        executor: Executor for blocking store calls.
    """

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        *,
        settings: ListingSettings | None = None,
        cache_backend: CacheBackend | None = None,
        enricher: RowEnricher | None = None,
        clock: Clock | None = None,
        executor: Executor | None = None,
    ) -> None:
        super().__init__(connection_factory)
        self.settings = settings or ListingSettings()
        self._clock = clock or unix_now
        self._executor = executor
        self._ids_cache = ResultCache("ids", cache_backend)
        self._counts_cache = ResultCache("counts", cache_backend)
        self.enricher: RowEnricher = enricher or RecordEnricher(self, self._clock)
        self._paginators: dict[ListingKind, CrossPartitionPaginator] = {}

    def paginator(self, kind: ListingKind | str) -> CrossPartitionPaginator:
        """Return the paginator serving ``kind``."""
        resolved = ListingKind.from_string(kind)
        if resolved not in self._paginators:
            self._paginators[resolved] = CrossPartitionPaginator(
                _RepositorySource(self, resolved, self._clock),
                resolved.value,
                ids_cache=self._ids_cache,
                counts_cache=self._counts_cache,
                ids_ttl=self.settings.ids_ttl_seconds,
                counts_ttl=self.settings.counts_ttl_seconds,
                mode=self.settings.concurrency_mode,
                executor=self._executor,
            )
        return self._paginators[resolved]

    def build_filters(
        self,
        filters: FilterSet | Mapping[str, Any] | None = None,
        page: Any = None,
        per_page: Any = None,
    ) -> FilterSet:
        """Normalize raw request parameters into a :class:`FilterSet`."""
        if isinstance(filters, FilterSet):
            data = filters.model_dump()
        else:
            data = dict(filters or {})
            if data.get("per_page") is None:
                data["per_page"] = self.settings.per_page_default
        if page is not None:
            data["page"] = page
        if per_page is not None:
            data["per_page"] = per_page
        return FilterSet.model_validate(data)

    async def list(
        self,
        kind: ListingKind | str,
        filters: FilterSet | Mapping[str, Any] | None = None,
        page: Any = None,
        per_page: Any = None,
    ) -> ListingPage:
        """Return one enriched listing page.

        Raises:
            ValueError: if ``kind`` is not a listing kind.
            RepositoryError: if the backing store fails; no partial page is
                returned.
        """
        resolved = ListingKind.from_string(kind)
        normalized = self.build_filters(filters, page, per_page)
        if normalized.pinned:
            mode = "pinned"
        else:
            mode = normalized.sort.value
        with listing_request_timer(resolved.value), log_context(
            kind=resolved.value, page=normalized.page
        ):
            _logger.debug("Listing request (mode=%s)", mode)
            loop = asyncio.get_running_loop()
            if not self._schema_ready:
                await loop.run_in_executor(self._executor, self.ensure_schema_once)

            try:
                result = await self.paginator(resolved).page(normalized)
            except ListingError as exc:
                log_exception(_logger, "Listing request failed", exc, mode=mode)
                raise
            rows: list[EnrichedRow] = []
            if result.ids:
                enriched = await loop.run_in_executor(
                    self._executor, self.enricher.enrich, resolved, list(result.ids)
                )
                by_id = {row.id: row for row in enriched}
                rows = [by_id[row_id] for row_id in result.ids if row_id in by_id]
                if len(rows) < len(result.ids):
                    _logger.debug(
                        "Enricher dropped %d of %d ids",
                        len(result.ids) - len(rows),
                        len(result.ids),
                    )

            pages = max(1, math.ceil(result.total_count / normalized.per_page))
            _logger.debug(
                "Listing page %d/%d with %d rows (total=%d)",
                normalized.page,
                pages,
                len(rows),
                result.total_count,
            )

        record_listing_request(resolved.value, mode)
        return ListingPage(
            kind=resolved.value,
            rows=rows,
            page=normalized.page,
            per_page=normalized.per_page,
            pages=pages,
            total=result.total_count,
            counts=result.counts.as_dict() if result.counts else None,
        )

    def list_sync(
        self,
        kind: ListingKind | str,
        filters: FilterSet | Mapping[str, Any] | None = None,
        page: Any = None,
        per_page: Any = None,
    ) -> ListingPage:
        """Synchronous wrapper around :meth:`list` for scripts and the CLI."""
        return asyncio.run(self.list(kind, filters, page, per_page))


__all__ = [
    "ListingService",
    "RecordEnricher",
    "RowEnricher",
]
