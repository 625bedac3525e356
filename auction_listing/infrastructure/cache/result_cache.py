"""Read-through result cache for listing ids and partition counts."""

from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

from auction_listing.infrastructure.observability import (
    get_logger,
    record_cache_error,
    record_cache_lookup,
)

from .backends import CacheBackend, InMemoryCache, default_backend

T = TypeVar("T")

_logger = get_logger(__name__)


class ResultCache:
    """Namespaced read-through cache over a :class:`CacheBackend`.

    Backend failures are logged and treated as misses; the computed value
    is still returned. Concurrent misses for the same key each compute
    (there is no single-flight). Entries only leave the cache by TTL.
    """

    def __init__(self, namespace: str, backend: CacheBackend | None = None) -> None:
        self.namespace = namespace
        self.backend: CacheBackend = backend if backend is not None else default_backend()

    def _key(self, key: str) -> str:
        return f"listing:{self.namespace}:{key}"

    def get(self, key: str) -> object | None:
        full_key = self._key(key)
        try:
            value = self.backend.get(full_key)
        except Exception as exc:
            _logger.warning("Cache read failed for %s: %s", full_key, exc)
            record_cache_error(self.namespace, "get")
            value = None
        record_cache_lookup(self.namespace, value is not None)
        return value

    def set(self, key: str, value: object, ttl: float) -> None:
        full_key = self._key(key)
        try:
            self.backend.set(full_key, value, ttl)
        except Exception as exc:
            _logger.warning("Cache write failed for %s: %s", full_key, exc)
            record_cache_error(self.namespace, "set")

    def get_or_compute(self, key: str, ttl: float, compute: Callable[[], T]) -> T:
        """Return the cached value for ``key`` or compute, store and return it.

        Exceptions raised by ``compute`` propagate and nothing is stored.
        """
        cached = self.get(key)
        if cached is not None:
            return cached  # type: ignore[return-value]
        value = compute()
        self.set(key, value, ttl)
        return value

    async def aget_or_compute(
        self, key: str, ttl: float, compute: Callable[[], Awaitable[T]]
    ) -> T:
        """Awaitable variant of :meth:`get_or_compute`."""
        cached = self.get(key)
        if cached is not None:
            return cached  # type: ignore[return-value]
        value = await compute()
        self.set(key, value, ttl)
        return value

    def invalidate_all(self) -> None:
        """Clear the backend when it is the in-memory one.

        Listing writes do not call this; cached pages stay stale until their
        TTL expires.
        """
        if isinstance(self.backend, InMemoryCache):
            self.backend.clear()


__all__ = ["ResultCache"]
