"""Cache backends for listing query results.

Backends store opaque values under string keys with a per-entry TTL. The
in-memory backend is the process-wide default; anything implementing
:class:`CacheBackend` (an external key/value store, a test double) can be
injected instead.
"""

from __future__ import annotations

import heapq
import threading
import time
from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """Minimal key/value store with per-entry expiry."""

    def get(self, key: str) -> Any | None:
        """Return the stored value, or ``None`` when absent or expired."""
        ...

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store ``value`` for ``ttl`` seconds."""
        ...


class InMemoryCache:
    """Thread-safe dict-backed cache with per-entry expiry.

    Reads evict the entry they find expired, and every write first drops the
    entries whose deadline has passed, so the map holds at most what was
    written within the longest TTL. ``clock`` returns seconds and defaults to
    ``time.monotonic``.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.monotonic
        self._entries: dict[str, tuple[float, Any]] = {}
        # (expires_at, key); stale pairs are skipped when popped
        self._deadlines: list[tuple[float, str]] = []
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: float) -> None:
        if ttl <= 0:
            return
        now = self._clock()
        expires_at = now + ttl
        with self._lock:
            self._evict_due(now)
            self._entries[key] = (expires_at, value)
            heapq.heappush(self._deadlines, (expires_at, key))

    def _evict_due(self, now: float) -> int:
        removed = 0
        while self._deadlines and self._deadlines[0][0] <= now:
            expires_at, key = heapq.heappop(self._deadlines)
            entry = self._entries.get(key)
            if entry is not None and entry[0] == expires_at:
                del self._entries[key]
                removed += 1
        return removed

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock:
            return self._evict_due(now)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._deadlines.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_default_backend: InMemoryCache | None = None
_default_lock = threading.Lock()


def default_backend() -> InMemoryCache:
    """Return the process-wide in-memory backend, creating it on first use."""
    global _default_backend
    with _default_lock:
        if _default_backend is None:
            _default_backend = InMemoryCache()
        return _default_backend


__all__ = ["CacheBackend", "InMemoryCache", "default_backend"]
