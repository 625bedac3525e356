"""Result caching for listing queries."""

from .backends import CacheBackend, InMemoryCache, default_backend
from .result_cache import ResultCache

__all__ = ["CacheBackend", "InMemoryCache", "ResultCache", "default_backend"]
