"""Infrastructure adapters: SQLite persistence, result caching, observability."""
