"""User-facing interfaces for the listing engine."""
