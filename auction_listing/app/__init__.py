"""Application-level settings for the listing engine."""

from .config import ListingSettings, load_settings

__all__ = ["ListingSettings", "load_settings"]
