"""Configuration utilities for the listing engine.

Settings are read from the same ``config.json`` the database layer uses and
validated into a :class:`ListingSettings` model.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auction_listing.domain.models import DEFAULT_PER_PAGE, MAX_PER_PAGE
from auction_listing.infrastructure.db.config import (
    DEFAULT_DB_TIMEOUT,
    get_default_timeout,
    get_listing_config,
    get_path_config,
)


class ListingSettings(BaseModel):
    """Tunables for listing requests."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    db_path: Path | None = None
    db_timeout_seconds: float = DEFAULT_DB_TIMEOUT
    per_page_default: int = Field(default=DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE)
    ids_ttl_seconds: float = Field(default=300, ge=0)
    counts_ttl_seconds: float = Field(default=900, ge=0)
    concurrency_mode: Literal["concurrent", "sequential"] = "concurrent"

    @field_validator("concurrency_mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> str:
        return str(value or "concurrent").strip().lower()


def load_settings(config_path: str | Path | None = None) -> ListingSettings:
    """Load listing settings from configuration.

    Args:
        config_path: Optional path to a JSON configuration file. Defaults to
            ``config.json`` at the project root; missing files yield defaults.

    Returns:
        Validated settings.
    """
    return ListingSettings.model_validate(
        {
            "db_path": get_path_config(config_path)["db_path"],
            "db_timeout_seconds": get_default_timeout(config_path),
            **get_listing_config(config_path),
        }
    )


__all__ = ["ListingSettings", "load_settings"]
