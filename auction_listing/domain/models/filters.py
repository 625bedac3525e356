"""Normalized, immutable filter sets for listing requests.

Every listing request is turned into a :class:`FilterSet` at the service
boundary. Invalid values are normalized rather than rejected, and the frozen
model is then hashed into cache keys.
"""

from __future__ import annotations

import hashlib
import json
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_PER_PAGE = 12
MAX_PER_PAGE = 50


class SortOrder(str, Enum):
    """User-selectable listing orders."""

    ENDING_SOON = "ending_soon"
    NEWEST = "newest"


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_ids(value: Any) -> tuple[int, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        raw: Iterable[Any] = value.split(",")
    elif isinstance(value, (int, bool)):
        raw = [value]
    else:
        raw = value
    seen: dict[int, None] = {}
    for candidate in raw:
        parsed = _to_int(candidate)
        if parsed is not None and parsed > 0:
            seen.setdefault(parsed, None)
    return tuple(seen)


def _hash_payload(payload: dict) -> str:
    canonical = json.dumps(payload, sort_keys=True, default=str, ensure_ascii=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class FilterSet(BaseModel):
    """Query parameters for one listing request.

    ``ids`` is the pinned-order allow-list: when non-empty it overrides every
    other filter and the sort order.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    page: int = 1
    per_page: int = DEFAULT_PER_PAGE
    sort: SortOrder = SortOrder.ENDING_SOON
    owner_id: int | None = None
    parent_id: int | None = None
    country: str | None = None
    subdivision: str | None = None
    search: str | None = None
    ids: tuple[int, ...] = ()

    @field_validator("page", mode="before")
    @classmethod
    def _normalize_page(cls, value: Any) -> int:
        parsed = _to_int(value)
        return max(1, parsed) if parsed is not None else 1

    @field_validator("per_page", mode="before")
    @classmethod
    def _normalize_per_page(cls, value: Any) -> int:
        parsed = _to_int(value)
        if parsed is None:
            return DEFAULT_PER_PAGE
        return min(MAX_PER_PAGE, max(1, parsed))

    @field_validator("sort", mode="before")
    @classmethod
    def _normalize_sort(cls, value: Any) -> SortOrder:
        if isinstance(value, SortOrder):
            return value
        normalized = (_clean_text(value) or "").lower()
        for option in SortOrder:
            if option.value == normalized:
                return option
        return SortOrder.ENDING_SOON

    @field_validator("owner_id", "parent_id", mode="before")
    @classmethod
    def _normalize_positive_id(cls, value: Any) -> int | None:
        parsed = _to_int(value)
        return parsed if parsed is not None and parsed > 0 else None

    @field_validator("country", mode="before")
    @classmethod
    def _normalize_country(cls, value: Any) -> str | None:
        text = _clean_text(value)
        return text.upper() if text else None

    @field_validator("subdivision", "search", mode="before")
    @classmethod
    def _normalize_text(cls, value: Any) -> str | None:
        return _clean_text(value)

    @field_validator("ids", mode="before")
    @classmethod
    def _normalize_ids(cls, value: Any) -> tuple[int, ...]:
        return _parse_ids(value)

    @property
    def pinned(self) -> bool:
        return bool(self.ids)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def with_paging(self, page: Any, per_page: Any) -> "FilterSet":
        """Return a copy with new (normalized) paging values."""
        return type(self).model_validate(
            {**self.model_dump(), "page": page, "per_page": per_page}
        )

    def criteria_payload(self) -> dict[str, Any]:
        """Return the filter fields that decide *which* rows match."""
        payload = self.model_dump(mode="json", exclude={"page", "per_page"})
        payload["ids"] = list(self.ids)
        return payload

    def criteria_key(self, kind: str) -> str:
        """Stable hash of the matching criteria (no paging) for ``kind``."""
        return _hash_payload({"kind": kind, **self.criteria_payload()})

    def page_key(self, kind: str) -> str:
        """Stable hash of the criteria plus the requested page window."""
        return _hash_payload(
            {
                "kind": kind,
                **self.criteria_payload(),
                "page": self.page,
                "per_page": self.per_page,
            }
        )


__all__ = ["DEFAULT_PER_PAGE", "MAX_PER_PAGE", "FilterSet", "SortOrder"]
