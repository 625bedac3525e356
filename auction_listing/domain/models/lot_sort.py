"""Natural sort keys for free-text lot numbers.

Lot numbers such as ``"2"``, ``"10"``, ``"10A"`` or ``"LOT-5"`` are encoded
once, when the sync side writes a record, into a non-negative integer so the
database can order them with an ordinary index instead of a string natural
sort. The encoding is ``numeric_part * 10000 + suffix_ordinal``.
"""

from __future__ import annotations

import re
from typing import Mapping

BASE_MULTIPLIER = 10_000
# SQLite INTEGER is signed 64-bit
MAX_SORT_KEY = 2**63 - 1

_LOT_PREFIX = re.compile(r"^LOT[-:#.\s]*", re.IGNORECASE)
_LEADING_DIGITS = re.compile(r"^([0-9]+)")


def _fallback_key(fallback_id: int) -> int:
    return fallback_id % BASE_MULTIPLIER if fallback_id > 0 else 0


def _suffix_ordinal(suffix: str) -> int:
    """Return 1..26 for A..Z, 27..36 for 0..9 and 0 for anything else."""
    if not suffix:
        return 0
    first_char = suffix[0].upper()
    if "A" <= first_char <= "Z":
        return ord(first_char) - ord("A") + 1
    if "0" <= first_char <= "9":
        return int(first_char) + 27
    return 0


def encode_lot_sort_key(lot_text: str | None, fallback_id: int = 0) -> int:
    """Compute the sort key for a lot number.

    Args:
        lot_text: Free-text lot identifier (e.g. ``"10A"``, ``"LOT-5"``).
        fallback_id: Record id used when no numeric part can be parsed, so
            records without lot numbers still order by creation.

    Returns:
        Non-negative key, at most :data:`MAX_SORT_KEY`.
        ``"2" < "10" < "10A" < "10B" < "11"``.

    Example:
        >>> encode_lot_sort_key("LOT-5")
        50000
        >>> encode_lot_sort_key("5A")
        50001
        >>> encode_lot_sort_key("", 42)
        42
    """
    text = (lot_text or "").strip()
    if not text:
        return _fallback_key(fallback_id)

    text = _LOT_PREFIX.sub("", text).strip()
    match = _LEADING_DIGITS.match(text)
    if not match:
        return _fallback_key(fallback_id)

    numeric_part = int(match.group(1))
    suffix = text[match.end():].strip()
    sort_key = numeric_part * BASE_MULTIPLIER + _suffix_ordinal(suffix)
    return min(sort_key, MAX_SORT_KEY)


def batch_compute(lot_numbers: Mapping[int, str | None]) -> dict[int, int]:
    """Compute sort keys for ``{item_id: lot_no}``, keyed by item id."""
    return {
        item_id: encode_lot_sort_key(lot_no, item_id)
        for item_id, lot_no in lot_numbers.items()
    }


__all__ = ["BASE_MULTIPLIER", "MAX_SORT_KEY", "batch_compute", "encode_lot_sort_key"]
