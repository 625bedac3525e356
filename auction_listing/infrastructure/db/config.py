"""Project configuration read from an optional ``config.json``.

Only the database layer and :mod:`auction_listing.app.config` read this file;
everything else receives resolved values.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

DEFAULT_DB_TIMEOUT = 30.0
DEFAULT_DB_FILENAME = "listings.db"

_REPO_ROOT = Path(__file__).resolve().parents[3]
_CONFIG_FILE = _REPO_ROOT / "config.json"


def _config_file(config_path: Path | str | None) -> Path:
    return Path(config_path) if config_path is not None else _CONFIG_FILE


def load_config(config_path: Path | str | None = None) -> Dict[str, Any]:
    """Return the parsed configuration, or ``{}`` when the file is absent.

    Raises:
        ValueError: if the file exists but is not a JSON object.
    """
    path = _config_file(config_path)
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return data


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = cfg.get(name, {})
    return value if isinstance(value, dict) else {}


def get_path_config(config_path: Path | str | None = None) -> Dict[str, Path]:
    """Return filesystem paths; relative entries resolve against the config dir."""
    root = _config_file(config_path).parent
    db_path = Path(_section(load_config(config_path), "paths").get("db_path", DEFAULT_DB_FILENAME))
    if not db_path.is_absolute():
        db_path = (root / db_path).resolve()
    return {"db_path": db_path}


def get_default_timeout(config_path: Path | str | None = None) -> float:
    """Read the SQLite busy timeout (seconds), falling back to the default."""
    try:
        return float(load_config(config_path).get("db_timeout_seconds", DEFAULT_DB_TIMEOUT))
    except (TypeError, ValueError):
        return DEFAULT_DB_TIMEOUT


def get_db_options(config_path: Path | str | None = None) -> Dict[str, bool]:
    """Return the ``db`` section flags applied as PRAGMAs on each connection."""
    db_cfg = _section(load_config(config_path), "db")
    return {
        "enable_wal": bool(db_cfg.get("enable_wal", True)),
        "foreign_keys": bool(db_cfg.get("foreign_keys", True)),
    }


def get_listing_config(config_path: Path | str | None = None) -> Dict[str, Any]:
    """Return the raw ``listing`` section."""
    return _section(load_config(config_path), "listing")
