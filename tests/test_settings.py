"""Tests for listing settings loaded from config.json."""

import json

import pytest
from pydantic import ValidationError

from auction_listing.app.config import ListingSettings, load_settings


def test_defaults_when_config_missing(tmp_path):
    settings = load_settings(tmp_path / "config.json")

    assert settings.per_page_default == 12
    assert settings.ids_ttl_seconds == 300
    assert settings.counts_ttl_seconds == 900
    assert settings.concurrency_mode == "concurrent"
    assert settings.db_path.resolve() == (tmp_path / "listings.db").resolve()


def test_values_are_read_from_config(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "paths": {"db_path": "data/market.db"},
                "db_timeout_seconds": 5,
                "listing": {
                    "per_page_default": 24,
                    "ids_ttl_seconds": 60,
                    "concurrency_mode": "Sequential",
                },
            }
        ),
        encoding="utf-8",
    )

    settings = load_settings(config_path)

    assert settings.db_path.resolve() == (tmp_path / "data" / "market.db").resolve()
    assert settings.db_timeout_seconds == 5
    assert settings.per_page_default == 24
    assert settings.ids_ttl_seconds == 60
    assert settings.counts_ttl_seconds == 900
    assert settings.concurrency_mode == "sequential"


@pytest.mark.parametrize(
    "field,value",
    [("per_page_default", 0), ("per_page_default", 51), ("concurrency_mode", "threads")],
)
def test_invalid_settings_are_rejected(field, value):
    with pytest.raises(ValidationError):
        ListingSettings(**{field: value})
