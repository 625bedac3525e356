"""Tests for the metrics registry and contextual logging."""

from __future__ import annotations

import logging

import pytest

from auction_listing.infrastructure.observability import (
    Timer,
    current_log_context,
    format_prometheus,
    get_counter_value,
    get_metrics_summary,
    log_context,
    observe_histogram,
    record_listing_request,
    record_partition_query,
    reset_metrics,
)
from auction_listing.infrastructure.observability.logging import ContextualFormatter
from auction_listing.infrastructure.observability.metrics import (
    LISTING_REQUESTS,
    PARTITION_QUERIES,
)


@pytest.fixture(autouse=True)
def _reset_metrics():
    reset_metrics()
    yield
    reset_metrics()


def test_partition_query_counter():
    record_partition_query("items", "running", "count")
    record_partition_query("items", "running", "count")
    record_partition_query("items", "expired", "fetch")

    labels = {"kind": "items", "partition": "running", "operation": "count"}
    assert get_counter_value(PARTITION_QUERIES, labels) == 2


def test_listing_request_summary_and_prometheus():
    record_listing_request("auctions", "ending_soon", 0.25)

    summary = get_metrics_summary()
    assert summary["counters"][LISTING_REQUESTS] == {"kind=auctions,mode=ending_soon": 1.0}
    stats = summary["histograms"]["listing_request_duration_seconds"]["kind=auctions"]
    assert stats["count"] == 1

    text = format_prometheus()
    assert "# TYPE listing_requests_total counter" in text
    assert 'listing_requests_total{kind="auctions",mode="ending_soon"} 1.0' in text
    assert 'listing_request_duration_seconds_count{kind="auctions"} 1' in text


def test_timer_records_duration():
    with Timer("test_duration_seconds") as timer:
        pass
    assert timer.duration >= 0
    assert "test_duration_seconds_count 1" in format_prometheus()


def test_log_context_is_nested_and_restored():
    with log_context(kind="items"):
        with log_context(page=2):
            assert current_log_context() == {"kind": "items", "page": 2}
        assert current_log_context() == {"kind": "items"}
    assert current_log_context() == {}


def test_contextual_formatter_appends_fields():
    formatter = ContextualFormatter("%(message)s")
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "Listing page", None, None)
    with log_context(kind="auctions"):
        assert formatter.format(record) == "Listing page [kind=auctions]"


def test_histogram_keeps_running_aggregates():
    for value in (0.5, 0.1, 0.3):
        observe_histogram("fetch_seconds", value, {"kind": "items"})

    stats = get_metrics_summary()["histograms"]["fetch_seconds"]["kind=items"]
    assert stats["count"] == 3
    assert stats["min"] == pytest.approx(0.1)
    assert stats["max"] == pytest.approx(0.5)
    assert stats["avg"] == pytest.approx(0.3)
