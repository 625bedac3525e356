"""Observability facades: contextual logging and in-process metrics."""

from .logging import (
    configure_logging,
    current_log_context,
    get_logger,
    log_context,
    log_exception,
)
from .metrics import (
    Timer,
    format_prometheus,
    get_counter_value,
    get_metrics_summary,
    increment_counter,
    listing_request_timer,
    observe_histogram,
    record_cache_error,
    record_cache_lookup,
    record_listing_request,
    record_partition_query,
    reset_metrics,
)

__all__ = [
    # Logging
    "configure_logging",
    "current_log_context",
    "get_logger",
    "log_context",
    "log_exception",
    # Metrics
    "Timer",
    "format_prometheus",
    "get_counter_value",
    "get_metrics_summary",
    "increment_counter",
    "listing_request_timer",
    "observe_histogram",
    "record_cache_error",
    "record_cache_lookup",
    "record_listing_request",
    "record_partition_query",
    "reset_metrics",
]
