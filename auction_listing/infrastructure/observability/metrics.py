"""In-process metrics for cache effectiveness and query fan-out.

Counters and summaries live in a process-wide registry and can be rendered in
Prometheus text format (``auction-listing metrics``) or as a dict for logs.
Summaries keep running aggregates only, so memory does not grow with traffic.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Mapping

Labels = Mapping[str, str | None]
LabelKey = tuple[tuple[str, str | None], ...]


def _labels_to_key(labels: Labels | None) -> LabelKey:
    return tuple(sorted(labels.items())) if labels else ()


@dataclass
class Counter:
    """A monotonically increasing value per label set."""

    name: str
    help_text: str = ""
    _values: dict[LabelKey, float] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def inc(self, value: float = 1.0, labels: Labels | None = None) -> None:
        key = _labels_to_key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + value

    def get(self, labels: Labels | None = None) -> float:
        with self._lock:
            return self._values.get(_labels_to_key(labels), 0.0)

    def items(self) -> list[tuple[LabelKey, float]]:
        with self._lock:
            return list(self._values.items())


@dataclass
class _Aggregate:
    count: int = 0
    total: float = 0.0
    minimum: float = float("inf")
    maximum: float = float("-inf")

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.minimum = min(self.minimum, value)
        self.maximum = max(self.maximum, value)

    def stats(self) -> dict[str, float]:
        if not self.count:
            return {"count": 0, "sum": 0.0, "avg": 0.0, "min": 0.0, "max": 0.0}
        return {
            "count": self.count,
            "sum": self.total,
            "avg": self.total / self.count,
            "min": self.minimum,
            "max": self.maximum,
        }


@dataclass
class Histogram:
    """Count, sum, min and max of observations per label set."""

    name: str
    help_text: str = ""
    _aggregates: dict[LabelKey, _Aggregate] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def observe(self, value: float, labels: Labels | None = None) -> None:
        key = _labels_to_key(labels)
        with self._lock:
            self._aggregates.setdefault(key, _Aggregate()).add(value)

    def get_stats(self, labels: Labels | None = None) -> dict[str, float]:
        with self._lock:
            aggregate = self._aggregates.get(_labels_to_key(labels), _Aggregate())
            return aggregate.stats()

    def items(self) -> list[tuple[LabelKey, dict[str, float]]]:
        with self._lock:
            return [(key, agg.stats()) for key, agg in self._aggregates.items()]


class MetricRegistry:
    """Name-indexed store of counters and histograms."""

    def __init__(self) -> None:
        self._counters: dict[str, Counter] = {}
        self._histograms: dict[str, Histogram] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, help_text: str = "") -> Counter:
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name=name, help_text=help_text)
            return self._counters[name]

    def histogram(self, name: str, help_text: str = "") -> Histogram:
        with self._lock:
            if name not in self._histograms:
                self._histograms[name] = Histogram(name=name, help_text=help_text)
            return self._histograms[name]

    def snapshot(self) -> tuple[dict[str, Counter], dict[str, Histogram]]:
        with self._lock:
            return dict(self._counters), dict(self._histograms)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()


_registry = MetricRegistry()


def increment_counter(
    name: str,
    value: float = 1.0,
    labels: Labels | None = None,
    help_text: str = "",
) -> None:
    """Increment a counter by name, creating it if needed."""
    _registry.counter(name, help_text).inc(value, labels)


def observe_histogram(
    name: str,
    value: float,
    labels: Labels | None = None,
    help_text: str = "",
) -> None:
    """Record an observation in a histogram, creating it if needed."""
    _registry.histogram(name, help_text).observe(value, labels)


def get_counter_value(name: str, labels: Labels | None = None) -> float:
    return _registry.counter(name).get(labels)


def reset_metrics() -> None:
    """Drop every recorded metric."""
    _registry.reset()


class Timer:
    """Context manager observing the elapsed wall time into a histogram."""

    def __init__(
        self,
        histogram_name: str,
        labels: Labels | None = None,
        help_text: str = "",
    ) -> None:
        self.histogram_name = histogram_name
        self.labels = labels
        self.help_text = help_text
        self.duration = 0.0
        self._start = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: object) -> None:
        self.duration = time.perf_counter() - self._start
        observe_histogram(self.histogram_name, self.duration, self.labels, self.help_text)


# ---------------------------------------------------------------------------
# Listing metrics
# ---------------------------------------------------------------------------

CACHE_LOOKUPS = "listing_cache_lookups_total"
CACHE_ERRORS = "listing_cache_errors_total"
PARTITION_QUERIES = "listing_partition_queries_total"
LISTING_REQUESTS = "listing_requests_total"
LISTING_REQUEST_DURATION = "listing_request_duration_seconds"
LISTING_REQUEST_DURATION_HELP = "Listing request duration in seconds"


def record_cache_lookup(namespace: str, hit: bool) -> None:
    """Count a lookup in the ``ids`` or ``counts`` cache."""
    increment_counter(
        CACHE_LOOKUPS,
        labels={"namespace": namespace, "result": "hit" if hit else "miss"},
        help_text="Result cache lookups",
    )


def record_cache_error(namespace: str, operation: str) -> None:
    """Count a cache backend failure that was treated as a miss."""
    increment_counter(
        CACHE_ERRORS,
        labels={"namespace": namespace, "operation": operation},
        help_text="Cache backend failures treated as misses",
    )


def record_partition_query(kind: str, partition: str, operation: str) -> None:
    """Count one query issued against a listing table."""
    increment_counter(
        PARTITION_QUERIES,
        labels={"kind": kind, "partition": partition, "operation": operation},
        help_text="Queries issued against listing tables",
    )


def record_listing_request(kind: str, mode: str, duration: float | None = None) -> None:
    """Count a completed listing request.

    ``duration`` is observed only when given; :func:`listing_request_timer`
    records it for callers timing the whole request.
    """
    increment_counter(
        LISTING_REQUESTS,
        labels={"kind": kind, "mode": mode},
        help_text="Completed listing requests",
    )
    if duration is not None:
        observe_histogram(
            LISTING_REQUEST_DURATION,
            duration,
            labels={"kind": kind},
            help_text=LISTING_REQUEST_DURATION_HELP,
        )


def listing_request_timer(kind: str) -> Timer:
    """Timer observing one listing request into the duration summary."""
    return Timer(
        LISTING_REQUEST_DURATION,
        labels={"kind": kind},
        help_text=LISTING_REQUEST_DURATION_HELP,
    )


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def _label_str(key: LabelKey, quoted: bool = False) -> str:
    if quoted:
        return ",".join(f'{k}="{v}"' for k, v in key)
    return ",".join(f"{k}={v}" for k, v in key)


def get_metrics_summary() -> dict[str, dict[str, object]]:
    """Return all metrics as nested dicts keyed by ``k=v`` label strings."""
    counters, histograms = _registry.snapshot()
    return {
        "counters": {
            name: {(_label_str(key) or "default"): value for key, value in counter.items()}
            for name, counter in counters.items()
        },
        "histograms": {
            name: {(_label_str(key) or "default"): stats for key, stats in histogram.items()}
            for name, histogram in histograms.items()
        },
    }


def format_prometheus() -> str:
    """Render all metrics in Prometheus text exposition format."""
    counters, histograms = _registry.snapshot()
    lines: list[str] = []

    for name, counter in counters.items():
        if counter.help_text:
            lines.append(f"# HELP {name} {counter.help_text}")
        lines.append(f"# TYPE {name} counter")
        for key, value in counter.items():
            suffix = f"{{{_label_str(key, quoted=True)}}}" if key else ""
            lines.append(f"{name}{suffix} {value}")

    for name, histogram in histograms.items():
        if histogram.help_text:
            lines.append(f"# HELP {name} {histogram.help_text}")
        lines.append(f"# TYPE {name} summary")
        for key, stats in histogram.items():
            suffix = f"{{{_label_str(key, quoted=True)}}}" if key else ""
            lines.append(f"{name}_count{suffix} {stats['count']}")
            lines.append(f"{name}_sum{suffix} {stats['sum']}")

    return "\n".join(lines)
