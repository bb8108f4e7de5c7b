"""
Metrics Collector: Prometheus-Compatible In-Process Metrics

Counters, gauges and histograms keyed by label sets, with a text export in
the Prometheus exposition format. The index facade records refresh counts,
rebuild latency, tree height and heap size here.

Collectors are plain objects handed to whoever needs them; there is no
process-wide registry.
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Sequence


@dataclass(frozen=True)
class MetricLabels:
    """Immutable, hashable label set."""
    labels: tuple[tuple[str, str], ...]

    @classmethod
    def from_dict(cls, d: dict[str, str]) -> MetricLabels:
        return cls(labels=tuple(sorted(d.items())))

    def to_dict(self) -> dict[str, str]:
        return dict(self.labels)


class _Metric:
    """Shared name/label plumbing."""

    __slots__ = ("_name", "_help", "_label_names", "_lock")

    def __init__(self, name: str, label_names: Sequence[str], help_text: str) -> None:
        self._name = name
        self._help = help_text
        self._label_names = tuple(label_names)
        self._lock = threading.Lock()

    def _make_key(self, labels: dict[str, str]) -> MetricLabels:
        return MetricLabels.from_dict({k: labels.get(k, "") for k in self._label_names})

    @property
    def name(self) -> str:
        return self._name

    @property
    def help_text(self) -> str:
        return self._help


class Counter(_Metric):
    """
    Monotonically increasing counter.

    Usage:
        refreshes = Counter("issue_index_refresh_total", ["trigger"])
        refreshes.inc(trigger="stale")
    """

    __slots__ = ("_values",)

    def __init__(self, name: str, label_names: Sequence[str] = (), help_text: str = "") -> None:
        super().__init__(name, label_names, help_text)
        self._values: dict[MetricLabels, float] = defaultdict(float)

    def inc(self, value: float = 1.0, **labels: str) -> None:
        if value < 0:
            raise ValueError("Counter can only increase")
        key = self._make_key(labels)
        with self._lock:
            self._values[key] += value

    def get(self, **labels: str) -> float:
        key = self._make_key(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def collect(self) -> Iterator[tuple[dict[str, str], float]]:
        with self._lock:
            items = list(self._values.items())
        for key, value in items:
            yield key.to_dict(), value


class Gauge(_Metric):
    """Value that can go up and down."""

    __slots__ = ("_values",)

    def __init__(self, name: str, label_names: Sequence[str] = (), help_text: str = "") -> None:
        super().__init__(name, label_names, help_text)
        self._values: dict[MetricLabels, float] = {}

    def set(self, value: float, **labels: str) -> None:
        key = self._make_key(labels)
        with self._lock:
            self._values[key] = value

    def get(self, **labels: str) -> float:
        key = self._make_key(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def collect(self) -> Iterator[tuple[dict[str, str], float]]:
        with self._lock:
            items = list(self._values.items())
        for key, value in items:
            yield key.to_dict(), value


class Histogram(_Metric):
    """
    Cumulative-bucket histogram.

    Usage:
        latency = Histogram("issue_index_refresh_seconds")
        with latency.time():
            rebuild()
    """

    __slots__ = ("_buckets", "_bucket_counts", "_sums", "_counts")

    DEFAULT_BUCKETS = (
        0.0005, 0.001, 0.005, 0.01, 0.025, 0.05,
        0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf"),
    )

    def __init__(
        self,
        name: str,
        label_names: Sequence[str] = (),
        help_text: str = "",
        buckets: Optional[Sequence[float]] = None,
    ) -> None:
        super().__init__(name, label_names, help_text)
        bounds = tuple(sorted(buckets or self.DEFAULT_BUCKETS))
        if bounds[-1] != float("inf"):
            bounds = bounds + (float("inf"),)
        self._buckets = bounds
        self._bucket_counts: dict[MetricLabels, list[int]] = {}
        self._sums: dict[MetricLabels, float] = defaultdict(float)
        self._counts: dict[MetricLabels, int] = defaultdict(int)

    def observe(self, value: float, **labels: str) -> None:
        key = self._make_key(labels)
        with self._lock:
            counts = self._bucket_counts.setdefault(key, [0] * len(self._buckets))
            for i, bound in enumerate(self._buckets):
                if value <= bound:
                    counts[i] += 1
            self._sums[key] += value
            self._counts[key] += 1

    def time(self, **labels: str) -> HistogramTimer:
        return HistogramTimer(self, labels)

    def count(self, **labels: str) -> int:
        key = self._make_key(labels)
        with self._lock:
            return self._counts.get(key, 0)

    def collect(self) -> Iterator[dict[str, Any]]:
        with self._lock:
            snapshot = [
                {
                    "labels": key.to_dict(),
                    "buckets": list(zip(self._buckets, counts)),
                    "sum": self._sums.get(key, 0.0),
                    "count": self._counts.get(key, 0),
                }
                for key, counts in self._bucket_counts.items()
            ]
        yield from snapshot


class HistogramTimer:
    """Context manager observing elapsed wall time on exit."""

    __slots__ = ("_histogram", "_labels", "_start")

    def __init__(self, histogram: Histogram, labels: dict[str, str]) -> None:
        self._histogram = histogram
        self._labels = labels
        self._start = 0.0

    def __enter__(self) -> HistogramTimer:
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self._histogram.observe(time.perf_counter() - self._start, **self._labels)


class MetricsCollector:
    """
    Registry of named metrics.

    Usage:
        collector = MetricsCollector()
        refreshes = collector.counter("issue_index_refresh_total", ["trigger"])
        print(collector.export_prometheus())
    """

    __slots__ = ("_counters", "_gauges", "_histograms", "_lock")

    def __init__(self) -> None:
        self._counters: dict[str, Counter] = {}
        self._gauges: dict[str, Gauge] = {}
        self._histograms: dict[str, Histogram] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, label_names: Sequence[str] = (), help_text: str = "") -> Counter:
        """Get or create counter."""
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name, label_names, help_text)
            return self._counters[name]

    def gauge(self, name: str, label_names: Sequence[str] = (), help_text: str = "") -> Gauge:
        """Get or create gauge."""
        with self._lock:
            if name not in self._gauges:
                self._gauges[name] = Gauge(name, label_names, help_text)
            return self._gauges[name]

    def histogram(
        self,
        name: str,
        label_names: Sequence[str] = (),
        help_text: str = "",
        buckets: Optional[Sequence[float]] = None,
    ) -> Histogram:
        """Get or create histogram."""
        with self._lock:
            if name not in self._histograms:
                self._histograms[name] = Histogram(name, label_names, help_text, buckets)
            return self._histograms[name]

    def export_prometheus(self) -> str:
        """Export all metrics in Prometheus text format."""
        lines: list[str] = []

        for name, counter in self._counters.items():
            if counter.help_text:
                lines.append(f"# HELP {name} {counter.help_text}")
            lines.append(f"# TYPE {name} counter")
            for labels, value in counter.collect():
                lines.append(f"{name}{self._format_labels(labels)} {value}")

        for name, gauge in self._gauges.items():
            if gauge.help_text:
                lines.append(f"# HELP {name} {gauge.help_text}")
            lines.append(f"# TYPE {name} gauge")
            for labels, value in gauge.collect():
                lines.append(f"{name}{self._format_labels(labels)} {value}")

        for name, histogram in self._histograms.items():
            if histogram.help_text:
                lines.append(f"# HELP {name} {histogram.help_text}")
            lines.append(f"# TYPE {name} histogram")
            for data in histogram.collect():
                labels = data["labels"]
                for bound, count in data["buckets"]:
                    bound_str = "+Inf" if bound == float("inf") else str(bound)
                    bucket_labels = self._format_labels({**labels, "le": bound_str})
                    lines.append(f"{name}_bucket{bucket_labels} {count}")
                label_str = self._format_labels(labels)
                lines.append(f"{name}_sum{label_str} {data['sum']}")
                lines.append(f"{name}_count{label_str} {data['count']}")

        return "\n".join(lines)

    @staticmethod
    def _format_labels(labels: dict[str, str]) -> str:
        pairs = [f'{k}="{v}"' for k, v in sorted(labels.items()) if v != ""]
        return "{" + ",".join(pairs) + "}" if pairs else ""
