"""
Unit Tests: Logging and Metrics

Tests:
    - JSON log lines with extra fields and context propagation
    - setup_logging configuration
    - Counter / Gauge / Histogram and Prometheus export
"""

import io
import json
import logging
from datetime import datetime

import pytest

from issue_index.core.config import LoggingConfig
from issue_index.observability.logging import JsonFormatter, StructuredLogger, setup_logging
from issue_index.observability.metrics import Counter, Gauge, Histogram, MetricsCollector


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def read_lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestJsonLogging:
    """Tests for structured log output."""

    def test_extra_fields_become_keys(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(LoggingConfig(level="DEBUG", json=True), stream=stream)

        logging.getLogger("issue_index.test").info(
            "Index refreshed", extra={"trigger": "forced", "tree_height": 3},
        )

        (line,) = read_lines(stream)
        assert line["message"] == "Index refreshed"
        assert line["level"] == "INFO"
        assert line["logger"] == "issue_index.test"
        assert line["trigger"] == "forced"
        assert line["tree_height"] == 3
        assert "@timestamp" in line

    def test_context_fields(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(LoggingConfig(json=True), stream=stream)
        logger = StructuredLogger("issue_index.cli")

        with logger.context(command="top"):
            logger.info("inside", count=5)
        logger.info("outside")

        inside, outside = read_lines(stream)
        assert inside["command"] == "top"
        assert inside["count"] == 5
        assert "command" not in outside

    def test_with_extra(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(LoggingConfig(json=True), stream=stream)

        StructuredLogger("issue_index.x").with_extra(db_path="a.db").warning("slow")

        (line,) = read_lines(stream)
        assert line["db_path"] == "a.db"
        assert line["level"] == "WARNING"

    def test_level_filtering(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(LoggingConfig(level="WARNING", json=True), stream=stream)

        logging.getLogger("issue_index.y").info("hidden")
        logging.getLogger("issue_index.y").error("shown")

        assert [line["message"] for line in read_lines(stream)] == ["shown"]

    def test_plain_text_output(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(LoggingConfig(json=False), stream=stream)

        logging.getLogger("issue_index.z").info("hello")

        assert "| INFO" in stream.getvalue()
        assert "hello" in stream.getvalue()

    def test_formatter_serializes_datetimes(self):
        record = logging.LogRecord("n", logging.INFO, __file__, 1, "msg", None, None)
        record.when = datetime(2024, 1, 1)

        data = json.loads(JsonFormatter().format(record))

        assert data["when"] == "2024-01-01 00:00:00"


class TestMetrics:
    """Tests for in-process metrics."""

    def test_counter(self):
        counter = Counter("refreshes", ["trigger"])
        counter.inc(trigger="stale")
        counter.inc(2, trigger="stale")
        counter.inc(trigger="forced")

        assert counter.get(trigger="stale") == 3
        assert counter.get(trigger="forced") == 1
        assert counter.get(trigger="mutation") == 0

    def test_counter_rejects_negative(self):
        with pytest.raises(ValueError):
            Counter("c").inc(-1)

    def test_gauge(self):
        gauge = Gauge("heap_size")
        gauge.set(10)
        gauge.set(4)

        assert gauge.get() == 4

    def test_histogram(self):
        histogram = Histogram("latency", buckets=[0.1, 1.0])
        histogram.observe(0.05)
        histogram.observe(0.5)
        histogram.observe(3.0)

        (data,) = list(histogram.collect())
        assert data["count"] == 3
        assert data["buckets"] == [(0.1, 1), (1.0, 2), (float("inf"), 3)]

    def test_histogram_timer(self):
        histogram = Histogram("rebuild")
        with histogram.time():
            pass

        assert histogram.count() == 1

    def test_collector_reuses_metrics(self):
        collector = MetricsCollector()

        assert collector.counter("a") is collector.counter("a")
        assert collector.gauge("b") is collector.gauge("b")
        assert collector.histogram("c") is collector.histogram("c")

    def test_prometheus_export(self):
        collector = MetricsCollector()
        collector.counter("issue_index_refresh_total", ["trigger"], "Rebuilds").inc(trigger="stale")
        collector.gauge("issue_index_heap_size").set(7)
        collector.histogram("issue_index_refresh_seconds", buckets=[0.5]).observe(0.2)

        text = collector.export_prometheus()

        assert "# HELP issue_index_refresh_total Rebuilds" in text
        assert "# TYPE issue_index_refresh_total counter" in text
        assert 'issue_index_refresh_total{trigger="stale"} 1.0' in text
        assert "issue_index_heap_size 7" in text
        assert 'issue_index_refresh_seconds_bucket{le="0.5"} 1' in text
        assert 'issue_index_refresh_seconds_bucket{le="+Inf"} 1' in text
        assert "issue_index_refresh_seconds_count 1" in text
