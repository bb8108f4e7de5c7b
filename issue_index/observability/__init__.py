"""
Observability module: Metrics and structured logging.
"""

from issue_index.observability.metrics import MetricsCollector, Counter, Gauge, Histogram
from issue_index.observability.logging import (
    JsonFormatter,
    LogLevel,
    StructuredLogger,
    setup_logging,
)

__all__ = [
    "MetricsCollector",
    "Counter",
    "Gauge",
    "Histogram",
    "JsonFormatter",
    "LogLevel",
    "StructuredLogger",
    "setup_logging",
]
