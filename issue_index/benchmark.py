"""
Benchmark: AVL Lookup vs Linear Scan

Measures:
    1. Index build time (tree + heap, from an in-memory store)
    2. Lookup latency through the AVL tree (P50, P95, P99)
    3. Lookup latency of a linear scan over the same records
    4. Tree height against the theoretical minimum

Usage:
    python -m issue_index benchmark --issues 50000 --queries 2000
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import numpy as np

from issue_index.core.types import IssueRecord, IssueStatus, SearchEntry
from issue_index.index.facade import IssueIndex
from issue_index.storage.memory_store import InMemoryIssueStore

CATEGORIES = (
    "Roads",
    "Water",
    "Electricity",
    "Sanitation",
    "Parks",
    "Street Lighting",
)

_STATUSES = tuple(IssueStatus)


@dataclass
class BenchmarkConfig:
    """Benchmark configuration."""
    n_issues: int = 10_000
    n_queries: int = 1_000
    miss_ratio: float = 0.1  # Share of queries for ids that do not exist
    seed: int = 42


@dataclass
class BenchmarkResults:
    """Benchmark results. Latencies in microseconds."""
    n_issues: int = 0
    n_queries: int = 0
    build_time_sec: float = 0.0

    tree_p50_us: float = 0.0
    tree_p95_us: float = 0.0
    tree_p99_us: float = 0.0
    scan_p50_us: float = 0.0
    scan_p95_us: float = 0.0
    scan_p99_us: float = 0.0
    speedup: float = 0.0

    tree_height: int = 0
    theoretical_height: int = 0
    efficiency_gain: float = 0.0
    urgent_queued: int = 0

    tree_latencies_us: list[float] = field(default_factory=list, repr=False)
    scan_latencies_us: list[float] = field(default_factory=list, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "n_issues": self.n_issues,
            "n_queries": self.n_queries,
            "build_time_sec": round(self.build_time_sec, 4),
            "tree_p50_us": round(self.tree_p50_us, 3),
            "tree_p95_us": round(self.tree_p95_us, 3),
            "tree_p99_us": round(self.tree_p99_us, 3),
            "scan_p50_us": round(self.scan_p50_us, 3),
            "scan_p95_us": round(self.scan_p95_us, 3),
            "scan_p99_us": round(self.scan_p99_us, 3),
            "speedup": round(self.speedup, 2),
            "tree_height": self.tree_height,
            "theoretical_height": self.theoretical_height,
            "efficiency_gain": round(self.efficiency_gain, 2),
            "urgent_queued": self.urgent_queued,
        }


def generate_issues(n: int, seed: int = 42) -> list[IssueRecord]:
    """
    Random issues with shuffled ids so tree insertion order is not sorted.

    Roughly one in five is left unreviewed (no priority).
    """
    rng = np.random.default_rng(seed)
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)

    ids = rng.permutation(n) + 1
    categories = rng.integers(0, len(CATEGORIES), size=n)
    statuses = rng.integers(0, len(_STATUSES), size=n)
    priorities = rng.integers(1, 6, size=n)
    unreviewed = rng.random(n) < 0.2
    offsets = rng.integers(0, 365 * 24 * 3600, size=n)

    return [
        IssueRecord(
            id=int(ids[i]),
            category=CATEGORIES[int(categories[i])],
            submitted_at=base + timedelta(seconds=int(offsets[i])),
            status=_STATUSES[int(statuses[i])],
            priority=None if unreviewed[i] else int(priorities[i]),
        )
        for i in range(n)
    ]


def _linear_find(records: list[IssueRecord], issue_id: int) -> Optional[IssueRecord]:
    for record in records:
        if record.id == issue_id:
            return record
    return None


def run_benchmark(
    n_issues: int = 10_000,
    n_queries: int = 1_000,
    seed: int = 42,
    config: Optional[BenchmarkConfig] = None,
) -> BenchmarkResults:
    """
    Build an index over ``n_issues`` random issues and time ``n_queries``
    lookups through the tree and through a linear scan.

    Both paths answer the same queries; a share of them are misses so the
    scan's worst case is included.
    """
    config = config or BenchmarkConfig(n_issues=n_issues, n_queries=n_queries, seed=seed)
    if config.n_issues < 1 or config.n_queries < 1:
        raise ValueError("n_issues and n_queries must be >= 1")

    results = BenchmarkResults(n_issues=config.n_issues, n_queries=config.n_queries)

    records = generate_issues(config.n_issues, config.seed)
    index = IssueIndex(InMemoryIssueStore(records))

    start = time.perf_counter()
    stats = index.force_refresh().unwrap()
    results.build_time_sec = time.perf_counter() - start

    rng = np.random.default_rng(config.seed + 1)
    queries = rng.integers(1, config.n_issues + 1, size=config.n_queries)
    misses = rng.random(config.n_queries) < config.miss_ratio
    queries[misses] += config.n_issues

    tree = index.snapshot.tree
    tree_latencies: list[float] = []
    scan_latencies: list[float] = []

    for issue_id in queries.tolist():
        key = SearchEntry.key(issue_id)
        start = time.perf_counter()
        tree.search(key)
        tree_latencies.append((time.perf_counter() - start) * 1e6)

        start = time.perf_counter()
        _linear_find(records, issue_id)
        scan_latencies.append((time.perf_counter() - start) * 1e6)

    results.tree_latencies_us = tree_latencies
    results.scan_latencies_us = scan_latencies
    results.tree_p50_us = float(np.percentile(tree_latencies, 50))
    results.tree_p95_us = float(np.percentile(tree_latencies, 95))
    results.tree_p99_us = float(np.percentile(tree_latencies, 99))
    results.scan_p50_us = float(np.percentile(scan_latencies, 50))
    results.scan_p95_us = float(np.percentile(scan_latencies, 95))
    results.scan_p99_us = float(np.percentile(scan_latencies, 99))

    tree_mean = float(np.mean(tree_latencies))
    results.speedup = float(np.mean(scan_latencies)) / tree_mean if tree_mean > 0 else 0.0

    results.tree_height = stats.tree_height
    results.theoretical_height = stats.theoretical_height
    results.efficiency_gain = stats.search_efficiency_gain()
    results.urgent_queued = stats.urgent_issues_queued

    return results


def format_results(results: BenchmarkResults) -> str:
    """Human-readable report."""
    lines = [
        "=" * 60,
        "Issue Index Benchmark",
        "=" * 60,
        f"Issues:   {results.n_issues:,}",
        f"Queries:  {results.n_queries:,}",
        f"Build:    {results.build_time_sec * 1000:.1f}ms",
        "",
        f"Tree height:        {results.tree_height} (minimum {results.theoretical_height})",
        f"Efficiency gain:    {results.efficiency_gain:.1f}x (n/2 over height)",
        f"Urgent queued:      {results.urgent_queued:,}",
        "",
        "Lookup latency (us)      P50        P95        P99",
        f"  AVL tree       {results.tree_p50_us:10.2f} {results.tree_p95_us:10.2f} {results.tree_p99_us:10.2f}",
        f"  Linear scan    {results.scan_p50_us:10.2f} {results.scan_p95_us:10.2f} {results.scan_p99_us:10.2f}",
        "",
        f"Mean speedup: {results.speedup:.1f}x",
    ]
    return "\n".join(lines)
