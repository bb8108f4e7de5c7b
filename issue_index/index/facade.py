"""
Issue Index Facade: Two Read-Optimized Views over the Issue Store

Owns an AVL tree (lookup by issue id) and a min-heap (urgency order) built
from the authoritative store, and resolves index hits back into full
records through that store. The index keeps only ids and ordering keys;
the store always holds the real record.

Cache policy:
    - Both indices are empty at construction.
    - Every read first calls refresh_if_needed(): a snapshot older than
      ``staleness_seconds`` (or never built) is rebuilt synchronously.
    - force_refresh() rebuilds immediately, for callers that know the store
      changed.
    - process_most_urgent() mutates the store and then rebuilds in full.

Concurrency (single writer, rebuild-and-swap):
    A rebuild assembles a new tree, heap and timestamp as one immutable
    IndexSnapshot and publishes it with a single reference assignment.
    Readers grab the snapshot once per call, so a concurrent rebuild never
    changes what an in-flight read sees. Writers are serialized by a lock.
    Published snapshots are never mutated; process_most_urgent() extracts
    from a copy of the heap.

Failures:
    Store I/O returns Result[..., StorageError]. A failed lazy refresh
    keeps the previous snapshot serving and logs a warning.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from issue_index.core import constants as C
from issue_index.core.config import IndexConfig
from issue_index.core.errors import ConfigError, ErrorCode, Ok, Result, StorageError
from issue_index.core.protocols import IssueStore
from issue_index.core.types import (
    IndexStatistics,
    IssueRecord,
    IssueStatus,
    PriorityEntry,
    SearchEntry,
)
from issue_index.observability.metrics import MetricsCollector
from issue_index.structures.avl_tree import AVLTree
from issue_index.structures.min_heap import MinHeap

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# INDEX SNAPSHOT
# =============================================================================
@dataclass(frozen=True, slots=True)
class IndexSnapshot:
    """
    One consistent generation of both indices.

    The tree, heap and timestamp are always replaced together; nothing
    mutates a snapshot after it is published.
    """
    tree: AVLTree[SearchEntry]
    heap: MinHeap[PriorityEntry]
    refreshed_at: Optional[datetime]

    @classmethod
    def empty(cls) -> IndexSnapshot:
        return cls(tree=AVLTree(), heap=MinHeap(), refreshed_at=None)

    @classmethod
    def build(
        cls,
        records: Iterable[IssueRecord],
        actionable_statuses: tuple[IssueStatus, ...],
        refreshed_at: datetime,
    ) -> IndexSnapshot:
        """
        Index every record in the tree, and every actionable record with a
        priority in the heap.

        Complexity: O(n log n) for the tree, O(n) for the heap (bulk build).
        """
        tree: AVLTree[SearchEntry] = AVLTree()
        urgent: list[PriorityEntry] = []

        for record in records:
            tree.insert(SearchEntry.from_record(record))
            if record.is_actionable(actionable_statuses):
                urgent.append(PriorityEntry.from_record(record))

        return cls(tree=tree, heap=MinHeap.build_heap(urgent), refreshed_at=refreshed_at)

    def statistics(self) -> IndexStatistics:
        return IndexStatistics(
            total_issues_indexed=self.tree.count,
            urgent_issues_queued=self.heap.count,
            tree_height=self.tree.get_height(),
            last_refresh_time=self.refreshed_at,
        )


# =============================================================================
# ISSUE INDEX
# =============================================================================
class IssueIndex:
    """
    Cached secondary index over an IssueStore.

    The store and configuration are injected; the index holds no global
    state and lives as long as its owner keeps it.

    Usage:
        index = IssueIndex(store)
        top = index.get_top_urgent(5).unwrap()
        issue = index.fast_search(42).unwrap()
        index.force_refresh()          # after an upstream edit
    """

    __slots__ = (
        "_store",
        "_config",
        "_clock",
        "_snapshot",
        "_write_lock",
        "_metrics",
    )

    def __init__(
        self,
        store: IssueStore,
        config: Optional[IndexConfig] = None,
        clock: Optional[Clock] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self._store = store
        self._config = config or IndexConfig()
        self._clock = clock or _utc_now
        self._snapshot = IndexSnapshot.empty()
        self._write_lock = threading.Lock()
        self._metrics = metrics or MetricsCollector()

        if error := self._config.validate():
            raise ConfigError.invalid("index", self._config, error)

    # =========================================================================
    # PROPERTIES
    # =========================================================================
    @property
    def config(self) -> IndexConfig:
        return self._config

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def snapshot(self) -> IndexSnapshot:
        """Currently published snapshot. Treat as read-only."""
        return self._snapshot

    @property
    def is_stale(self) -> bool:
        """True when the snapshot was never built or is past the threshold."""
        refreshed_at = self._snapshot.refreshed_at
        if refreshed_at is None:
            return True
        age = (self._clock() - refreshed_at).total_seconds()
        return age > self._config.staleness_seconds

    # =========================================================================
    # REFRESH
    # =========================================================================
    def refresh_structures(self) -> Result[IndexStatistics, StorageError]:
        """Rebuild both indices from the store and publish them."""
        with self._write_lock:
            return self._rebuild(trigger="manual")

    def force_refresh(self) -> Result[IndexStatistics, StorageError]:
        """Rebuild now, regardless of age. Call after editing issues upstream."""
        with self._write_lock:
            return self._rebuild(trigger="forced")

    def refresh_if_needed(self) -> bool:
        """
        Rebuild if the snapshot is stale.

        Returns:
            True if a new snapshot was published
        """
        if not self.is_stale:
            return False

        with self._write_lock:
            # Another writer may have rebuilt while we waited for the lock
            if not self.is_stale:
                return False

            result = self._rebuild(trigger="stale")
            if result.is_err():
                logger.warning(
                    "Lazy refresh failed; serving previous snapshot",
                    extra={
                        "error": str(result.error),
                        "snapshot_time": self._snapshot.refreshed_at,
                    },
                )
                return False
            return True

    def _rebuild(self, trigger: str) -> Result[IndexStatistics, StorageError]:
        """Build and publish a new snapshot. Caller holds the write lock."""
        start = time.perf_counter()

        fetched = self._store.fetch_all()
        if fetched.is_err():
            logger.error(
                "Index rebuild failed",
                extra={"trigger": trigger, "error": fetched.error.to_dict()},
            )
            return fetched

        snapshot = IndexSnapshot.build(
            fetched.unwrap(),
            self._config.actionable_statuses,
            refreshed_at=self._clock(),
        )
        self._snapshot = snapshot

        elapsed = time.perf_counter() - start
        stats = snapshot.statistics()
        self._record_refresh(trigger, elapsed, stats)

        logger.info(
            "Index refreshed",
            extra={
                "trigger": trigger,
                "issues_indexed": stats.total_issues_indexed,
                "urgent_queued": stats.urgent_issues_queued,
                "tree_height": stats.tree_height,
                "duration_ms": round(elapsed * 1000, 3),
            },
        )
        return Ok(stats)

    def _record_refresh(self, trigger: str, elapsed: float, stats: IndexStatistics) -> None:
        self._metrics.counter(
            C.METRIC_REFRESH_TOTAL, ["trigger"], "Index rebuilds by trigger",
        ).inc(trigger=trigger)
        self._metrics.histogram(
            C.METRIC_REFRESH_SECONDS, help_text="Index rebuild latency",
        ).observe(elapsed)
        self._metrics.gauge(
            C.METRIC_TREE_HEIGHT, help_text="AVL tree height",
        ).set(stats.tree_height)
        self._metrics.gauge(
            C.METRIC_HEAP_SIZE, help_text="Issues in the urgency heap",
        ).set(stats.urgent_issues_queued)

    # =========================================================================
    # QUERIES
    # =========================================================================
    def get_top_urgent(self, count: Optional[int] = None) -> Result[list[IssueRecord], StorageError]:
        """
        The ``count`` most urgent actionable issues, most urgent first.

        Non-destructive. Empty list when nothing is queued.
        """
        self.refresh_if_needed()
        snapshot = self._snapshot

        if snapshot.heap.is_empty:
            return Ok([])

        n = self._config.default_top_count if count is None else count
        entries = snapshot.heap.peek_top(n)
        return self._resolve_ordered([entry.issue_id for entry in entries])

    def fast_search(self, issue_id: int) -> Result[Optional[IssueRecord], StorageError]:
        """
        Look an issue up by id through the tree.

        Ok(None) when the id is not indexed. A hit is resolved against the
        store, so the returned record is current.
        """
        self.refresh_if_needed()
        hit = self._snapshot.tree.search(SearchEntry.key(issue_id))
        if hit is None:
            return Ok(None)
        return self._store.fetch(hit.issue_id)

    def get_most_urgent(self) -> Result[Optional[IssueRecord], StorageError]:
        """Peek at the single most urgent issue. Ok(None) when none is queued."""
        self.refresh_if_needed()
        heap = self._snapshot.heap
        if heap.is_empty:
            return Ok(None)
        return self._store.fetch(heap.peek().issue_id)

    def process_most_urgent(self) -> Result[Optional[IssueRecord], StorageError]:
        """
        Take the most urgent issue off the queue and mark it In Progress.

        Extracts the minimum entry, resolves it, asks the store to persist
        the new status, then rebuilds both indices. Returns the updated
        record, Ok(None) when nothing is queued or the issue has vanished
        from the store, or Err when the store write fails.
        """
        self.refresh_if_needed()

        with self._write_lock:
            current = self._snapshot
            if current.heap.is_empty:
                return Ok(None)

            working = current.heap.copy()
            entry = working.extract_min()

            resolved = self._store.fetch(entry.issue_id)
            if resolved.is_err():
                return resolved
            if resolved.unwrap() is None:
                logger.warning(
                    "Queued issue missing from store",
                    extra={"issue_id": entry.issue_id},
                )
                self._rebuild_or_publish(working, current, trigger="mutation")
                return Ok(None)

            updated = self._store.set_status(entry.issue_id, IssueStatus.IN_PROGRESS)
            if updated.is_err():
                if updated.error.code is ErrorCode.STORAGE_NOT_FOUND:
                    self._rebuild_or_publish(working, current, trigger="mutation")
                    return Ok(None)
                return updated

            logger.info(
                "Most urgent issue processed",
                extra={"issue_id": entry.issue_id, "priority": entry.priority},
            )
            self._rebuild_or_publish(working, current, trigger="mutation")
            return Ok(updated.unwrap())

    def _rebuild_or_publish(
        self,
        working: MinHeap[PriorityEntry],
        current: IndexSnapshot,
        trigger: str,
    ) -> None:
        # If the rebuild fails, still drop the extracted entry so the
        # processed issue is not handed out again
        if self._rebuild(trigger).is_err():
            self._snapshot = IndexSnapshot(
                tree=current.tree,
                heap=working,
                refreshed_at=current.refreshed_at,
            )

    def get_statistics(self) -> IndexStatistics:
        """Sizes, tree height and derived balance figures."""
        self.refresh_if_needed()
        return self._snapshot.statistics()

    def indexed_ids(self) -> list[int]:
        """Every indexed issue id, ascending."""
        self.refresh_if_needed()
        return [entry.issue_id for entry in self._snapshot.tree]

    def issues_in_category(self, category: str) -> list[int]:
        """Ids of indexed issues in ``category`` (case-insensitive), ascending."""
        self.refresh_if_needed()
        wanted = category.casefold()
        return [
            entry.issue_id
            for entry in self._snapshot.tree
            if entry.category is not None and entry.category.casefold() == wanted
        ]

    # =========================================================================
    # RESOLUTION
    # =========================================================================
    def _resolve_ordered(self, issue_ids: list[int]) -> Result[list[IssueRecord], StorageError]:
        """Fetch records for ``issue_ids`` keeping their order; skip ids the store no longer has."""
        return self._store.fetch_many(issue_ids).map(
            lambda found: [found[i] for i in issue_ids if i in found]
        )

    def __repr__(self) -> str:
        stats = self._snapshot.statistics()
        return (
            f"IssueIndex(indexed={stats.total_issues_indexed}, "
            f"queued={stats.urgent_issues_queued}, height={stats.tree_height})"
        )
