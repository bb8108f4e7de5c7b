"""
Issue Index: In-Memory Search and Urgency Views for Municipal Issue Reports

Features:
    - AVL tree keyed by issue id for O(log n) lookup
    - Binary min-heap ordered by (priority, submitted_at) for urgency queues
    - Cache facade that rebuilds both from the authoritative store when stale
    - SQLite and in-memory store adapters
    - JSON structured logging and Prometheus-style metrics

Usage:
    from issue_index import IssueIndex, SQLiteIssueStore

    store = SQLiteIssueStore("issues.db")
    store.initialize().unwrap()

    index = IssueIndex(store)
    for issue in index.get_top_urgent(5).unwrap():
        print(issue.id, issue.priority_label)

    index.process_most_urgent()
"""

from __future__ import annotations

__version__ = "0.1.0"

# =============================================================================
# PUBLIC API
# =============================================================================
from issue_index.core.types import (
    IssueStatus,
    IssueRecord,
    SearchEntry,
    PriorityEntry,
    IndexStatistics,
)
from issue_index.core.errors import (
    Result,
    Ok,
    Err,
    ErrorCode,
    IssueIndexError,
    EmptyContainerError,
    StorageError,
    ConfigError,
)
from issue_index.core.config import IndexConfig, IssueIndexConfig, LoggingConfig
from issue_index.core.protocols import IssueStore
from issue_index.structures import AVLTree, MinHeap
from issue_index.index import IndexSnapshot, IssueIndex
from issue_index.storage import InMemoryIssueStore, SQLiteIssueStore

__all__ = [
    # Version
    "__version__",
    # Types
    "IssueStatus",
    "IssueRecord",
    "SearchEntry",
    "PriorityEntry",
    "IndexStatistics",
    # Errors
    "Result",
    "Ok",
    "Err",
    "ErrorCode",
    "IssueIndexError",
    "EmptyContainerError",
    "StorageError",
    "ConfigError",
    # Config
    "IndexConfig",
    "IssueIndexConfig",
    "LoggingConfig",
    # Containers
    "AVLTree",
    "MinHeap",
    # Index
    "IndexSnapshot",
    "IssueIndex",
    "IssueStore",
    # Stores
    "InMemoryIssueStore",
    "SQLiteIssueStore",
]
