"""
Core Module: Types, Errors, and Configuration

Self-contained foundation for the containers, the facade and the stores.
"""

from issue_index.core.types import (
    IssueStatus,
    IssueRecord,
    SearchEntry,
    PriorityEntry,
    IndexStatistics,
    DEFAULT_ACTIONABLE_STATUSES,
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
from issue_index.core.config import (
    IndexConfig,
    LoggingConfig,
    IssueIndexConfig,
)
from issue_index.core.protocols import (
    Comparable,
    IssueStore,
)

__all__ = [
    # Types
    "IssueStatus",
    "IssueRecord",
    "SearchEntry",
    "PriorityEntry",
    "IndexStatistics",
    "DEFAULT_ACTIONABLE_STATUSES",
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
    "LoggingConfig",
    "IssueIndexConfig",
    # Protocols
    "Comparable",
    "IssueStore",
]
