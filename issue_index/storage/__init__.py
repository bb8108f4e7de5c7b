"""
Storage module: IssueStore adapters for the authoritative record store.
"""

from issue_index.storage.memory_store import InMemoryIssueStore
from issue_index.storage.sqlite_store import SQLiteIssueStore

__all__ = [
    "InMemoryIssueStore",
    "SQLiteIssueStore",
]
