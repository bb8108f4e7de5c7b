"""
Protocol Definitions: Structural Subtyping for Pluggable Backends

Defines abstract interfaces for:
    - Comparable: payloads the tree and heap can order
    - IssueStore: the authoritative record store the index reads from
"""

from __future__ import annotations

from abc import abstractmethod
from typing import (
    TYPE_CHECKING,
    Any,
    Iterable,
    Optional,
    Protocol,
    TypeVar,
    runtime_checkable,
)

if TYPE_CHECKING:
    from issue_index.core.errors import Result, StorageError
    from issue_index.core.types import IssueRecord, IssueStatus


# =============================================================================
# COMPARABLE PAYLOAD
# =============================================================================
class Comparable(Protocol):
    """Anything with a strict ``<``; both containers only ever call that."""

    def __lt__(self, other: Any, /) -> bool:
        ...


CT = TypeVar("CT", bound=Comparable)


# =============================================================================
# ISSUE STORE PROTOCOL
# =============================================================================
@runtime_checkable
class IssueStore(Protocol):
    """
    Protocol for the authoritative issue store.

    Backend failures are returned as Err(StorageError); an unknown id is
    Ok(None), not an error.

    Implementations:
        - InMemoryIssueStore: dict-backed, for tests and embedding
        - SQLiteIssueStore: sqlite3 table
    """

    @abstractmethod
    def fetch_all(self) -> "Result[list[IssueRecord], StorageError]":
        """Return every current issue record."""
        ...

    @abstractmethod
    def fetch(self, issue_id: int) -> "Result[Optional[IssueRecord], StorageError]":
        """Return one record by id."""
        ...

    @abstractmethod
    def fetch_many(self, issue_ids: Iterable[int]) -> "Result[dict[int, IssueRecord], StorageError]":
        """Return the records that exist among ``issue_ids``, keyed by id."""
        ...

    @abstractmethod
    def set_status(
        self,
        issue_id: int,
        status: "IssueStatus",
    ) -> "Result[IssueRecord, StorageError]":
        """Change an issue's status and persist it. Returns the updated record."""
        ...
