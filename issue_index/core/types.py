"""
Core Type Definitions for the Issue Index

Value objects shared by the containers, the facade and the store adapters:
    - IssueStatus: lifecycle states of a reported issue
    - IssueRecord: full issue as held by the authoritative store
    - SearchEntry: AVL payload, ordered by issue id only
    - PriorityEntry: heap payload, ordered by (priority, submitted_at, issue_id)
    - IndexStatistics: diagnostic snapshot of both indices

All entries are frozen so a node can hold one without aliasing the
caller's object; replacing a payload means replacing the value.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from issue_index.core import constants as C


def as_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC; aware values pass through unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# ISSUE STATUS
# =============================================================================
class IssueStatus(Enum):
    """Lifecycle state of an issue. Values are the display strings."""
    PENDING = "Pending"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, value: "str | IssueStatus") -> "IssueStatus":
        """
        Accept either an IssueStatus or its display string.

        Matching ignores case and surrounding whitespace, and treats
        underscores as spaces ("in_progress" -> IN_PROGRESS).

        Raises:
            ValueError: If the value names no known status
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().replace("_", " ").lower()
        for status in cls:
            if status.value.lower() == normalized:
                return status
        raise ValueError(f"Unknown issue status: {value!r}")

    @property
    def is_closed(self) -> bool:
        return self in (IssueStatus.COMPLETED, IssueStatus.CANCELLED)


DEFAULT_ACTIONABLE_STATUSES: tuple[IssueStatus, ...] = (
    IssueStatus.PENDING,
    IssueStatus.ASSIGNED,
)


# =============================================================================
# ISSUE RECORD
# =============================================================================
@dataclass(frozen=True, slots=True)
class IssueRecord:
    """
    An issue as held by the authoritative store.

    The index never mutates a record; status changes go through the store,
    which hands back a new record.

    Attributes:
        id: Store-assigned identifier
        category: Reporting category (Roads, Water, Electricity, ...)
        submitted_at: When the citizen filed the report
        status: Current lifecycle state
        priority: 1 (Critical) .. 5 (Very Low); None until reviewed
        location: Free-text address
        description: Citizen's description
        due_date: Resolution deadline set by an employee
    """
    id: int
    category: str
    submitted_at: datetime
    status: IssueStatus = IssueStatus.PENDING
    priority: Optional[int] = None
    location: str = ""
    description: str = ""
    due_date: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.priority is not None and not (C.PRIORITY_MIN <= self.priority <= C.PRIORITY_MAX):
            raise ValueError(
                f"priority must be in [{C.PRIORITY_MIN}, {C.PRIORITY_MAX}], got {self.priority}"
            )
        if not isinstance(self.status, IssueStatus):
            object.__setattr__(self, "status", IssueStatus.parse(self.status))

        # Mixed naive/aware timestamps cannot be ordered against each other
        object.__setattr__(self, "submitted_at", as_utc(self.submitted_at))
        if self.due_date is not None:
            object.__setattr__(self, "due_date", as_utc(self.due_date))

    @property
    def needs_review(self) -> bool:
        """No priority assigned yet."""
        return self.priority is None

    @property
    def priority_label(self) -> str:
        if self.priority is None:
            return C.UNREVIEWED_LABEL
        return C.PRIORITY_LABELS[self.priority]

    @property
    def status_label(self) -> str:
        return self.status.value

    def is_actionable(
        self,
        statuses: tuple[IssueStatus, ...] = DEFAULT_ACTIONABLE_STATUSES,
    ) -> bool:
        """Eligible for the urgency queue: open status and a priority set."""
        return self.priority is not None and self.status in statuses

    def is_overdue(self, now: datetime) -> bool:
        """Past its due date while still open."""
        if self.due_date is None or self.status.is_closed:
            return False
        return as_utc(now) > self.due_date

    def with_status(self, status: IssueStatus) -> "IssueRecord":
        return replace(self, status=status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "submitted_at": self.submitted_at.isoformat(),
            "status": self.status.value,
            "priority": self.priority,
            "priority_label": self.priority_label,
            "location": self.location,
            "description": self.description,
            "due_date": self.due_date.isoformat() if self.due_date else None,
        }


# =============================================================================
# INDEX ENTRIES
# =============================================================================
@dataclass(frozen=True, slots=True, order=True)
class SearchEntry:
    """
    AVL tree payload. Ordered and compared by ``issue_id`` only, so a bare
    entry without a category finds the stored one.
    """
    issue_id: int
    category: Optional[str] = field(default=None, compare=False)

    @classmethod
    def key(cls, issue_id: int) -> "SearchEntry":
        return cls(issue_id=issue_id)

    @classmethod
    def from_record(cls, record: IssueRecord) -> "SearchEntry":
        return cls(issue_id=record.id, category=record.category)

    def __str__(self) -> str:
        return f"Issue #{self.issue_id}"


@dataclass(frozen=True, slots=True, order=True)
class PriorityEntry:
    """
    Min-heap payload.

    Ordering key: priority ascending (1 is most urgent), then submission
    time ascending (older first), then ``issue_id`` so that two distinct
    issues never compare equal.
    """
    priority: int
    submitted_at: datetime
    issue_id: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "submitted_at", as_utc(self.submitted_at))

    @classmethod
    def from_record(cls, record: IssueRecord) -> "PriorityEntry":
        if record.priority is None:
            raise ValueError(f"Issue {record.id} has no priority")
        return cls(
            priority=record.priority,
            submitted_at=record.submitted_at,
            issue_id=record.id,
        )

    def __str__(self) -> str:
        return f"Issue #{self.issue_id} - Priority {self.priority}"


# =============================================================================
# INDEX STATISTICS
# =============================================================================
@dataclass(frozen=True, slots=True)
class IndexStatistics:
    """
    Diagnostic view of the two indices.

    Derived figures are for observability only; nothing in the index makes
    decisions from them.

    Attributes:
        total_issues_indexed: Entries in the search tree
        urgent_issues_queued: Entries in the urgency heap
        tree_height: Height of the AVL tree (0 when empty)
        last_refresh_time: When the current snapshot was built
    """
    total_issues_indexed: int
    urgent_issues_queued: int
    tree_height: int
    last_refresh_time: Optional[datetime]

    @property
    def theoretical_height(self) -> int:
        """Minimum possible height for this many nodes: ceil(log2(n + 1))."""
        return math.ceil(math.log2(self.total_issues_indexed + 1))

    @property
    def is_well_balanced(self) -> bool:
        return self.tree_height <= self.theoretical_height + 1

    def search_efficiency_gain(self) -> float:
        """
        Average linear-scan comparisons (n / 2) over tree height.

        Returns 1.0 for an empty tree.
        """
        if self.total_issues_indexed == 0 or self.tree_height == 0:
            return 1.0
        return (self.total_issues_indexed / 2.0) / self.tree_height

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_issues_indexed": self.total_issues_indexed,
            "urgent_issues_queued": self.urgent_issues_queued,
            "tree_height": self.tree_height,
            "theoretical_height": self.theoretical_height,
            "is_well_balanced": self.is_well_balanced,
            "search_efficiency_gain": self.search_efficiency_gain(),
            "last_refresh_time": (
                self.last_refresh_time.isoformat() if self.last_refresh_time else None
            ),
        }
