"""
In-Memory Issue Store

Dict-backed implementation of the IssueStore protocol. Stands in for the
relational persistence layer in tests and when embedding the index in a
process that already holds its issues in memory.

Records are frozen, so handing them out never exposes internal state.
"""

from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime
from typing import Iterable, Optional

from issue_index.core.errors import Err, Ok, Result, StorageError
from issue_index.core.types import IssueRecord, IssueStatus

logger = logging.getLogger(__name__)


class InMemoryIssueStore:
    """
    Thread-safe in-memory issue store.

    Usage:
        store = InMemoryIssueStore()
        record = store.add("Roads", submitted_at=now, priority=2)
        store.set_status(record.id, IssueStatus.ASSIGNED)
    """

    __slots__ = ("_records", "_lock", "_ids", "_name")

    def __init__(self, records: Optional[Iterable[IssueRecord]] = None, name: str = "memory") -> None:
        self._records: dict[int, IssueRecord] = {}
        self._lock = threading.RLock()
        self._name = name
        for record in records or ():
            self._records[record.id] = record
        self._ids = itertools.count(max(self._records, default=0) + 1)

    # =========================================================================
    # WRITE SIDE (owned by the persistence layer, not the index)
    # =========================================================================
    def add(
        self,
        category: str,
        submitted_at: datetime,
        priority: Optional[int] = None,
        status: IssueStatus = IssueStatus.PENDING,
        **fields: object,
    ) -> IssueRecord:
        """Create a record with the next free id."""
        with self._lock:
            record = IssueRecord(
                id=next(self._ids),
                category=category,
                submitted_at=submitted_at,
                priority=priority,
                status=status,
                **fields,  # type: ignore[arg-type]
            )
            self._records[record.id] = record
            return record

    def upsert(self, record: IssueRecord) -> None:
        with self._lock:
            self._records[record.id] = record

    def delete(self, issue_id: int) -> bool:
        with self._lock:
            return self._records.pop(issue_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # =========================================================================
    # ISSUE STORE PROTOCOL
    # =========================================================================
    def fetch_all(self) -> Result[list[IssueRecord], StorageError]:
        with self._lock:
            return Ok(list(self._records.values()))

    def fetch(self, issue_id: int) -> Result[Optional[IssueRecord], StorageError]:
        with self._lock:
            return Ok(self._records.get(issue_id))

    def fetch_many(self, issue_ids: Iterable[int]) -> Result[dict[int, IssueRecord], StorageError]:
        with self._lock:
            return Ok({
                issue_id: self._records[issue_id]
                for issue_id in issue_ids
                if issue_id in self._records
            })

    def set_status(self, issue_id: int, status: IssueStatus) -> Result[IssueRecord, StorageError]:
        with self._lock:
            current = self._records.get(issue_id)
            if current is None:
                return Err(StorageError.not_found(issue_id))
            updated = current.with_status(status)
            self._records[issue_id] = updated

        logger.debug(
            "Issue status changed",
            extra={"issue_id": issue_id, "status": status.value, "store": self._name},
        )
        return Ok(updated)
