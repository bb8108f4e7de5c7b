"""
SQLite Issue Store

IssueStore implementation over a single ``issues`` table. Plays the part of
the relational system of record: the index reads every row on rebuild and
writes back only the status flip from process_most_urgent().

Thread Safety:
- One connection shared across threads (check_same_thread=False)
- Writes are serialized by a lock; reads run under the same lock because
  sqlite3 connections are not safe for concurrent use
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from issue_index.core.errors import Err, Ok, Result, StorageError
from issue_index.core.types import IssueRecord, IssueStatus

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS issues (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    category     TEXT    NOT NULL,
    submitted_at TEXT    NOT NULL,
    status       TEXT    NOT NULL DEFAULT 'Pending',
    priority     INTEGER CHECK (priority IS NULL OR priority BETWEEN 1 AND 5),
    location     TEXT    NOT NULL DEFAULT '',
    description  TEXT    NOT NULL DEFAULT '',
    due_date     TEXT
)
"""

_COLUMNS = "id, category, submitted_at, status, priority, location, description, due_date"

# Driver failures, plus rows whose status or timestamps do not parse
_READ_ERRORS = (sqlite3.Error, ValueError)


class SQLiteIssueStore:
    """
    sqlite3-backed issue store.

    Usage:
        store = SQLiteIssueStore("issues.db")
        store.initialize().unwrap()
        record = store.add(category="Water", submitted_at=now, priority=1).unwrap()
        index = IssueIndex(store)
    """

    __slots__ = ("_path", "_conn", "_lock")

    PRAGMAS = [
        "PRAGMA journal_mode = WAL",
        "PRAGMA synchronous = NORMAL",
        "PRAGMA temp_store = MEMORY",
        "PRAGMA busy_timeout = 5000",
    ]

    def __init__(self, path: Union[str, Path] = ":memory:") -> None:
        self._path = str(path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================
    def initialize(self) -> Result[None, StorageError]:
        """Open the connection, apply PRAGMAs and create the table."""
        try:
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)

            conn = sqlite3.connect(
                self._path,
                check_same_thread=False,
                isolation_level=None,  # Autocommit; transactions are explicit
            )
            conn.row_factory = sqlite3.Row
            for pragma in self.PRAGMAS:
                conn.execute(pragma)
            conn.execute(SCHEMA)
            self._conn = conn
        except (sqlite3.Error, OSError) as e:
            logger.error("SQLite store initialization failed", extra={"db_path": self._path})
            return Err(StorageError.read_error(self._path, "initialization failed", cause=e))

        logger.info("SQLite store initialized", extra={"db_path": self._path})
        return Ok(None)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> SQLiteIssueStore:
        if self._conn is None:
            self.initialize().unwrap()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def path(self) -> str:
        return self._path

    # =========================================================================
    # WRITE SIDE (owned by the persistence layer, not the index)
    # =========================================================================
    def add(
        self,
        category: str,
        submitted_at: datetime,
        priority: Optional[int] = None,
        status: IssueStatus = IssueStatus.PENDING,
        location: str = "",
        description: str = "",
        due_date: Optional[datetime] = None,
    ) -> Result[IssueRecord, StorageError]:
        """Insert a new row; the database assigns the id."""
        row = (
            category,
            submitted_at.isoformat(),
            status.value,
            priority,
            location,
            description,
            due_date.isoformat() if due_date else None,
        )
        try:
            with self._lock:
                conn = self._require_conn()
                cursor = conn.execute(
                    "INSERT INTO issues (category, submitted_at, status, priority, "
                    "location, description, due_date) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    row,
                )
                issue_id = cursor.lastrowid
        except sqlite3.Error as e:
            return Err(StorageError.write_error(self._path, str(e), cause=e))

        return Ok(IssueRecord(
            id=issue_id,
            category=category,
            submitted_at=submitted_at,
            status=status,
            priority=priority,
            location=location,
            description=description,
            due_date=due_date,
        ))

    def upsert(self, record: IssueRecord) -> Result[None, StorageError]:
        """Insert or replace a row with an explicit id."""
        try:
            with self._lock:
                self._require_conn().execute(
                    f"INSERT OR REPLACE INTO issues ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    _to_row(record),
                )
        except sqlite3.Error as e:
            return Err(StorageError.write_error(self._path, str(e), cause=e))
        return Ok(None)

    def upsert_many(self, records: Iterable[IssueRecord]) -> Result[int, StorageError]:
        """Upsert a batch inside one transaction."""
        rows = [_to_row(r) for r in records]
        try:
            with self._lock:
                conn = self._require_conn()
                conn.execute("BEGIN IMMEDIATE")
                try:
                    conn.executemany(
                        f"INSERT OR REPLACE INTO issues ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                        rows,
                    )
                    conn.execute("COMMIT")
                except sqlite3.Error:
                    conn.execute("ROLLBACK")
                    raise
        except sqlite3.Error as e:
            return Err(StorageError.write_error(self._path, str(e), cause=e))
        return Ok(len(rows))

    # =========================================================================
    # ISSUE STORE PROTOCOL
    # =========================================================================
    def fetch_all(self) -> Result[list[IssueRecord], StorageError]:
        try:
            with self._lock:
                rows = self._require_conn().execute(
                    f"SELECT {_COLUMNS} FROM issues ORDER BY id"
                ).fetchall()
            records = [_from_row(row) for row in rows]
        except _READ_ERRORS as e:
            return Err(StorageError.read_error(self._path, str(e), cause=e))
        return Ok(records)

    def fetch(self, issue_id: int) -> Result[Optional[IssueRecord], StorageError]:
        try:
            with self._lock:
                row = self._require_conn().execute(
                    f"SELECT {_COLUMNS} FROM issues WHERE id = ?",
                    (issue_id,),
                ).fetchone()
            record = _from_row(row) if row is not None else None
        except _READ_ERRORS as e:
            return Err(StorageError.read_error(self._path, str(e), cause=e))
        return Ok(record)

    def fetch_many(self, issue_ids: Iterable[int]) -> Result[dict[int, IssueRecord], StorageError]:
        ids = list(dict.fromkeys(issue_ids))
        if not ids:
            return Ok({})

        placeholders = ", ".join("?" for _ in ids)
        try:
            with self._lock:
                rows = self._require_conn().execute(
                    f"SELECT {_COLUMNS} FROM issues WHERE id IN ({placeholders})",
                    ids,
                ).fetchall()
            found = {record.id: record for record in map(_from_row, rows)}
        except _READ_ERRORS as e:
            return Err(StorageError.read_error(self._path, str(e), cause=e))
        return Ok(found)

    def set_status(self, issue_id: int, status: IssueStatus) -> Result[IssueRecord, StorageError]:
        try:
            with self._lock:
                conn = self._require_conn()
                cursor = conn.execute(
                    "UPDATE issues SET status = ? WHERE id = ?",
                    (status.value, issue_id),
                )
                if cursor.rowcount == 0:
                    return Err(StorageError.not_found(issue_id))
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM issues WHERE id = ?",
                    (issue_id,),
                ).fetchone()
        except sqlite3.Error as e:
            return Err(StorageError.write_error(self._path, str(e), cause=e))

        logger.info(
            "Issue status persisted",
            extra={"issue_id": issue_id, "status": status.value, "db_path": self._path},
        )
        try:
            return Ok(_from_row(row))
        except ValueError as e:
            return Err(StorageError.read_error(self._path, str(e), cause=e))

    # =========================================================================
    # HELPERS
    # =========================================================================
    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise sqlite3.ProgrammingError("SQLiteIssueStore used before initialize()")
        return self._conn


def _to_row(record: IssueRecord) -> tuple[Any, ...]:
    return (
        record.id,
        record.category,
        record.submitted_at.isoformat(),
        record.status.value,
        record.priority,
        record.location,
        record.description,
        record.due_date.isoformat() if record.due_date else None,
    )


def _from_row(row: sqlite3.Row) -> IssueRecord:
    return IssueRecord(
        id=row["id"],
        category=row["category"],
        submitted_at=datetime.fromisoformat(row["submitted_at"]),
        status=IssueStatus.parse(row["status"]),
        priority=row["priority"],
        location=row["location"],
        description=row["description"],
        due_date=datetime.fromisoformat(row["due_date"]) if row["due_date"] else None,
    )
