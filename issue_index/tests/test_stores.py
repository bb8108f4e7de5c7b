"""
Unit Tests: Issue Store Adapters

Tests:
    - InMemoryIssueStore read/write side
    - SQLiteIssueStore schema, round trip and error mapping
    - The facade running over a SQLite file
"""

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from issue_index.core.errors import ErrorCode
from issue_index.core.protocols import IssueStore
from issue_index.core.types import IssueRecord, IssueStatus
from issue_index.index.facade import IssueIndex
from issue_index.storage.memory_store import InMemoryIssueStore
from issue_index.storage.sqlite_store import SQLiteIssueStore

T0 = datetime(2024, 2, 10, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteIssueStore(tmp_path / "issues.db")
    store.initialize().unwrap()
    yield store
    store.close()


def write_raw(path: str, sql: str, params: tuple) -> None:
    """Write through a second connection, bypassing the store's validation."""
    conn = sqlite3.connect(path)
    try:
        conn.execute(sql, params)
        conn.commit()
    finally:
        conn.close()


class TestInMemoryStore:
    """Tests for the dict-backed store."""

    def test_add_assigns_sequential_ids(self):
        store = InMemoryIssueStore()
        first = store.add("Roads", submitted_at=T0, priority=2)
        second = store.add("Water", submitted_at=T0, location="Main St")

        assert (first.id, second.id) == (1, 2)
        assert second.location == "Main St"
        assert len(store) == 2

    def test_seeded_ids_continue(self):
        store = InMemoryIssueStore([IssueRecord(id=10, category="Parks", submitted_at=T0)])

        assert store.add("Roads", submitted_at=T0).id == 11

    def test_fetch(self):
        store = InMemoryIssueStore()
        record = store.add("Roads", submitted_at=T0)

        assert store.fetch(record.id).unwrap() == record
        assert store.fetch(99).unwrap() is None

    def test_fetch_many_skips_missing(self):
        store = InMemoryIssueStore()
        a = store.add("Roads", submitted_at=T0)
        b = store.add("Water", submitted_at=T0)

        found = store.fetch_many([b.id, 42, a.id]).unwrap()

        assert found == {a.id: a, b.id: b}

    def test_set_status(self):
        store = InMemoryIssueStore()
        record = store.add("Roads", submitted_at=T0, priority=1)

        updated = store.set_status(record.id, IssueStatus.IN_PROGRESS).unwrap()

        assert updated.status is IssueStatus.IN_PROGRESS
        assert store.fetch(record.id).unwrap().status is IssueStatus.IN_PROGRESS

    def test_set_status_unknown_id(self):
        result = InMemoryIssueStore().set_status(5, IssueStatus.ASSIGNED)

        assert result.is_err()
        assert result.error.code is ErrorCode.STORAGE_NOT_FOUND

    def test_upsert_and_delete(self):
        store = InMemoryIssueStore()
        record = store.add("Roads", submitted_at=T0)
        store.upsert(record.with_status(IssueStatus.CANCELLED))

        assert store.fetch(record.id).unwrap().status is IssueStatus.CANCELLED
        assert store.delete(record.id) is True
        assert store.delete(record.id) is False

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryIssueStore(), IssueStore)


class TestSQLiteStore:
    """Tests for the sqlite3-backed store."""

    def test_add_and_fetch(self, sqlite_store):
        due = T0 + timedelta(days=3)
        record = sqlite_store.add(
            category="Street Lighting",
            submitted_at=T0,
            priority=2,
            location="5th Ave",
            description="Lamp out",
            due_date=due,
        ).unwrap()

        fetched = sqlite_store.fetch(record.id).unwrap()

        assert fetched == record
        assert fetched.submitted_at == T0
        assert fetched.due_date == due

    def test_fetch_missing(self, sqlite_store):
        assert sqlite_store.fetch(123).unwrap() is None

    def test_fetch_all_ordered_by_id(self, sqlite_store):
        for category in ["Roads", "Water", "Parks"]:
            sqlite_store.add(category=category, submitted_at=T0).unwrap()

        records = sqlite_store.fetch_all().unwrap()

        assert [r.id for r in records] == [1, 2, 3]
        assert [r.category for r in records] == ["Roads", "Water", "Parks"]

    def test_fetch_many(self, sqlite_store):
        for _ in range(4):
            sqlite_store.add(category="Roads", submitted_at=T0).unwrap()

        found = sqlite_store.fetch_many([4, 2, 2, 99]).unwrap()

        assert sorted(found) == [2, 4]
        assert sqlite_store.fetch_many([]).unwrap() == {}

    def test_set_status(self, sqlite_store):
        record = sqlite_store.add(category="Roads", submitted_at=T0, priority=1).unwrap()

        updated = sqlite_store.set_status(record.id, IssueStatus.IN_PROGRESS).unwrap()

        assert updated.status is IssueStatus.IN_PROGRESS
        assert sqlite_store.fetch(record.id).unwrap().status is IssueStatus.IN_PROGRESS

    def test_set_status_unknown_id(self, sqlite_store):
        result = sqlite_store.set_status(77, IssueStatus.COMPLETED)

        assert result.is_err()
        assert result.error.code is ErrorCode.STORAGE_NOT_FOUND

    def test_upsert_many(self, sqlite_store):
        records = [
            IssueRecord(id=i, category="Water", submitted_at=T0, priority=1 + i % 5)
            for i in range(1, 21)
        ]

        assert sqlite_store.upsert_many(records).unwrap() == 20
        assert sqlite_store.fetch_all().unwrap() == records

    def test_upsert_replaces(self, sqlite_store):
        record = sqlite_store.add(category="Roads", submitted_at=T0).unwrap()
        sqlite_store.upsert(record.with_status(IssueStatus.ASSIGNED)).unwrap()

        assert sqlite_store.fetch(record.id).unwrap().status is IssueStatus.ASSIGNED

    def test_priority_check_constraint(self, sqlite_store):
        conn = sqlite3.connect(sqlite_store.path)
        try:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO issues (category, submitted_at, priority) VALUES (?, ?, ?)",
                    ("Roads", T0.isoformat(), 9),
                )
        finally:
            conn.close()

    def test_uninitialized_store_returns_err(self):
        store = SQLiteIssueStore()

        result = store.fetch_all()

        assert result.is_err()
        assert result.error.code is ErrorCode.STORAGE_READ_ERROR

    def test_context_manager(self, tmp_path):
        with SQLiteIssueStore(tmp_path / "ctx.db") as store:
            store.add(category="Roads", submitted_at=T0).unwrap()
            assert len(store.fetch_all().unwrap()) == 1

        assert store.fetch_all().is_err()

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "persist.db"
        with SQLiteIssueStore(path) as store:
            store.add(category="Parks", submitted_at=T0, priority=4).unwrap()

        with SQLiteIssueStore(path) as store:
            assert store.fetch(1).unwrap().priority == 4

    @pytest.mark.parametrize(
        "column,value",
        [
            ("status", "Open"),
            ("submitted_at", "yesterday"),
            ("due_date", "2024-13-45"),
        ],
    )
    def test_unparseable_row_returns_err(self, sqlite_store, column, value):
        record = sqlite_store.add(category="Roads", submitted_at=T0, priority=1).unwrap()
        write_raw(sqlite_store.path, f"UPDATE issues SET {column} = ? WHERE id = ?", (value, record.id))

        for result in (
            sqlite_store.fetch_all(),
            sqlite_store.fetch(record.id),
            sqlite_store.fetch_many([record.id]),
        ):
            assert result.is_err()
            assert result.error.code is ErrorCode.STORAGE_READ_ERROR

    def test_mixed_naive_and_aware_timestamps(self, sqlite_store):
        sqlite_store.add(category="Roads", submitted_at=T0, priority=1).unwrap()
        sqlite_store.add(category="Water", submitted_at=datetime(2024, 2, 10, 14, 0), priority=1).unwrap()
        sqlite_store.add(category="Parks", submitted_at=datetime(2024, 2, 10, 15, 0), priority=1).unwrap()
        index = IssueIndex(sqlite_store)

        assert index.force_refresh().is_ok()
        assert [i.id for i in index.get_top_urgent(3).unwrap()] == [2, 1, 3]
        assert all(r.submitted_at.tzinfo is not None for r in sqlite_store.fetch_all().unwrap())


class TestIndexOverSQLite:
    """The facade against a real database file."""

    def test_process_persists_status(self, sqlite_store):
        sqlite_store.add(category="Roads", submitted_at=T0, priority=3).unwrap()
        urgent = sqlite_store.add(category="Water", submitted_at=T0, priority=1).unwrap()
        index = IssueIndex(sqlite_store)

        processed = index.process_most_urgent().unwrap()

        assert processed.id == urgent.id
        assert sqlite_store.fetch(urgent.id).unwrap().status is IssueStatus.IN_PROGRESS
        assert [i.id for i in index.get_top_urgent(5).unwrap()] == [1]

    def test_search(self, sqlite_store):
        record = sqlite_store.add(category="Sanitation", submitted_at=T0).unwrap()
        index = IssueIndex(sqlite_store)

        assert index.fast_search(record.id).unwrap() == record
        assert index.fast_search(record.id + 1).unwrap() is None

    def test_unparseable_row_keeps_previous_snapshot(self, sqlite_store, caplog):
        now = [T0]
        sqlite_store.add(category="Roads", submitted_at=T0, priority=2).unwrap()
        sqlite_store.add(category="Water", submitted_at=T0, priority=1).unwrap()
        index = IssueIndex(sqlite_store, clock=lambda: now[0])
        index.force_refresh().unwrap()
        before = index.snapshot

        write_raw(
            sqlite_store.path,
            "INSERT INTO issues (category, submitted_at, status, priority) VALUES (?, ?, ?, ?)",
            ("Parks", T0.isoformat(), "Open", 1),
        )
        now[0] = T0 + timedelta(seconds=301)

        with caplog.at_level("WARNING"):
            top = index.get_top_urgent(5).unwrap()

        assert [i.id for i in top] == [2, 1]
        assert index.snapshot is before
        assert "serving previous snapshot" in caplog.text
        assert index.force_refresh().is_err()
