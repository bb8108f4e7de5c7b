"""
Unit Tests: Min-Heap

Tests:
    - Bulk construction without per-element insert
    - Extraction order and (priority, submitted_at, issue_id) tie-breaking
    - peek / peek_top / get_sorted semantics
    - Empty-container errors
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest

from issue_index.core.errors import EmptyContainerError
from issue_index.core.types import PriorityEntry
from issue_index.structures.min_heap import MinHeap

BASE = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def entry(priority: int, minutes: int = 0, issue_id: int = 0) -> PriorityEntry:
    return PriorityEntry(
        priority=priority,
        submitted_at=BASE + timedelta(minutes=minutes),
        issue_id=issue_id,
    )


@dataclass(order=True)
class Tagged:
    """Orders by key only; tag tells equal keys apart."""
    key: int
    tag: str = field(compare=False)


def assert_heap(heap: MinHeap) -> None:
    array = heap.to_array()
    for i in range(len(array)):
        for child in (2 * i + 1, 2 * i + 2):
            if child < len(array):
                assert not array[child] < array[i]


class TestMinHeapBuild:
    """Tests for heap construction."""

    def test_build_heap_does_not_insert(self, monkeypatch):
        """Test bulk build never goes through insert()."""
        def forbidden(self, item):
            raise AssertionError("build_heap must not call insert")

        monkeypatch.setattr(MinHeap, "insert", forbidden)

        heap = MinHeap.build_heap([7, 3, 9, 1, 8, 2, 5])

        assert heap.count == 7
        assert heap.peek() == 1
        assert_heap(heap)

    def test_constructor_heapifies(self):
        heap = MinHeap([9, 8, 7, 6, 5, 4, 3, 2, 1])

        assert heap.peek() == 1
        assert_heap(heap)

    def test_empty(self):
        heap = MinHeap()

        assert heap.is_empty
        assert heap.count == 0
        assert len(heap) == 0

    def test_build_does_not_alias_input(self):
        items = [3, 1, 2]
        heap = MinHeap.build_heap(items)
        heap.extract_min()

        assert items == [3, 1, 2]


class TestMinHeapOrdering:
    """Tests for extraction order."""

    def test_extract_non_decreasing(self):
        heap = MinHeap()
        for p in [3, 1, 4, 1, 5, 9, 2, 6]:
            heap.insert(p)
            assert_heap(heap)

        drained = [heap.extract_min() for _ in range(heap.count)]

        assert drained == [1, 1, 2, 3, 4, 5, 6, 9]
        assert heap.is_empty

    def test_equal_priority_older_first(self):
        """Test submitted_at breaks ties between equal priorities."""
        entries = [
            entry(2, minutes=30, issue_id=1),
            entry(1, minutes=50, issue_id=2),
            entry(2, minutes=10, issue_id=3),
            entry(1, minutes=5, issue_id=4),
            entry(3, minutes=0, issue_id=5),
        ]
        heap = MinHeap.build_heap(entries)

        order = [heap.extract_min().issue_id for _ in range(len(entries))]

        assert order == [4, 2, 3, 1, 5]

    def test_left_child_wins_full_tie(self):
        """Test sift-down prefers the left child when both compare equal."""
        heap = MinHeap([
            Tagged(1, "root"),
            Tagged(3, "left"),
            Tagged(3, "right"),
            Tagged(5, "leaf"),
        ])

        heap.extract_min()

        assert heap.peek().tag == "left"

    def test_distinct_issues_never_tie(self):
        """Test same priority and time still orders by issue id."""
        heap = MinHeap([entry(2, issue_id=9), entry(2, issue_id=4), entry(2, issue_id=7)])

        assert [heap.extract_min().issue_id for _ in range(3)] == [4, 7, 9]

    def test_get_sorted_drains(self):
        heap = MinHeap([5, 2, 8, 1])

        assert heap.get_sorted() == [1, 2, 5, 8]
        assert heap.is_empty


class TestMinHeapPeek:
    """Tests for non-destructive access."""

    def test_peek(self):
        heap = MinHeap([4, 2, 6])

        assert heap.peek() == 2
        assert heap.count == 3

    def test_peek_top_subset(self):
        heap = MinHeap([3, 1, 4, 1, 5, 9, 2, 6])

        assert heap.peek_top(3) == [1, 1, 2]
        assert heap.count == 8

    def test_peek_top_larger_than_size(self):
        """Test n >= size returns everything, still in priority order."""
        heap = MinHeap([5, 3, 9, 1])
        before = heap.to_array()

        assert heap.peek_top(10) == [1, 3, 5, 9]
        assert heap.peek_top(4) == [1, 3, 5, 9]
        assert heap.to_array() == before

    def test_peek_top_non_positive(self):
        heap = MinHeap([1, 2, 3])

        assert heap.peek_top(0) == []
        assert heap.peek_top(-2) == []

    def test_peek_top_empty(self):
        assert MinHeap().peek_top(5) == []

    def test_copy_is_independent(self):
        heap = MinHeap([3, 1, 2])
        clone = heap.copy()
        clone.extract_min()

        assert heap.count == 3
        assert clone.count == 2
        assert heap.peek() == 1

    def test_membership(self):
        heap = MinHeap([3, 1, 2])

        assert 2 in heap
        assert heap.contains(3)
        assert 7 not in heap

    def test_contains_matches_issue_id(self):
        heap = MinHeap([entry(1, issue_id=7), entry(2, minutes=5, issue_id=8)])

        assert heap.contains(entry(1, issue_id=7))
        assert not heap.contains(entry(1, issue_id=99))
        assert entry(2, minutes=5, issue_id=3) not in heap


class TestMinHeapEmpty:
    """Tests for operations on an empty heap."""

    def test_peek_raises(self):
        with pytest.raises(EmptyContainerError) as exc_info:
            MinHeap().peek()

        assert exc_info.value.details["operation"] == "peek"

    def test_extract_raises(self):
        with pytest.raises(EmptyContainerError):
            MinHeap().extract_min()

    def test_clear(self):
        heap = MinHeap([1, 2])
        heap.clear()

        assert heap.is_empty
        with pytest.raises(EmptyContainerError):
            heap.extract_min()
