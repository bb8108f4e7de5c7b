"""
Binary Min-Heap: Array-Backed Priority Queue

Complete binary tree stored by position in a dense list:
    parent(i) = (i - 1) // 2
    children(i) = 2i + 1, 2i + 2
Heap property: every element is <= both of its children.

Complexity:
    - insert / extract_min: O(log n)
    - peek: O(1)
    - build_heap: O(n) bottom-up heapify
    - peek_top(k): O(n + k log n) on a copy, original untouched
    - get_sorted: O(n log n), drains the heap

Empty-container policy:
    peek() and extract_min() raise EmptyContainerError on an empty heap.
    Check ``is_empty`` first when emptiness is a normal case.
"""

from __future__ import annotations

from typing import Generic, Iterable, Iterator, Optional

from issue_index.core.errors import EmptyContainerError
from issue_index.core.protocols import CT


class MinHeap(Generic[CT]):
    """
    Generic binary min-heap over payloads with a strict ``<``.

    Usage:
        heap = MinHeap.build_heap(entries)   # O(n)
        most_urgent = heap.peek()
        top_five = heap.peek_top(5)          # non-destructive
    """

    __slots__ = ("_heap",)

    def __init__(self, items: Optional[Iterable[CT]] = None) -> None:
        self._heap: list[CT] = list(items) if items is not None else []
        if self._heap:
            self._heapify()

    @classmethod
    def build_heap(cls, items: Iterable[CT]) -> "MinHeap[CT]":
        """Build a heap from an arbitrary sequence in O(n)."""
        return cls(items)

    # =========================================================================
    # PROPERTIES
    # =========================================================================
    @property
    def count(self) -> int:
        return len(self._heap)

    @property
    def is_empty(self) -> bool:
        return not self._heap

    # =========================================================================
    # CORE OPERATIONS
    # =========================================================================
    def insert(self, item: CT) -> None:
        """Append at the end and sift up."""
        self._heap.append(item)
        self._sift_up(len(self._heap) - 1)

    def extract_min(self) -> CT:
        """
        Remove and return the smallest element.

        Raises:
            EmptyContainerError: If the heap is empty
        """
        if not self._heap:
            raise EmptyContainerError.for_operation("MinHeap", "extract_min")

        heap = self._heap
        smallest = heap[0]
        last = heap.pop()
        if heap:
            heap[0] = last
            self._sift_down(0)
        return smallest

    def peek(self) -> CT:
        """
        Return the smallest element without removing it.

        Raises:
            EmptyContainerError: If the heap is empty
        """
        if not self._heap:
            raise EmptyContainerError.for_operation("MinHeap", "peek")
        return self._heap[0]

    def peek_top(self, n: int) -> list[CT]:
        """
        The ``n`` smallest elements, smallest first, without mutating.

        n <= 0 gives an empty list; n >= count gives every element, still
        in priority order. Works on a bulk-built copy, which is fine for
        the small n this is used with (top-5 dashboards).
        """
        if n <= 0 or not self._heap:
            return []

        scratch = self.copy()
        return [scratch.extract_min() for _ in range(min(n, scratch.count))]

    def get_sorted(self) -> list[CT]:
        """
        Drain the heap into ascending order.

        Consumes the heap: it is empty afterwards. Use peek_top() or
        to_list() for non-destructive access.
        """
        drained: list[CT] = []
        while self._heap:
            drained.append(self.extract_min())
        return drained

    # =========================================================================
    # HEAP REPAIR
    # =========================================================================
    def _sift_up(self, index: int) -> None:
        heap = self._heap
        while index > 0:
            parent = (index - 1) // 2
            if not heap[index] < heap[parent]:
                break
            heap[index], heap[parent] = heap[parent], heap[index]
            index = parent

    def _sift_down(self, index: int) -> None:
        heap = self._heap
        size = len(heap)
        while True:
            left = 2 * index + 1
            right = left + 1
            smallest = index

            # Strict comparisons: on a tie between children the left wins
            if left < size and heap[left] < heap[smallest]:
                smallest = left
            if right < size and heap[right] < heap[smallest]:
                smallest = right

            if smallest == index:
                return
            heap[index], heap[smallest] = heap[smallest], heap[index]
            index = smallest

    def _heapify(self) -> None:
        # Sift down from the last non-leaf back to the root
        for index in range(len(self._heap) // 2 - 1, -1, -1):
            self._sift_down(index)

    # =========================================================================
    # AUXILIARY ACCESSORS
    # =========================================================================
    def contains(self, item: CT) -> bool:
        """Linear membership test. O(n)."""
        return item in self._heap

    def to_list(self) -> list[CT]:
        """Backing storage in heap order (not sorted)."""
        return list(self._heap)

    def to_array(self) -> tuple[CT, ...]:
        """Immutable view of the array layout; index 0 is the root."""
        return tuple(self._heap)

    def copy(self) -> "MinHeap[CT]":
        """Independent heap with the same elements. The layout is already a heap."""
        clone: MinHeap[CT] = MinHeap()
        clone._heap = list(self._heap)
        return clone

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)

    def __iter__(self) -> Iterator[CT]:
        """Iterate in array order (not sorted)."""
        return iter(list(self._heap))

    def __contains__(self, item: object) -> bool:
        return item in self._heap

    def __repr__(self) -> str:
        return f"MinHeap(count={len(self._heap)})"
