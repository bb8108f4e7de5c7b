"""
AVL Tree: Self-Balancing Binary Search Tree

Ordered index over any payload with a strict ``<``. Keys are unique:
inserting an item equal to a stored one replaces the stored payload.

Balance invariant (every node):
    height(None) = 0
    height(node) = 1 + max(height(left), height(right))
    |height(left) - height(right)| <= 1

Complexity:
    - insert / remove / search: O(log n)
    - get_min / get_max: O(log n)
    - in_order / level_order traversal: O(n) time and space
    - rotations: O(1)

Thread Safety:
    Not synchronized. The index facade builds a tree once per snapshot and
    only reads it afterwards.
"""

from __future__ import annotations

from collections import deque
from typing import Generic, Iterable, Iterator, Optional

from issue_index.core.errors import EmptyContainerError
from issue_index.core.protocols import CT


# =============================================================================
# AVL NODE
# =============================================================================
class AVLNode(Generic[CT]):
    """
    Tree node holding one payload and its cached subtree height.

    A new node is a leaf with height 1.
    """

    __slots__ = ("item", "left", "right", "height")

    def __init__(self, item: CT) -> None:
        self.item = item
        self.left: Optional[AVLNode[CT]] = None
        self.right: Optional[AVLNode[CT]] = None
        self.height = 1

    @property
    def balance_factor(self) -> int:
        """Left height minus right height."""
        return _height(self.left) - _height(self.right)

    def update_height(self) -> None:
        self.height = 1 + max(_height(self.left), _height(self.right))

    def __repr__(self) -> str:
        return f"AVLNode({self.item!r}, h={self.height})"


def _height(node: Optional[AVLNode]) -> int:
    return node.height if node is not None else 0


# =============================================================================
# AVL TREE
# =============================================================================
class AVLTree(Generic[CT]):
    """
    Self-balancing BST with insert-or-update semantics.

    ``count`` tracks distinct keys. It moves only when a node is created or
    spliced out, so it stays correct whatever order operations arrive in.

    Usage:
        tree = AVLTree[SearchEntry]()
        tree.insert(SearchEntry(issue_id=7, category="Roads"))
        hit = tree.search(SearchEntry.key(7))
    """

    __slots__ = ("_root", "_count")

    def __init__(self, items: Optional[Iterable[CT]] = None) -> None:
        self._root: Optional[AVLNode[CT]] = None
        self._count = 0
        if items is not None:
            for item in items:
                self.insert(item)

    # =========================================================================
    # PROPERTIES
    # =========================================================================
    @property
    def count(self) -> int:
        """Number of distinct keys stored."""
        return self._count

    @property
    def is_empty(self) -> bool:
        return self._root is None

    @property
    def root(self) -> Optional[AVLNode[CT]]:
        """Root node, for structural inspection. Do not mutate."""
        return self._root

    def get_height(self) -> int:
        """Tree height; 0 for an empty tree. O(1)."""
        return _height(self._root)

    # =========================================================================
    # INSERT
    # =========================================================================
    def insert(self, item: CT) -> bool:
        """
        Insert ``item``, or replace the payload of an equal key.

        Returns:
            True if a new key was added, False if an existing one was updated
        """
        self._root, added = self._insert(self._root, item)
        if added:
            self._count += 1
        return added

    def _insert(self, node: Optional[AVLNode[CT]], item: CT) -> tuple[AVLNode[CT], bool]:
        if node is None:
            return AVLNode(item), True

        if item < node.item:
            node.left, added = self._insert(node.left, item)
        elif node.item < item:
            node.right, added = self._insert(node.right, item)
        else:
            # Equal key: value replacement, shape and heights unchanged
            node.item = item
            return node, False

        if not added:
            return node, False

        node.update_height()
        balance = node.balance_factor

        # Rotation case is picked by where the new item went under the
        # heavy child: outside (LL/RR) or inside (LR/RL)
        if balance > 1:
            if item < node.left.item:
                return self._rotate_right(node), True
            node.left = self._rotate_left(node.left)
            return self._rotate_right(node), True

        if balance < -1:
            if node.right.item < item:
                return self._rotate_left(node), True
            node.right = self._rotate_right(node.right)
            return self._rotate_left(node), True

        return node, True

    # =========================================================================
    # REMOVE
    # =========================================================================
    def remove(self, item: CT) -> bool:
        """
        Remove the key equal to ``item``.

        Returns:
            True if a key was removed, False if it was absent
        """
        self._root, removed = self._remove(self._root, item)
        if removed:
            self._count -= 1
        return removed

    def _remove(self, node: Optional[AVLNode[CT]], item: CT) -> tuple[Optional[AVLNode[CT]], bool]:
        if node is None:
            return None, False

        if item < node.item:
            node.left, removed = self._remove(node.left, item)
        elif node.item < item:
            node.right, removed = self._remove(node.right, item)
        else:
            if node.left is None or node.right is None:
                return node.left or node.right, True

            # Two children: take over the in-order successor's payload,
            # then delete the successor from the right subtree
            successor = self._min_node(node.right)
            node.item = successor.item
            node.right, removed = self._remove(node.right, successor.item)

        if not removed:
            return node, False

        return self._rebalance_after_remove(node), True

    def _rebalance_after_remove(self, node: AVLNode[CT]) -> AVLNode[CT]:
        node.update_height()
        balance = node.balance_factor

        # After a removal the inserted-item hint does not exist; the heavy
        # child's own balance factor decides single vs double rotation
        if balance > 1:
            if node.left.balance_factor >= 0:
                return self._rotate_right(node)
            node.left = self._rotate_left(node.left)
            return self._rotate_right(node)

        if balance < -1:
            if node.right.balance_factor <= 0:
                return self._rotate_left(node)
            node.right = self._rotate_right(node.right)
            return self._rotate_left(node)

        return node

    # =========================================================================
    # ROTATIONS
    # =========================================================================
    @staticmethod
    def _rotate_right(y: AVLNode[CT]) -> AVLNode[CT]:
        """
        Right rotation (left-left case).

                y            x
               / \\          / \\
              x   C   ->   A   y
             / \\              / \\
            A   B            B   C
        """
        x = y.left
        y.left = x.right
        x.right = y

        # y is now below x, so its height goes first
        y.update_height()
        x.update_height()
        return x

    @staticmethod
    def _rotate_left(x: AVLNode[CT]) -> AVLNode[CT]:
        """
        Left rotation (right-right case).

              x                y
             / \\              / \\
            A   y     ->     x   C
               / \\          / \\
              B   C        A   B
        """
        y = x.right
        x.right = y.left
        y.left = x

        x.update_height()
        y.update_height()
        return y

    # =========================================================================
    # LOOKUP
    # =========================================================================
    def search(self, item: CT) -> Optional[CT]:
        """
        Return the stored payload equal to ``item``, or None on a miss.

        Never mutates. A miss is a normal outcome, even on an empty tree.
        """
        node = self._root
        while node is not None:
            if item < node.item:
                node = node.left
            elif node.item < item:
                node = node.right
            else:
                return node.item
        return None

    def contains(self, item: CT) -> bool:
        return self.search(item) is not None

    def get_min(self) -> CT:
        """
        Smallest payload (leftmost node).

        Raises:
            EmptyContainerError: If the tree is empty
        """
        if self._root is None:
            raise EmptyContainerError.for_operation("AVLTree", "get_min")
        return self._min_node(self._root).item

    def get_max(self) -> CT:
        """
        Largest payload (rightmost node).

        Raises:
            EmptyContainerError: If the tree is empty
        """
        if self._root is None:
            raise EmptyContainerError.for_operation("AVLTree", "get_max")
        node = self._root
        while node.right is not None:
            node = node.right
        return node.item

    @staticmethod
    def _min_node(node: AVLNode[CT]) -> AVLNode[CT]:
        while node.left is not None:
            node = node.left
        return node

    # =========================================================================
    # TRAVERSAL
    # =========================================================================
    def in_order_traversal(self) -> list[CT]:
        """All payloads in ascending key order."""
        return list(self)

    def level_order_traversal(self) -> list[CT]:
        """All payloads breadth-first, root first."""
        result: list[CT] = []
        if self._root is None:
            return result

        queue: deque[AVLNode[CT]] = deque([self._root])
        while queue:
            node = queue.popleft()
            result.append(node.item)
            if node.left is not None:
                queue.append(node.left)
            if node.right is not None:
                queue.append(node.right)
        return result

    def clear(self) -> None:
        self._root = None
        self._count = 0

    # =========================================================================
    # PYTHON PROTOCOL
    # =========================================================================
    def __iter__(self) -> Iterator[CT]:
        """In-order iteration with an explicit stack."""
        stack: list[AVLNode[CT]] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.item
            node = node.right

    def __len__(self) -> int:
        return self._count

    def __contains__(self, item: object) -> bool:
        return self.contains(item)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return f"AVLTree(count={self._count}, height={self.get_height()})"
