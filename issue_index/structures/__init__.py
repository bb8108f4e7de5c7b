"""
Structures Module: Generic In-Memory Containers

Provides:
    - AVLTree: self-balancing BST for O(log n) lookup by key
    - MinHeap: array-backed binary heap for O(log n) extract-min
"""

from issue_index.structures.avl_tree import AVLNode, AVLTree
from issue_index.structures.min_heap import MinHeap

__all__ = [
    "AVLNode",
    "AVLTree",
    "MinHeap",
]
