"""
Tests Module: Unit and Integration Tests

Test Coverage:
    - Core types (IssueRecord, SearchEntry, PriorityEntry, IndexStatistics)
    - AVL tree (insert, remove, rotations, balance invariants)
    - Min-heap (bulk build, extract order, peek_top)
    - Index facade (refresh policy, queries, process_most_urgent)
    - Store adapters (in-memory, SQLite)
    - Configuration, logging and metrics
"""
