"""
Index Module: Cached search and urgency views over an IssueStore.
"""

from issue_index.index.facade import IndexSnapshot, IssueIndex

__all__ = [
    "IndexSnapshot",
    "IssueIndex",
]
