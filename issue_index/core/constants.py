"""
System-Wide Constants for the Issue Index

All magic numbers and configuration defaults centralized here.
"""

from typing import Final

# =============================================================================
# TIME UNITS
# =============================================================================
SECOND_S: Final[int] = 1
MINUTE_S: Final[int] = 60 * SECOND_S

# =============================================================================
# CACHE POLICY
# =============================================================================
STALENESS_THRESHOLD_S: Final[int] = 5 * MINUTE_S
DEFAULT_TOP_URGENT: Final[int] = 5

# =============================================================================
# PRIORITY SCALE (1 = most urgent)
# =============================================================================
PRIORITY_MIN: Final[int] = 1
PRIORITY_MAX: Final[int] = 5

PRIORITY_LABELS: Final[dict[int, str]] = {
    1: "Critical",
    2: "High",
    3: "Medium",
    4: "Low",
    5: "Very Low",
}
UNREVIEWED_LABEL: Final[str] = "Not Reviewed"

# =============================================================================
# ENVIRONMENT
# =============================================================================
ENV_PREFIX: Final[str] = "ISSUE_INDEX_"

# =============================================================================
# METRIC NAMES
# =============================================================================
METRIC_REFRESH_TOTAL: Final[str] = "issue_index_refresh_total"
METRIC_REFRESH_SECONDS: Final[str] = "issue_index_refresh_seconds"
METRIC_TREE_HEIGHT: Final[str] = "issue_index_tree_height"
METRIC_HEAP_SIZE: Final[str] = "issue_index_heap_size"
