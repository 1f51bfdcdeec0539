"""Mini README: Aggregation engine for the festival dashboard.

``summary`` holds the pure arithmetic (totals, balance, goal progress).
``snapshot`` owns the cached, internally consistent view of the store and its
single mutator ``reload``. ``refresh`` keeps that cache current from change
notifications and a polling fallback without duplicating round-trips.
"""

from .refresh import RefreshCoordinator
from .snapshot import CacheStatus, Snapshot, SnapshotCache
from .summary import (
    EMPTY_SUMMARY,
    FinancialSummary,
    GoalProgress,
    balance_status,
    compute_goal_progress,
    compute_summary,
    describe_goal,
    remaining_to_goal,
)

__all__ = [
    "CacheStatus",
    "EMPTY_SUMMARY",
    "FinancialSummary",
    "GoalProgress",
    "RefreshCoordinator",
    "Snapshot",
    "SnapshotCache",
    "balance_status",
    "compute_goal_progress",
    "compute_summary",
    "describe_goal",
    "remaining_to_goal",
]
