"""Read-only dashboard queries."""

from budget_dashboard.queries.dashboard import (
    DashboardQuery,
    category_breakdown,
    merge_recent_transactions,
)

__all__ = [
    "DashboardQuery",
    "category_breakdown",
    "merge_recent_transactions",
]
