"""Admin domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DashboardCounts:
    """Raw counters for the admin dashboard."""

    users: int
    admins: int
    meals_total: int
    meals_active: int
    plans_by_status: dict[str, int]
    users_with_active_plans: int
    progress_entries: int
