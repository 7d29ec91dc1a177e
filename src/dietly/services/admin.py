"""Admin service for the back-office dashboard and plan management."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from dietly.domain.admin import DashboardCounts
from dietly.domain.errors import PlanNotFoundError
from dietly.domain.meal_plans import PLAN_STATUSES, MealPlan
from dietly.domain.models import ROLE_ADMIN, Page, paginate
from dietly.services.audit import AuditService
from dietly.services.meal_plans import MealPlanRepository

_logger = logging.getLogger(__name__)


class AdminRepository(Protocol):
    """Persistence interface for dashboard counters."""

    def count_profiles_by_role(self) -> dict[str, int]:
        """Return the number of profiles per role."""

    def count_meals(self, active_only: bool) -> int:
        """Return the number of catalog meals."""

    def count_plans_by_status(self) -> dict[str, int]:
        """Return the number of meal plans per status."""

    def count_users_with_active_plans(self) -> int:
        """Return how many users currently follow an active plan."""

    def count_progress_entries(self) -> int:
        """Return the number of progress entries."""


@dataclass
class AdminService:
    """Service for admin dashboards."""

    admin_repository: AdminRepository
    plan_repository: MealPlanRepository
    audit_service: AuditService

    def dashboard(self) -> DashboardCounts:
        """Return the dashboard counters."""
        roles = self.admin_repository.count_profiles_by_role()
        by_status = self.admin_repository.count_plans_by_status()
        return DashboardCounts(
            users=sum(roles.values()),
            admins=roles.get(ROLE_ADMIN, 0),
            meals_total=self.admin_repository.count_meals(active_only=False),
            meals_active=self.admin_repository.count_meals(active_only=True),
            plans_by_status={status: by_status.get(status, 0) for status in PLAN_STATUSES},
            users_with_active_plans=self.admin_repository.count_users_with_active_plans(),
            progress_entries=self.admin_repository.count_progress_entries(),
        )

    def list_plans(
        self, status: str | None = None, page: int = 1, limit: int = 20
    ) -> Page[MealPlan]:
        """Return every user's plans, newest first."""
        return paginate(self.plan_repository.list_all_plans(status), page, limit)

    def delete_plan(self, actor_id: UUID, plan_id: UUID) -> None:
        """Remove a meal plan permanently."""
        plan = self.plan_repository.get_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        self.plan_repository.delete_plan(plan_id)
        _logger.info("Meal plan %s deleted by %s", plan_id, actor_id)
        self.audit_service.record_event(
            actor_id=actor_id,
            entity_type="meal_plan",
            entity_id=plan_id,
            event_type="deleted",
            before={"user_id": str(plan.user_id), "status": plan.status},
        )

    def audit_history(self, entity_id: UUID, limit: int = 20) -> list[dict[str, object]]:
        """Return recent audit events for a user, meal or plan."""
        return self.audit_service.history(entity_id, limit)
