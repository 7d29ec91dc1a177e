"""Tests for admin service."""

from datetime import timedelta
from uuid import uuid4

import pytest

from dietly.containers import AppContainer
from dietly.domain.errors import PlanNotFoundError
from tests.conftest import (
    ADMIN_ID,
    TODAY,
    USER_ID,
    InMemoryAuditRepository,
    complete_profile,
)


def test_dashboard_counts(container: AppContainer) -> None:
    profile = complete_profile()
    container.meal_plan_service.generate(profile, TODAY, 7)
    container.meal_plan_service.generate(profile, TODAY, 3, activate=False)
    container.progress_service.record(profile, {"weight": 64.0})
    apple = container.catalog_service.meals_by_type("snack")[0]
    container.catalog_service.delete_meal(ADMIN_ID, apple.id)

    counts = container.admin_service.dashboard()

    assert counts.users == 2
    assert counts.admins == 1
    assert counts.meals_total == 12
    assert counts.meals_active == 11
    assert counts.plans_by_status == {
        "draft": 1,
        "active": 1,
        "completed": 0,
        "cancelled": 0,
    }
    assert counts.users_with_active_plans == 1
    assert counts.progress_entries == 1


def test_list_plans_across_users(container: AppContainer) -> None:
    container.meal_plan_service.generate(complete_profile(), TODAY, 7)
    other = complete_profile(user_id=uuid4())
    container.meal_plan_service.generate(other, TODAY + timedelta(days=1), 3)

    everything = container.admin_service.list_plans()
    drafts = container.admin_service.list_plans(status="draft")

    assert everything.total == 2
    assert drafts.total == 0


def test_delete_plan_is_audited(
    container: AppContainer, audit_repository: InMemoryAuditRepository
) -> None:
    plan = container.meal_plan_service.generate(complete_profile(), TODAY, 7)

    container.admin_service.delete_plan(ADMIN_ID, plan.id)

    assert container.admin_service.list_plans().total == 0
    history = container.admin_service.audit_history(plan.id)
    assert history[0]["event_type"] == "deleted"
    assert history[0]["before"] == {"user_id": str(USER_ID), "status": "active"}
    assert audit_repository.events[-1]["entity_type"] == "meal_plan"
    with pytest.raises(PlanNotFoundError):
        container.admin_service.delete_plan(ADMIN_ID, plan.id)
