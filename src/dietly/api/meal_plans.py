"""Meal plan endpoints."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request, status

from dietly.api.auth import current_user
from dietly.api.responses import paginated, success
from dietly.api.schemas import (  # noqa: TC001
    ConsumeRequest,
    GeneratePlanRequest,
    ManualPlanRequest,
)
from dietly.api.serializers import (
    serialize_daily_status,
    serialize_plan,
    serialize_plan_nutrition,
    serialize_plan_summary,
)
from dietly.domain.models import UserProfile  # noqa: TC001
from dietly.services.meal_plans import ManualDay

if TYPE_CHECKING:
    from dietly.containers import AppContainer
    from dietly.domain.meal_plans import MealPlan

router = APIRouter(prefix="/meal-plans", tags=["meal-plans"])


def _render(container: AppContainer, plan: MealPlan) -> dict[str, object]:
    meals = container.meal_plan_service.plan_meals([plan])
    return serialize_plan(plan, meals)


@router.post("/generate", status_code=status.HTTP_201_CREATED)
async def generate_plan(
    body: GeneratePlanRequest,
    request: Request,
    user: UserProfile = Depends(current_user),
) -> dict[str, object]:
    """Generate a meal plan for the caller."""
    container: AppContainer = request.app.state.container
    plan = container.meal_plan_service.generate(
        user,
        body.start_date,
        body.duration,
        seed=body.seed,
        activate=body.activate,
        name=body.name,
    )
    return success(_render(container, plan), message="Meal plan generated")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_manual_plan(
    body: ManualPlanRequest,
    request: Request,
    user: UserProfile = Depends(current_user),
) -> dict[str, object]:
    """Create a draft plan from explicit meal choices."""
    container: AppContainer = request.app.state.container
    days = [
        ManualDay(
            breakfast=day.breakfast,
            lunch=day.lunch,
            dinner=day.dinner,
            snacks=tuple(day.snacks),
            notes=day.notes,
        )
        for day in body.days
    ]
    plan = container.meal_plan_service.create_manual(
        user, body.name, body.start_date, days
    )
    return success(_render(container, plan))


@router.get("")
async def list_plans(
    request: Request,
    status_filter: str | None = Query(default=None, alias="status"),
    page: int = 1,
    limit: int = 10,
    user: UserProfile = Depends(current_user),
) -> dict[str, object]:
    """List the caller's plans."""
    container: AppContainer = request.app.state.container
    result = container.meal_plan_service.list_plans(
        user, status=status_filter, page=page, limit=limit
    )
    return paginated(result, serialize_plan_summary)


@router.get("/current")
async def current_plan(
    request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Return the active plan covering today, or null."""
    container: AppContainer = request.app.state.container
    plan = container.meal_plan_service.current_plan(user)
    return success(_render(container, plan) if plan else None)


@router.get("/{plan_id}")
async def get_plan(
    plan_id: UUID, request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Return one of the caller's plans with meal details."""
    container: AppContainer = request.app.state.container
    plan = container.meal_plan_service.get_plan(user, plan_id)
    return success(_render(container, plan))


@router.get("/{plan_id}/nutrition")
async def plan_nutrition(
    plan_id: UUID, request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Return per-day and total nutrition for a plan."""
    container: AppContainer = request.app.state.container
    plan, nutrition = container.meal_plan_service.nutrition_summary(user, plan_id)
    return success(serialize_plan_nutrition(plan, nutrition))


@router.get("/{plan_id}/daily-status")
async def daily_status(
    plan_id: UUID,
    request: Request,
    on_date: date | None = Query(default=None, alias="date"),
    user: UserProfile = Depends(current_user),
) -> dict[str, object]:
    """Return planned versus consumed nutrition for one day."""
    container: AppContainer = request.app.state.container
    result = container.meal_plan_service.daily_status(user, plan_id, on_date)
    return success(serialize_daily_status(result))


@router.put("/{plan_id}/consume")
async def consume_meal(
    plan_id: UUID,
    body: ConsumeRequest,
    request: Request,
    user: UserProfile = Depends(current_user),
) -> dict[str, object]:
    """Toggle the consumed flag of one meal slot."""
    container: AppContainer = request.app.state.container
    plan = container.meal_plan_service.mark_consumed(
        user,
        plan_id,
        body.calendar_date,
        body.meal_type,
        snack_index=body.snack_index,
        consumed=body.consumed,
    )
    return success(_render(container, plan))


@router.put("/{plan_id}/activate")
async def activate_plan(
    plan_id: UUID, request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Move a draft plan to active."""
    container: AppContainer = request.app.state.container
    plan = container.meal_plan_service.activate(user, plan_id)
    return success(_render(container, plan), message="Meal plan activated")


@router.put("/{plan_id}/stop")
async def stop_plan(
    plan_id: UUID, request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Cancel the caller's active plan."""
    container: AppContainer = request.app.state.container
    plan = container.meal_plan_service.stop(user, plan_id)
    return success(_render(container, plan), message="Meal plan stopped")
