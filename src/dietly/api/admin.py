"""Admin API endpoints gated on the admin role."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request, status

from dietly.api.auth import require_admin
from dietly.api.responses import paginated, success
from dietly.api.schemas import (  # noqa: TC001
    MealRequest,
    MealUpdateRequest,
    RoleRequest,
)
from dietly.api.serializers import (
    serialize_dashboard,
    serialize_meal,
    serialize_plan_summary,
    serialize_profile,
)
from dietly.domain.models import UserProfile  # noqa: TC001

if TYPE_CHECKING:
    from dietly.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", dependencies=[Depends(require_admin)])
async def dashboard(request: Request) -> dict[str, object]:
    """Return dashboard counters."""
    container: AppContainer = request.app.state.container
    return success(serialize_dashboard(container.admin_service.dashboard()))


@router.get("/meals", dependencies=[Depends(require_admin)])
async def list_meals(
    request: Request,
    include_inactive: bool = Query(default=True, alias="includeInactive"),
    page: int = 1,
    limit: int = 50,
) -> dict[str, object]:
    """List catalog meals including retired ones."""
    container: AppContainer = request.app.state.container
    result = container.catalog_service.list_all(
        include_inactive=include_inactive, page=page, limit=limit
    )
    return paginated(result, serialize_meal)


@router.post("/meals", status_code=status.HTTP_201_CREATED)
async def create_meal(
    body: MealRequest, request: Request, admin: UserProfile = Depends(require_admin)
) -> dict[str, object]:
    """Add a meal to the catalog."""
    container: AppContainer = request.app.state.container
    meal = container.catalog_service.create_meal(admin.id, body.model_dump())
    return success(serialize_meal(meal), message="Meal created")


@router.put("/meals/{meal_id}")
async def update_meal(
    meal_id: UUID,
    body: MealUpdateRequest,
    request: Request,
    admin: UserProfile = Depends(require_admin),
) -> dict[str, object]:
    """Edit a catalog meal."""
    container: AppContainer = request.app.state.container
    meal = container.catalog_service.update_meal(
        admin.id, meal_id, body.model_dump(exclude_none=True)
    )
    return success(serialize_meal(meal), message="Meal updated")


@router.delete("/meals/{meal_id}")
async def delete_meal(
    meal_id: UUID, request: Request, admin: UserProfile = Depends(require_admin)
) -> dict[str, object]:
    """Retire a meal from the catalog."""
    container: AppContainer = request.app.state.container
    meal = container.catalog_service.delete_meal(admin.id, meal_id)
    return success(serialize_meal(meal), message="Meal deleted")


@router.put("/meals/{meal_id}/restore")
async def restore_meal(
    meal_id: UUID, request: Request, admin: UserProfile = Depends(require_admin)
) -> dict[str, object]:
    """Bring a retired meal back."""
    container: AppContainer = request.app.state.container
    meal = container.catalog_service.restore_meal(admin.id, meal_id)
    return success(serialize_meal(meal), message="Meal restored")


@router.get("/users", dependencies=[Depends(require_admin)])
async def list_users(
    request: Request,
    role: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict[str, object]:
    """List user profiles."""
    container: AppContainer = request.app.state.container
    result = container.user_service.list_users(
        role=role, search=search, page=page, limit=limit
    )
    return paginated(result, serialize_profile)


@router.get("/users/{user_id}", dependencies=[Depends(require_admin)])
async def user_detail(user_id: UUID, request: Request) -> dict[str, object]:
    """Return a profile with its plans and audit history."""
    container: AppContainer = request.app.state.container
    profile = container.user_service.get_profile(user_id)
    plans = container.meal_plan_service.list_plans(profile, page=1, limit=10)
    return success(
        {
            "user": serialize_profile(profile),
            "mealPlans": [serialize_plan_summary(plan) for plan in plans.items],
            "auditEvents": container.admin_service.audit_history(user_id),
        }
    )


@router.put("/users/{user_id}/role")
async def change_role(
    user_id: UUID,
    body: RoleRequest,
    request: Request,
    admin: UserProfile = Depends(require_admin),
) -> dict[str, object]:
    """Change a user's role."""
    container: AppContainer = request.app.state.container
    profile = container.user_service.set_role(admin.id, user_id, body.role)
    return success(serialize_profile(profile), message="Role updated")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: UUID, request: Request, admin: UserProfile = Depends(require_admin)
) -> dict[str, object]:
    """Remove a user account."""
    container: AppContainer = request.app.state.container
    container.user_service.delete_user(admin.id, user_id)
    return success(None, message="User deleted")


@router.get("/meal-plans", dependencies=[Depends(require_admin)])
async def list_meal_plans(
    request: Request,
    status_filter: str | None = Query(default=None, alias="status"),
    page: int = 1,
    limit: int = 20,
) -> dict[str, object]:
    """List every user's meal plans."""
    container: AppContainer = request.app.state.container
    result = container.admin_service.list_plans(status_filter, page=page, limit=limit)
    return paginated(result, serialize_plan_summary)


@router.delete("/meal-plans/{plan_id}")
async def delete_meal_plan(
    plan_id: UUID, request: Request, admin: UserProfile = Depends(require_admin)
) -> dict[str, object]:
    """Delete a meal plan permanently."""
    container: AppContainer = request.app.state.container
    container.admin_service.delete_plan(admin.id, plan_id)
    return success(None, message="Meal plan deleted")
