"""Recommendation endpoints for the signed-in user."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request, status

from dietly.api.auth import current_user
from dietly.api.responses import paginated, success
from dietly.api.serializers import serialize_recommendation
from dietly.domain.models import UserProfile  # noqa: TC001

if TYPE_CHECKING:
    from dietly.containers import AppContainer

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("")
async def list_recommendations(  # noqa: PLR0913
    request: Request,
    status_filter: str | None = Query(default=None, alias="status"),
    kind: str | None = Query(default=None, alias="type"),
    priority: str | None = None,
    page: int = 1,
    limit: int = 20,
    user: UserProfile = Depends(current_user),
) -> dict[str, object]:
    """List the caller's recommendations, most urgent first."""
    container: AppContainer = request.app.state.container
    result = container.recommendation_service.list_recommendations(
        user, status=status_filter, kind=kind, priority=priority, page=page, limit=limit
    )
    return paginated(result, serialize_recommendation)


@router.get("/active")
async def active_recommendations(
    request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Return the caller's active recommendations."""
    container: AppContainer = request.app.state.container
    items = container.recommendation_service.active(user)
    return success([serialize_recommendation(item) for item in items])


@router.post("/generate", status_code=status.HTTP_201_CREATED)
async def generate_recommendations(
    request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Evaluate the rules and store fresh recommendations."""
    container: AppContainer = request.app.state.container
    items = container.recommendation_service.generate(user)
    return success([serialize_recommendation(item) for item in items])


@router.get("/{recommendation_id}")
async def recommendation_detail(
    recommendation_id: UUID, request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Return one recommendation."""
    container: AppContainer = request.app.state.container
    item = container.recommendation_service.get(user, recommendation_id)
    return success(serialize_recommendation(item))


@router.put("/{recommendation_id}/apply")
async def apply_recommendation(
    recommendation_id: UUID, request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Mark a recommendation as applied."""
    container: AppContainer = request.app.state.container
    item = container.recommendation_service.apply(user, recommendation_id)
    return success(serialize_recommendation(item), message="Recommendation applied")


@router.put("/{recommendation_id}/dismiss")
async def dismiss_recommendation(
    recommendation_id: UUID, request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Dismiss a recommendation."""
    container: AppContainer = request.app.state.container
    item = container.recommendation_service.dismiss(user, recommendation_id)
    return success(serialize_recommendation(item), message="Recommendation dismissed")


@router.put("/{recommendation_id}/action-steps/{step_index}")
async def complete_action_step(
    recommendation_id: UUID,
    step_index: int,
    request: Request,
    user: UserProfile = Depends(current_user),
) -> dict[str, object]:
    """Mark one action step as completed."""
    container: AppContainer = request.app.state.container
    item = container.recommendation_service.complete_step(
        user, recommendation_id, step_index
    )
    return success(serialize_recommendation(item))


@router.delete("/{recommendation_id}")
async def delete_recommendation(
    recommendation_id: UUID, request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Delete a recommendation."""
    container: AppContainer = request.app.state.container
    container.recommendation_service.delete(user, recommendation_id)
    return success(None, message="Recommendation deleted")
