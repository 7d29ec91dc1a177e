"""Profile endpoints for the signed-in user."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from dietly.api.auth import current_user
from dietly.api.responses import success
from dietly.api.schemas import ProfileUpdateRequest  # noqa: TC001
from dietly.api.serializers import serialize_needs, serialize_profile
from dietly.domain.models import UserProfile  # noqa: TC001

if TYPE_CHECKING:
    from dietly.containers import AppContainer

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile/me")
async def my_profile(user: UserProfile = Depends(current_user)) -> dict[str, object]:
    """Return the caller's profile."""
    return success(serialize_profile(user))


@router.put("/profile/update")
async def update_profile(
    body: ProfileUpdateRequest,
    request: Request,
    user: UserProfile = Depends(current_user),
) -> dict[str, object]:
    """Update the caller's profile."""
    container: AppContainer = request.app.state.container
    updated = container.user_service.update_profile(
        user.id, body.model_dump(exclude_none=True)
    )
    return success(serialize_profile(updated), message="Profile updated")


@router.get("/profile/nutrition")
async def nutrition_needs(
    request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Return the caller's calorie and macro needs."""
    container: AppContainer = request.app.state.container
    return success(serialize_needs(container.user_service.nutrition_needs(user)))
