"""Progress tracking endpoints."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request, status

from dietly.api.auth import current_user
from dietly.api.responses import paginated, success
from dietly.api.schemas import ProgressRequest  # noqa: TC001
from dietly.api.serializers import serialize_progress, serialize_progress_stats
from dietly.domain.models import UserProfile  # noqa: TC001

if TYPE_CHECKING:
    from dietly.containers import AppContainer

router = APIRouter(prefix="/progress", tags=["progress"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def record_progress(
    body: ProgressRequest,
    request: Request,
    user: UserProfile = Depends(current_user),
) -> dict[str, object]:
    """Create or update the entry for a date."""
    container: AppContainer = request.app.state.container
    values = body.model_dump(exclude_none=True, exclude={"entry_date"})
    entry = container.progress_service.record(user, values, body.entry_date)
    return success(serialize_progress(entry))


@router.get("")
async def list_progress(  # noqa: PLR0913
    request: Request,
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    page: int = 1,
    limit: int = 30,
    user: UserProfile = Depends(current_user),
) -> dict[str, object]:
    """List the caller's entries, newest first."""
    container: AppContainer = request.app.state.container
    result = container.progress_service.list_entries(
        user, start_date, end_date, page=page, limit=limit
    )
    return paginated(result, serialize_progress)


@router.get("/stats")
async def progress_stats(
    request: Request, days: int = 30, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Summarize the last ``days`` days."""
    container: AppContainer = request.app.state.container
    stats = container.progress_service.stats(user, days)
    if stats is None:
        return success(None, message="No progress data available")
    return success(serialize_progress_stats(stats))


@router.get("/latest")
async def latest_progress(
    request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Return the most recent entry."""
    container: AppContainer = request.app.state.container
    return success(serialize_progress(container.progress_service.latest(user)))


@router.delete("/{entry_id}")
async def delete_progress(
    entry_id: UUID, request: Request, user: UserProfile = Depends(current_user)
) -> dict[str, object]:
    """Delete one of the caller's entries."""
    container: AppContainer = request.app.state.container
    container.progress_service.delete(user, entry_id)
    return success(None, message="Progress entry deleted successfully")
