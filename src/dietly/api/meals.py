"""Meal catalog endpoints for signed-in users."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request

from dietly.api.auth import current_user
from dietly.api.responses import paginated, success
from dietly.api.serializers import serialize_meal
from dietly.services.catalog import MealFilters

if TYPE_CHECKING:
    from dietly.containers import AppContainer

router = APIRouter(
    prefix="/meals", tags=["meals"], dependencies=[Depends(current_user)]
)


def _split(raw: str | None) -> frozenset[str]:
    """Parse a comma-separated query value."""
    if not raw:
        return frozenset()
    return frozenset(part.strip().lower() for part in raw.split(",") if part.strip())


@router.get("")
async def browse_meals(  # noqa: PLR0913
    request: Request,
    meal_type: str | None = Query(default=None, alias="mealType"),
    dietary_tags: str | None = Query(default=None, alias="dietaryTags"),
    exclude_allergens: str | None = Query(default=None, alias="excludeAllergens"),
    difficulty: str | None = None,
    min_calories: float | None = Query(default=None, alias="minCalories"),
    max_calories: float | None = Query(default=None, alias="maxCalories"),
    min_protein: float | None = Query(default=None, alias="minProtein"),
    search: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> dict[str, object]:
    """Browse active meals with filters."""
    container: AppContainer = request.app.state.container
    filters = MealFilters(
        meal_type=meal_type,
        dietary_tags=_split(dietary_tags),
        exclude_allergens=_split(exclude_allergens),
        difficulty=difficulty,
        min_calories=min_calories,
        max_calories=max_calories,
        min_protein=min_protein,
        search=search,
    )
    result = container.catalog_service.browse(filters, page=page, limit=limit)
    return paginated(result, serialize_meal)


@router.get("/type/{meal_type}")
async def meals_by_type(
    meal_type: str,
    request: Request,
    exclude_allergens: str | None = Query(default=None, alias="excludeAllergens"),
    dietary_tags: str | None = Query(default=None, alias="dietaryTags"),
) -> dict[str, object]:
    """Return active meals of one type."""
    container: AppContainer = request.app.state.container
    meals = container.catalog_service.meals_by_type(
        meal_type,
        exclude_allergens=_split(exclude_allergens),
        dietary_tags=_split(dietary_tags),
    )
    return success([serialize_meal(meal) for meal in meals])


@router.get("/{meal_id}")
async def get_meal(meal_id: UUID, request: Request) -> dict[str, object]:
    """Return one active meal."""
    container: AppContainer = request.app.state.container
    return success(serialize_meal(container.catalog_service.get_meal(meal_id)))
