"""Supabase implementation for the meal catalog."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from dietly.adapters.supabase_errors import storage_errors
from dietly.domain.errors import MealNotFoundError, PersistenceError
from dietly.domain.meals import Ingredient, Meal, Nutrition
from dietly.services.catalog import MealRepository

_TABLE = "meals"
_NUTRITION_COLUMNS = (
    "calories",
    "protein",
    "carbohydrates",
    "fats",
    "fiber",
    "sugar",
    "sodium",
)


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase-backed repository for catalog meals."""

    client: Client

    def list_meals(
        self, meal_type: str | None = None, include_inactive: bool = False
    ) -> list[Meal]:
        """Return meals ordered by name."""
        query = self.client.table(_TABLE).select("*")
        if meal_type:
            query = query.eq("meal_type", meal_type)
        if not include_inactive:
            query = query.eq("is_active", True)
        with storage_errors("list meals"):
            response = query.order("name").execute()
        return [_parse_meal(row) for row in response.data or []]

    def get_meal(self, meal_id: UUID) -> Meal | None:
        """Return a meal by id, if present."""
        with storage_errors("load meal"):
            response = (
                self.client.table(_TABLE)
                .select("*")
                .eq("id", str(meal_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def get_meals(self, meal_ids: Iterable[UUID]) -> list[Meal]:
        """Return the meals with the given ids."""
        ids = sorted({str(meal_id) for meal_id in meal_ids})
        if not ids:
            return []
        with storage_errors("load meals"):
            response = self.client.table(_TABLE).select("*").in_("id", ids).execute()
        return [_parse_meal(row) for row in response.data or []]

    def create_meal(
        self, payload: dict[str, object], created_by: UUID | None
    ) -> Meal:
        """Insert a meal and return it."""
        row = _to_row(payload)
        row["created_by"] = str(created_by) if created_by else None
        with storage_errors("create meal"):
            response = self.client.table(_TABLE).insert(row).execute()
        if not response.data:
            raise PersistenceError("Failed to create meal")
        return _parse_meal(response.data[0])

    def update_meal(self, meal_id: UUID, payload: dict[str, object]) -> Meal:
        """Replace a meal's editable fields and return it."""
        with storage_errors("update meal"):
            response = (
                self.client.table(_TABLE)
                .update(_to_row(payload))
                .eq("id", str(meal_id))
                .execute()
            )
        if not response.data:
            raise MealNotFoundError
        return _parse_meal(response.data[0])

    def set_active(self, meal_id: UUID, is_active: bool) -> Meal:
        """Toggle the soft-delete flag and return the meal."""
        with storage_errors("update meal"):
            response = (
                self.client.table(_TABLE)
                .update({"is_active": is_active})
                .eq("id", str(meal_id))
                .execute()
            )
        if not response.data:
            raise MealNotFoundError
        return _parse_meal(response.data[0])


def _to_row(payload: dict[str, object]) -> dict[str, object]:
    """Flatten a validated meal payload into table columns."""
    nutrition = payload.get("nutrition") or {}
    row = {key: value for key, value in payload.items() if key != "nutrition"}
    for column in _NUTRITION_COLUMNS:
        row[column] = nutrition.get(column, 0.0)
    return row


def _parse_meal(row: dict[str, object]) -> Meal:
    """Parse a meals row into a domain model."""
    created_raw = row.get("created_at")
    created_by = row.get("created_by")
    return Meal(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        meal_type=str(row.get("meal_type", "")),
        nutrition=Nutrition(
            **{column: float(row.get(column) or 0.0) for column in _NUTRITION_COLUMNS}
        ),
        description=row.get("description"),
        servings=int(row.get("servings") or 1),
        difficulty=str(row.get("difficulty") or "medium"),
        ingredients=tuple(
            Ingredient(
                name=str(item.get("name", "")),
                amount=float(item.get("amount") or 0.0),
                unit=str(item.get("unit", "")),
                allergens=tuple(item.get("allergens") or ()),
            )
            for item in row.get("ingredients") or []
        ),
        instructions=tuple(row.get("instructions") or ()),
        dietary_tags=frozenset(row.get("dietary_tags") or ()),
        allergens=frozenset(row.get("allergens") or ()),
        prep_time=row.get("prep_time"),
        cook_time=row.get("cook_time"),
        image_url=row.get("image_url"),
        source=str(row.get("source") or "manual"),
        is_active=bool(row.get("is_active", True)),
        created_by=UUID(str(created_by)) if created_by else None,
        created_at=datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else None,
    )
