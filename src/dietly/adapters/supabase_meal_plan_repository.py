"""Supabase repository for meal plans.

Days are stored as a JSON document on the plan row. The single-active-plan
rule is the partial unique index ``meal_plans_one_active_per_user`` and plan
updates are guarded by the ``version`` column.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from dietly.adapters.supabase_errors import is_unique_violation, storage_errors
from dietly.domain.errors import (
    ActivePlanExistsError,
    PersistenceError,
    PlanConflictError,
    PlanNotFoundError,
)
from dietly.domain.meal_plans import (
    ACTIVE,
    Adherence,
    DayMeals,
    MealEntry,
    MealPlan,
    PlanDay,
    TargetNutrition,
)
from dietly.services.meal_plans import MealPlanRepository

_TABLE = "meal_plans"

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseMealPlanRepository(MealPlanRepository):
    """Supabase-backed meal plan persistence."""

    client: Client

    def create_plan(self, plan: MealPlan) -> MealPlan:
        """Insert a plan row and return the stored plan."""
        try:
            response = self.client.table(_TABLE).insert(plan_to_row(plan)).execute()
        except APIError as exc:
            raise _translate(exc, "create meal plan") from exc
        if not response.data:
            raise PersistenceError("Failed to create meal plan")
        return parse_plan(response.data[0])

    def get_plan(self, plan_id: UUID) -> MealPlan | None:
        """Return a plan by id, if present."""
        with storage_errors("load meal plan"):
            response = (
                self.client.table(_TABLE)
                .select("*")
                .eq("id", str(plan_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return parse_plan(response.data[0])

    def list_plans(self, user_id: UUID, status: str | None = None) -> list[MealPlan]:
        """Return a user's plans, newest first."""
        query = self.client.table(_TABLE).select("*").eq("user_id", str(user_id))
        if status:
            query = query.eq("status", status)
        with storage_errors("list meal plans"):
            response = query.order("created_at", desc=True).execute()
        return [parse_plan(row) for row in response.data or []]

    def find_active_plan(self, user_id: UUID) -> MealPlan | None:
        """Return the user's active plan, if any."""
        plans = self.list_plans(user_id, status=ACTIVE)
        return plans[0] if plans else None

    def update_plan(self, plan: MealPlan) -> MealPlan:
        """Write the plan if nobody changed it since it was read."""
        row = plan_to_row(plan)
        row.pop("id")
        row.pop("created_at")
        row["version"] = plan.version + 1
        try:
            response = (
                self.client.table(_TABLE)
                .update(row)
                .eq("id", str(plan.id))
                .eq("version", plan.version)
                .execute()
            )
        except APIError as exc:
            raise _translate(exc, "update meal plan") from exc
        if response.data:
            return parse_plan(response.data[0])
        if self.get_plan(plan.id) is None:
            raise PlanNotFoundError(plan.id)
        _logger.info("Version conflict updating meal plan %s", plan.id)
        raise PlanConflictError

    def list_all_plans(self, status: str | None = None) -> list[MealPlan]:
        """Return every plan, newest first."""
        query = self.client.table(_TABLE).select("*")
        if status:
            query = query.eq("status", status)
        with storage_errors("list meal plans"):
            response = query.order("created_at", desc=True).execute()
        return [parse_plan(row) for row in response.data or []]

    def delete_plan(self, plan_id: UUID) -> None:
        """Delete a plan row."""
        with storage_errors("delete meal plan"):
            self.client.table(_TABLE).delete().eq("id", str(plan_id)).execute()


def _translate(exc: APIError, action: str) -> Exception:
    if is_unique_violation(exc):
        return ActivePlanExistsError()
    _logger.exception("Supabase request failed: %s", action)
    return PersistenceError(f"Failed to {action}")


def plan_to_row(plan: MealPlan) -> dict[str, object]:
    """Serialize a plan into a meal_plans row."""
    return {
        "id": str(plan.id),
        "user_id": str(plan.user_id),
        "name": plan.name,
        "start_date": plan.start_date.isoformat(),
        "end_date": plan.end_date.isoformat(),
        "duration": plan.duration,
        "status": plan.status,
        "target_nutrition": {
            "daily_calories": plan.target_nutrition.daily_calories,
            "protein": plan.target_nutrition.protein,
            "carbohydrates": plan.target_nutrition.carbohydrates,
            "fats": plan.target_nutrition.fats,
        },
        "days": [_day_to_json(day) for day in plan.days],
        "adherence": {
            "consumed_meals": plan.adherence.consumed_meals,
            "total_meals": plan.adherence.total_meals,
            "adherence_percentage": plan.adherence.adherence_percentage,
        },
        "generated_by": plan.generated_by,
        "stopped_at": _iso(plan.stopped_at),
        "version": plan.version,
        "created_at": _iso(plan.created_at),
        "updated_at": _iso(plan.updated_at),
    }


def parse_plan(row: dict[str, object]) -> MealPlan:
    """Parse a meal_plans row into a domain model."""
    target = row.get("target_nutrition") or {}
    adherence = row.get("adherence") or {}
    return MealPlan(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        name=str(row.get("name") or ""),
        start_date=date.fromisoformat(str(row["start_date"])),
        end_date=date.fromisoformat(str(row["end_date"])),
        duration=int(row.get("duration") or 0),
        status=str(row["status"]),
        target_nutrition=TargetNutrition(
            daily_calories=float(target.get("daily_calories") or 0.0),
            protein=target.get("protein"),
            carbohydrates=target.get("carbohydrates"),
            fats=target.get("fats"),
        ),
        days=tuple(_day_from_json(item) for item in row.get("days") or []),
        adherence=Adherence(
            consumed_meals=int(adherence.get("consumed_meals") or 0),
            total_meals=int(adherence.get("total_meals") or 0),
            adherence_percentage=float(adherence.get("adherence_percentage") or 0.0),
        ),
        generated_by=str(row.get("generated_by") or "auto"),
        stopped_at=_parse_datetime(row.get("stopped_at")),
        version=int(row.get("version") or 0),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def _day_to_json(day: PlanDay) -> dict[str, object]:
    return {
        "date": day.date.isoformat(),
        "week_number": day.week_number,
        "notes": day.notes,
        "meals": {
            "breakfast": _entry_to_json(day.meals.breakfast),
            "lunch": _entry_to_json(day.meals.lunch),
            "dinner": _entry_to_json(day.meals.dinner),
            "snacks": [_entry_to_json(entry) for entry in day.meals.snacks],
        },
    }


def _day_from_json(item: dict[str, object]) -> PlanDay:
    meals = item.get("meals") or {}
    return PlanDay(
        date=date.fromisoformat(str(item["date"])),
        week_number=int(item.get("week_number") or 1),
        notes=item.get("notes"),
        meals=DayMeals(
            breakfast=_entry_from_json(meals.get("breakfast")),
            lunch=_entry_from_json(meals.get("lunch")),
            dinner=_entry_from_json(meals.get("dinner")),
            snacks=tuple(
                entry
                for entry in (_entry_from_json(raw) for raw in meals.get("snacks") or [])
                if entry is not None
            ),
        ),
    )


def _entry_to_json(entry: MealEntry | None) -> dict[str, object] | None:
    if entry is None:
        return None
    return {
        "meal_id": str(entry.meal_id),
        "servings": entry.servings,
        "consumed": entry.consumed,
        "consumed_at": _iso(entry.consumed_at),
    }


def _entry_from_json(raw: dict[str, object] | None) -> MealEntry | None:
    if not raw:
        return None
    return MealEntry(
        meal_id=UUID(str(raw["meal_id"])),
        servings=float(raw.get("servings") or 1.0),
        consumed=bool(raw.get("consumed", False)),
        consumed_at=_parse_datetime(raw.get("consumed_at")),
    )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
