"""Domain models for generated meal plans."""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

DRAFT = "draft"
ACTIVE = "active"
COMPLETED = "completed"
CANCELLED = "cancelled"

PLAN_STATUSES = (DRAFT, ACTIVE, COMPLETED, CANCELLED)
TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})

ALLOWED_DURATIONS = (3, 7, 14, 21, 30)
MAX_MANUAL_DURATION = 30
DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class MealEntry:
    """One scheduled occurrence of a catalog meal within a day."""

    meal_id: UUID
    servings: float = 1.0
    consumed: bool = False
    consumed_at: datetime | None = None


@dataclass(frozen=True)
class DayMeals:
    """The four meal slots of a plan day."""

    breakfast: MealEntry | None = None
    lunch: MealEntry | None = None
    dinner: MealEntry | None = None
    snacks: tuple[MealEntry, ...] = ()

    def entries(self) -> list[MealEntry]:
        """Return every non-empty slot, snacks last."""
        slots = [self.breakfast, self.lunch, self.dinner, *self.snacks]
        return [entry for entry in slots if entry is not None]


@dataclass(frozen=True)
class PlanDay:
    """A calendar day of a meal plan."""

    date: date
    meals: DayMeals
    week_number: int = 1
    notes: str | None = None


@dataclass(frozen=True)
class TargetNutrition:
    """Daily nutrition targets for a plan."""

    daily_calories: float
    protein: float | None = None
    carbohydrates: float | None = None
    fats: float | None = None


@dataclass(frozen=True)
class Adherence:
    """Plan-level consumption summary."""

    consumed_meals: int = 0
    total_meals: int = 0
    adherence_percentage: float = 0.0


@dataclass(frozen=True)
class MealPlan:
    """A multi-day meal plan owned by a user."""

    id: UUID
    user_id: UUID
    name: str
    start_date: date
    end_date: date
    duration: int
    status: str
    target_nutrition: TargetNutrition
    days: tuple[PlanDay, ...] = ()
    adherence: Adherence = field(default_factory=Adherence)
    generated_by: str = "auto"
    stopped_at: datetime | None = None
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def find_day(self, on_date: date) -> PlanDay | None:
        """Return the plan day for a calendar date, if scheduled."""
        for day in self.days:
            if day.date == on_date:
                return day
        return None

    def covers(self, on_date: date) -> bool:
        """Return True when the date falls inside the plan range."""
        return self.start_date <= on_date <= self.end_date
