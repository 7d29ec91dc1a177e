"""Meal plan lifecycle orchestration."""

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from dietly.domain.errors import (
    ActivePlanExistsError,
    DayNotFoundError,
    PlanConflictError,
    PlanNotFoundError,
    PlanValidationError,
    ProfileIncompleteError,
)
from dietly.domain.meal_plans import (
    ACTIVE,
    CANCELLED,
    COMPLETED,
    DAYS_PER_WEEK,
    DRAFT,
    MAX_MANUAL_DURATION,
    DayMeals,
    MealEntry,
    MealPlan,
    PlanDay,
)
from dietly.domain.meals import BREAKFAST, DINNER, LUNCH, SNACK, Meal
from dietly.domain.models import Page, UserProfile, paginate
from dietly.domain.nutrition import DailyStatus, PlanNutrition
from dietly.services import adherence, lifecycle
from dietly.services.catalog import MealCatalogService
from dietly.services.generator import (
    MealPlanGenerator,
    target_calories_for,
    validate_request,
)
from dietly.services.nutrition import (
    aggregate_day,
    aggregate_plan,
    calculate_target_nutrition,
    consumed_day,
)

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class MealPlanRepository(Protocol):
    """Persistence interface for meal plans."""

    def create_plan(self, plan: MealPlan) -> MealPlan:
        """Insert a plan; raises ActivePlanExistsError on a second active plan."""

    def get_plan(self, plan_id: UUID) -> MealPlan | None:
        """Return a plan by id."""

    def list_plans(self, user_id: UUID, status: str | None = None) -> list[MealPlan]:
        """Return a user's plans, newest first."""

    def find_active_plan(self, user_id: UUID) -> MealPlan | None:
        """Return the user's active plan, if any."""

    def update_plan(self, plan: MealPlan) -> MealPlan:
        """Save a plan if its version is unchanged, bumping the version.

        Raises PlanConflictError when another writer got there first.
        """

    def list_all_plans(self, status: str | None = None) -> list[MealPlan]:
        """Return every plan, newest first."""

    def delete_plan(self, plan_id: UUID) -> None:
        """Remove a plan permanently."""


@dataclass(frozen=True)
class ManualDay:
    """Requested meal ids for one day of a hand-built plan."""

    breakfast: UUID | None = None
    lunch: UUID | None = None
    dinner: UUID | None = None
    snacks: tuple[UUID, ...] = ()
    notes: str | None = None


@dataclass
class MealPlanService:
    """Generates, stores and advances meal plans for a user."""

    repository: MealPlanRepository
    generator: MealPlanGenerator
    catalog_service: MealCatalogService
    default_timezone: str = "UTC"
    clock: Callable[[], datetime] = field(default=_utc_now)

    def today_for(self, profile: UserProfile) -> date:
        """Return the calendar date in the profile's timezone."""
        tz = ZoneInfo(profile.timezone or self.default_timezone)
        return self.clock().astimezone(tz).date()

    def generate(  # noqa: PLR0913
        self,
        profile: UserProfile,
        start_date: date,
        duration: int,
        *,
        seed: int | None = None,
        activate: bool = True,
        name: str | None = None,
    ) -> MealPlan:
        """Generate and store a plan, active unless ``activate`` is False."""
        today = self.today_for(profile)
        validate_request(start_date, duration, today)
        missing = profile.missing_fields()
        if missing:
            raise ProfileIncompleteError(missing)
        if activate:
            self._ensure_no_active_plan(profile.id, today)

        plan = self.generator.generate(
            profile,
            start_date,
            duration,
            today,
            seed=seed,
            name=name,
            status=ACTIVE if activate else DRAFT,
        )
        now = self.clock()
        stored = self.repository.create_plan(
            replace(plan, created_at=now, updated_at=now)
        )
        _logger.info(
            "Meal plan %s created for user %s (%s, %s days)",
            stored.id,
            profile.id,
            stored.status,
            duration,
        )
        return stored

    def create_manual(
        self,
        profile: UserProfile,
        name: str,
        start_date: date,
        days: Sequence[ManualDay],
    ) -> MealPlan:
        """Store a hand-built plan as a draft."""
        if not name or not name.strip():
            raise PlanValidationError("Please add a plan name")
        if not 1 <= len(days) <= MAX_MANUAL_DURATION:
            raise PlanValidationError(
                f"A meal plan must have between 1 and {MAX_MANUAL_DURATION} days"
            )
        if start_date < self.today_for(profile):
            raise PlanValidationError("startDate cannot be in the past")

        referenced = [
            meal_id
            for day in days
            for meal_id in (day.breakfast, day.lunch, day.dinner, *day.snacks)
            if meal_id is not None
        ]
        meals = self.catalog_service.lookup(referenced)
        plan_days = tuple(
            PlanDay(
                date=start_date + timedelta(days=index),
                week_number=index // DAYS_PER_WEEK + 1,
                meals=_manual_meals(day, meals),
                notes=day.notes,
            )
            for index, day in enumerate(days)
        )
        now = self.clock()
        target = target_calories_for(profile, self.generator.default_daily_calories)
        plan = MealPlan(
            id=uuid4(),
            user_id=profile.id,
            name=name.strip(),
            start_date=start_date,
            end_date=start_date + timedelta(days=len(days) - 1),
            duration=len(days),
            status=DRAFT,
            target_nutrition=calculate_target_nutrition(target),
            days=plan_days,
            adherence=adherence.recompute_adherence(plan_days),
            generated_by="manual",
            created_at=now,
            updated_at=now,
        )
        stored = self.repository.create_plan(plan)
        _logger.info("Manual meal plan %s created for user %s", stored.id, profile.id)
        return stored

    def activate(self, profile: UserProfile, plan_id: UUID) -> MealPlan:
        """Move a draft plan to active."""
        plan = self.get_plan(profile, plan_id)
        today = self.today_for(profile)
        if plan.status == DRAFT:
            if plan.start_date < today:
                raise PlanValidationError(
                    "This draft starts in the past; create a new plan instead"
                )
            self._ensure_no_active_plan(profile.id, today)
        updated = self.repository.update_plan(
            lifecycle.transition(plan, ACTIVE, self.clock())
        )
        _logger.info("Meal plan %s activated for user %s", plan_id, profile.id)
        return updated

    def stop(self, profile: UserProfile, plan_id: UUID) -> MealPlan:
        """Cancel the user's active plan."""
        plan = self.get_plan(profile, plan_id)
        updated = self.repository.update_plan(
            lifecycle.transition(plan, CANCELLED, self.clock())
        )
        _logger.info("Meal plan %s stopped by user %s", plan_id, profile.id)
        return updated

    def mark_consumed(  # noqa: PLR0913
        self,
        profile: UserProfile,
        plan_id: UUID,
        on_date: date,
        meal_type: str,
        snack_index: int | None = None,
        consumed: bool | None = None,
    ) -> MealPlan:
        """Toggle (or set) one meal slot's consumed flag and save the plan."""
        plan = self.get_plan(profile, plan_id)
        updated = adherence.mark_consumed(
            plan,
            on_date,
            meal_type,
            snack_index=snack_index,
            consumed=consumed,
            now=self.clock(),
        )
        return self.repository.update_plan(updated)

    def list_plans(
        self,
        profile: UserProfile,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[MealPlan]:
        """Return the user's plans, newest first."""
        today = self.today_for(profile)
        plans = [
            self._complete_if_expired(plan, today)
            for plan in self.repository.list_plans(profile.id)
        ]
        if status:
            plans = [plan for plan in plans if plan.status == status]
        return paginate(plans, page, limit)

    def get_plan(self, profile: UserProfile, plan_id: UUID) -> MealPlan:
        """Return one of the user's plans or raise PlanNotFoundError."""
        plan = self.repository.get_plan(plan_id)
        if plan is None or plan.user_id != profile.id:
            raise PlanNotFoundError(plan_id)
        return self._complete_if_expired(plan, self.today_for(profile))

    def current_plan(self, profile: UserProfile) -> MealPlan | None:
        """Return the active plan covering today, if any."""
        plan = self.repository.find_active_plan(profile.id)
        if plan is None:
            return None
        today = self.today_for(profile)
        plan = self._complete_if_expired(plan, today)
        if plan.status != ACTIVE or not plan.covers(today):
            return None
        return plan

    def plan_meals(self, plans: Iterable[MealPlan]) -> dict[UUID, Meal]:
        """Resolve every meal referenced by the given plans."""
        return self.catalog_service.lookup(
            entry.meal_id
            for plan in plans
            for day in plan.days
            for entry in day.meals.entries()
        )

    def nutrition_summary(
        self, profile: UserProfile, plan_id: UUID
    ) -> tuple[MealPlan, PlanNutrition]:
        """Return the plan with its per-day and total nutrition."""
        plan = self.get_plan(profile, plan_id)
        return plan, aggregate_plan(plan, self.plan_meals([plan]))

    def daily_status(
        self, profile: UserProfile, plan_id: UUID, on_date: date | None = None
    ) -> DailyStatus:
        """Return planned and consumed nutrition for one plan day."""
        plan = self.get_plan(profile, plan_id)
        target_date = on_date or self.today_for(profile)
        day = plan.find_day(target_date)
        if day is None:
            raise DayNotFoundError
        meals = self.plan_meals([plan])
        consumed = consumed_day(day, meals).calories
        target = plan.target_nutrition.daily_calories
        completion = min(100.0, 100.0 * consumed / target) if target else 0.0
        return DailyStatus(
            date=day.date,
            week_number=day.week_number,
            planned=aggregate_day(day, meals),
            consumed_calories=consumed,
            target_calories=target,
            completion_percentage=completion,
            adherence=adherence.recompute_adherence([day]),
        )

    def _ensure_no_active_plan(self, user_id: UUID, today: date) -> None:
        active = self.repository.find_active_plan(user_id)
        if active is None:
            return
        if self._complete_if_expired(active, today).status == ACTIVE:
            raise ActivePlanExistsError

    def _complete_if_expired(self, plan: MealPlan, today: date) -> MealPlan:
        if not lifecycle.is_expired(plan, today):
            return plan
        try:
            completed = self.repository.update_plan(
                lifecycle.transition(plan, COMPLETED, self.clock())
            )
        except PlanConflictError:
            # Another request finished or stopped the plan first.
            current = self.repository.get_plan(plan.id)
            if current is None:
                raise PlanNotFoundError(plan.id) from None
            if current.status == ACTIVE:
                raise
            return current
        _logger.info("Meal plan %s completed after %s", plan.id, plan.end_date)
        return completed


def _manual_meals(day: ManualDay, meals: Mapping[UUID, Meal]) -> DayMeals:
    def entry(meal_id: UUID | None, meal_type: str) -> MealEntry | None:
        if meal_id is None:
            return None
        meal = meals.get(meal_id)
        if meal is None or not meal.is_active:
            raise PlanValidationError(f"Meal {meal_id} does not exist")
        if meal.meal_type != meal_type:
            raise PlanValidationError(
                f"Meal {meal.name} is a {meal.meal_type} and cannot be used as {meal_type}"
            )
        return MealEntry(meal_id=meal_id)

    return DayMeals(
        breakfast=entry(day.breakfast, BREAKFAST),
        lunch=entry(day.lunch, LUNCH),
        dinner=entry(day.dinner, DINNER),
        snacks=tuple(
            snack for snack in (entry(meal_id, SNACK) for meal_id in day.snacks) if snack
        ),
    )
