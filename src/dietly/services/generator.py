"""Day-by-day meal plan generation.

Each week of the plan draws a small rotation of options per meal type from the
candidate pools; each day then picks the breakfast, lunch, dinner and snack
combination from that rotation whose calories best approximate the target.
"""

import itertools
import logging
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

from dietly.domain.errors import PlanValidationError, ProfileIncompleteError
from dietly.domain.meal_plans import (
    ACTIVE,
    ALLOWED_DURATIONS,
    DAYS_PER_WEEK,
    DayMeals,
    MealEntry,
    MealPlan,
    PlanDay,
)
from dietly.domain.meals import BREAKFAST, DINNER, LUNCH, MEAL_TYPES, SNACK, Meal
from dietly.domain.models import UserProfile
from dietly.services.adherence import recompute_adherence
from dietly.services.calories import calculate_daily_calorie_target
from dietly.services.nutrition import calculate_target_nutrition
from dietly.services.selection import (
    MIN_WEEKLY_OPTIONS,
    MealSelectionService,
    pick_options,
)

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayChoice:
    """The meals picked for one day."""

    breakfast: Meal
    lunch: Meal
    dinner: Meal
    snacks: tuple[Meal, ...]

    @property
    def meals(self) -> tuple[Meal, ...]:
        """Every picked meal, snacks last."""
        return (self.breakfast, self.lunch, self.dinner, *self.snacks)

    @property
    def calories(self) -> float:
        """Total calories at one serving each."""
        return sum(meal.nutrition.calories for meal in self.meals)

    @property
    def protein(self) -> float:
        """Total protein at one serving each."""
        return sum(meal.nutrition.protein for meal in self.meals)


def calorie_tolerance(target: float, floor: float = 150.0, ratio: float = 0.05) -> float:
    """Width of the acceptable band around the daily calorie target."""
    return max(floor, target * ratio)


def choose_day(
    options: Mapping[str, Sequence[Meal]],
    target_calories: float,
    tolerance: float,
    max_snacks: int = 2,
    previous: DayChoice | None = None,
) -> DayChoice:
    """Pick the combination that best fits the calorie target.

    Combinations inside the tolerance band rank by fewest main meals repeated
    from the previous day, then smallest calorie deviation. Outside the band
    the deviation comes first and repeats only break ties. Remaining ties go
    to the most protein, then enumeration order.
    """
    snack_options = list(options[SNACK])
    snack_sets: list[tuple[Meal, ...]] = []
    for size in range(min(max_snacks, len(snack_options)) + 1):
        snack_sets.extend(itertools.combinations(snack_options, size))

    best: DayChoice | None = None
    best_key: tuple[int, float, float, float, int] | None = None
    combos = itertools.product(
        options[BREAKFAST], options[LUNCH], options[DINNER], snack_sets
    )
    for order, (breakfast, lunch, dinner, snacks) in enumerate(combos):
        choice = DayChoice(breakfast, lunch, dinner, snacks)
        deviation = abs(choice.calories - target_calories)
        repeats = _repeats(choice, previous)
        if deviation <= tolerance:
            key = (0, repeats, deviation, -choice.protein, order)
        else:
            key = (1, deviation, repeats, -choice.protein, order)
        if best_key is None or key < best_key:
            best, best_key = choice, key
    if best is None:
        raise PlanValidationError("No meal combination available for the day")
    return best


def _repeats(choice: DayChoice, previous: DayChoice | None) -> int:
    if previous is None:
        return 0
    pairs = (
        (choice.breakfast, previous.breakfast),
        (choice.lunch, previous.lunch),
        (choice.dinner, previous.dinner),
    )
    return sum(1 for current, before in pairs if current.id == before.id)


def target_calories_for(profile: UserProfile, default: int = 2000) -> int:
    """Return the stored target, a derived one, or the default."""
    if profile.daily_calorie_target:
        return profile.daily_calorie_target
    derived = calculate_daily_calorie_target(
        weight=profile.current_weight,
        height=profile.height,
        age=profile.age,
        gender=profile.gender,
        activity_level=profile.activity_level,
        health_goal=profile.health_goal,
    )
    return derived or default


def validate_request(start_date: date, duration: int, today: date) -> None:
    """Check duration and start date before any catalog work."""
    if duration not in ALLOWED_DURATIONS:
        allowed = ", ".join(str(value) for value in ALLOWED_DURATIONS)
        raise PlanValidationError(f"duration must be one of {allowed} days")
    if start_date < today:
        raise PlanValidationError("startDate cannot be in the past")


@dataclass
class MealPlanGenerator:
    """Builds (but does not persist) multi-day meal plans."""

    selection_service: MealSelectionService
    default_daily_calories: int = 2000
    weekly_options: int = MIN_WEEKLY_OPTIONS
    max_snacks_per_day: int = 2
    tolerance_floor: float = 150.0
    tolerance_ratio: float = 0.05

    def generate(  # noqa: PLR0913
        self,
        profile: UserProfile,
        start_date: date,
        duration: int,
        today: date,
        *,
        seed: int | None = None,
        name: str | None = None,
        status: str = ACTIVE,
    ) -> MealPlan:
        """Assemble a plan of ``duration`` consecutive days from ``start_date``."""
        validate_request(start_date, duration, today)
        missing = profile.missing_fields()
        if missing:
            raise ProfileIncompleteError(missing)

        pools = self.selection_service.select_pools(profile, MEAL_TYPES)
        target = target_calories_for(profile, self.default_daily_calories)
        tolerance = calorie_tolerance(target, self.tolerance_floor, self.tolerance_ratio)
        rng = random.Random(seed)

        days: list[PlanDay] = []
        options: dict[str, list[Meal]] = {}
        previous: DayChoice | None = None
        for index in range(duration):
            if index % DAYS_PER_WEEK == 0:
                options = {
                    meal_type: pick_options(pools[meal_type], rng, self.weekly_options)
                    for meal_type in MEAL_TYPES
                }
            choice = choose_day(
                options, target, tolerance, self.max_snacks_per_day, previous
            )
            days.append(
                PlanDay(
                    date=start_date + timedelta(days=index),
                    week_number=index // DAYS_PER_WEEK + 1,
                    meals=DayMeals(
                        breakfast=MealEntry(meal_id=choice.breakfast.id),
                        lunch=MealEntry(meal_id=choice.lunch.id),
                        dinner=MealEntry(meal_id=choice.dinner.id),
                        snacks=tuple(MealEntry(meal_id=meal.id) for meal in choice.snacks),
                    ),
                )
            )
            previous = choice

        now = datetime.now(tz=UTC)
        _logger.info(
            "Generated %s-day plan for user %s (target %s kcal)",
            duration,
            profile.id,
            target,
        )
        return MealPlan(
            id=uuid4(),
            user_id=profile.id,
            name=name or f"Meal Plan - {start_date.isoformat()}",
            start_date=start_date,
            end_date=start_date + timedelta(days=duration - 1),
            duration=duration,
            status=status,
            target_nutrition=calculate_target_nutrition(target),
            days=tuple(days),
            adherence=recompute_adherence(days),
            generated_by="auto",
            created_at=now,
            updated_at=now,
        )
