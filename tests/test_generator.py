"""Tests for meal plan generation."""

from dataclasses import replace
from datetime import timedelta

import pytest

from dietly.domain.errors import (
    InsufficientMealsError,
    PlanValidationError,
    ProfileIncompleteError,
)
from dietly.domain.meal_plans import ACTIVE, DRAFT, PlanDay
from dietly.domain.models import UserProfile
from dietly.services.generator import (
    MealPlanGenerator,
    calorie_tolerance,
    choose_day,
    target_calories_for,
)
from dietly.services.selection import MealSelectionService
from tests.conftest import (
    TODAY,
    USER_ID,
    InMemoryMealRepository,
    complete_profile,
    make_meal,
)


def _day_calories(day: PlanDay, repository: InMemoryMealRepository) -> float:
    return sum(
        repository.meals[entry.meal_id].nutrition.calories
        for entry in day.meals.entries()
    )


def _mains(day: PlanDay) -> tuple[object, ...]:
    return (
        day.meals.breakfast.meal_id,
        day.meals.lunch.meal_id,
        day.meals.dinner.meal_id,
    )


@pytest.mark.parametrize("duration", [3, 7, 14, 21, 30])
def test_generate_builds_consecutive_days(
    generator: MealPlanGenerator, duration: int
) -> None:
    plan = generator.generate(complete_profile(), TODAY, duration, TODAY, seed=1)

    assert plan.status == ACTIVE
    assert plan.generated_by == "auto"
    assert plan.duration == duration
    assert len(plan.days) == duration
    assert plan.end_date == TODAY + timedelta(days=duration - 1)
    assert [day.date for day in plan.days] == [
        TODAY + timedelta(days=offset) for offset in range(duration)
    ]
    assert plan.days[-1].week_number == (duration - 1) // 7 + 1
    assert plan.name == f"Meal Plan - {TODAY.isoformat()}"
    assert plan.target_nutrition.daily_calories == 2000
    assert plan.adherence.consumed_meals == 0
    assert plan.adherence.total_meals == sum(len(d.meals.entries()) for d in plan.days)
    for day in plan.days:
        assert day.meals.breakfast is not None
        assert day.meals.lunch is not None
        assert day.meals.dinner is not None
        assert len(day.meals.snacks) <= 2


def test_generated_days_stay_inside_calorie_band(
    generator: MealPlanGenerator, meal_repository: InMemoryMealRepository
) -> None:
    plan = generator.generate(complete_profile(), TODAY, 14, TODAY, seed=3)

    for day in plan.days:
        assert abs(_day_calories(day, meal_repository) - 2000) <= 150


def test_consecutive_days_do_not_repeat_the_same_mains(
    generator: MealPlanGenerator,
) -> None:
    plan = generator.generate(complete_profile(), TODAY, 7, TODAY, seed=5)

    for previous, current in zip(plan.days, plan.days[1:], strict=False):
        assert _mains(previous) != _mains(current)


def test_week_numbers_follow_day_index(generator: MealPlanGenerator) -> None:
    plan = generator.generate(complete_profile(), TODAY, 14, TODAY, seed=9)

    assert [day.week_number for day in plan.days] == [1] * 7 + [2] * 7


def test_same_seed_gives_same_plan(generator: MealPlanGenerator) -> None:
    profile = complete_profile()

    first = generator.generate(profile, TODAY, 7, TODAY, seed=11)
    second = generator.generate(profile, TODAY, 7, TODAY, seed=11)

    assert [day.meals for day in first.days] == [day.meals for day in second.days]


def test_allergens_never_appear_in_a_plan(
    meal_repository: InMemoryMealRepository,
) -> None:
    almonds = meal_repository.by_name("Almonds")
    meal_repository.meals[almonds.id] = replace(almonds, allergens=frozenset({"nuts"}))
    generator = MealPlanGenerator(MealSelectionService(meal_repository))
    nut_id = almonds.id
    profile = complete_profile(allergies=frozenset({"nuts"}))

    plan = generator.generate(profile, TODAY, 7, TODAY, seed=2)

    used = {entry.meal_id for day in plan.days for entry in day.meals.entries()}
    assert nut_id not in used


def test_generate_can_build_drafts(generator: MealPlanGenerator) -> None:
    plan = generator.generate(
        complete_profile(), TODAY, 3, TODAY, seed=1, name="Spring", status=DRAFT
    )

    assert plan.status == DRAFT
    assert plan.name == "Spring"


@pytest.mark.parametrize("duration", [0, 5, 31])
def test_rejects_unsupported_durations(
    generator: MealPlanGenerator, duration: int
) -> None:
    with pytest.raises(PlanValidationError):
        generator.generate(complete_profile(), TODAY, duration, TODAY)


def test_rejects_start_dates_in_the_past(generator: MealPlanGenerator) -> None:
    with pytest.raises(PlanValidationError, match="past"):
        generator.generate(complete_profile(), TODAY - timedelta(days=1), 7, TODAY)


def test_incomplete_profile_lists_missing_fields(generator: MealPlanGenerator) -> None:
    profile = UserProfile(id=USER_ID, name="New", email="new@example.com", age=30)

    with pytest.raises(ProfileIncompleteError) as excinfo:
        generator.generate(profile, TODAY, 7, TODAY)

    assert "gender" in excinfo.value.missing_fields
    assert "age" not in excinfo.value.missing_fields
    assert excinfo.value.details == {"missingFields": excinfo.value.missing_fields}


def test_missing_snacks_fail_generation(
    generator: MealPlanGenerator, meal_repository: InMemoryMealRepository
) -> None:
    for meal in meal_repository.list_meals(meal_type="snack"):
        meal_repository.set_active(meal.id, False)

    with pytest.raises(InsufficientMealsError) as excinfo:
        generator.generate(complete_profile(), TODAY, 7, TODAY)

    assert excinfo.value.missing_meal_types == ["snack"]


def test_choose_day_prefers_protein_on_ties() -> None:
    lean = make_meal("Lean", "breakfast", 400, 10)
    rich = make_meal("Rich", "breakfast", 400, 30)
    lunch = make_meal("Lunch", "lunch", 700, 20)
    dinner = make_meal("Dinner", "dinner", 900, 20)
    options = {"breakfast": [lean, rich], "lunch": [lunch], "dinner": [dinner], "snack": []}

    first = choose_day(options, 2000, 150)
    second = choose_day(options, 2000, 150, previous=first)

    assert first.breakfast == rich
    assert second.breakfast == lean


def test_choose_day_falls_back_to_closest_combination() -> None:
    options = {
        "breakfast": [make_meal("Small", "breakfast", 200)],
        "lunch": [make_meal("Small", "lunch", 200)],
        "dinner": [
            make_meal("Small", "dinner", 200),
            make_meal("Large", "dinner", 500),
        ],
        "snack": [make_meal("Bite", "snack", 50)],
    }

    choice = choose_day(options, 2000, 150)

    assert choice.calories == 950


def test_choose_day_keeps_closest_fit_over_variety() -> None:
    big = make_meal("Big", "breakfast", 500)
    tiny = make_meal("Tiny", "breakfast", 100)
    options = {
        "breakfast": [big, tiny],
        "lunch": [make_meal("Stew", "lunch", 500)],
        "dinner": [make_meal("Roast", "dinner", 500)],
        "snack": [make_meal("Apple", "snack", 100)],
    }

    first = choose_day(options, 2000, 150)
    second = choose_day(options, 2000, 150, previous=first)

    assert first.calories == 1600
    assert second.breakfast == big
    assert second.calories == 1600


def test_choose_day_without_options_fails() -> None:
    options = {"breakfast": [], "lunch": [], "dinner": [], "snack": []}

    with pytest.raises(PlanValidationError):
        choose_day(options, 2000, 150)


def test_calorie_tolerance_floor_and_ratio() -> None:
    assert calorie_tolerance(2000) == 150
    assert calorie_tolerance(4000) == 200


def test_target_calories_fallbacks() -> None:
    assert target_calories_for(complete_profile(daily_calorie_target=1800)) == 1800
    derived = complete_profile(daily_calorie_target=None)
    assert target_calories_for(derived) == 2124
    bare = UserProfile(id=USER_ID, name="x", email="x@example.com")
    assert target_calories_for(bare, default=2100) == 2100

