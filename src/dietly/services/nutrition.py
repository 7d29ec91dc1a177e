"""Nutrition aggregation for plan days and whole plans.

Aggregation keeps full float precision; rounding happens only in the API
serializers so that a 30-day plan does not accumulate rounding error.
"""

from collections.abc import Iterable, Mapping
from dataclasses import fields
from uuid import UUID

from dietly.domain.meal_plans import MealEntry, MealPlan, PlanDay, TargetNutrition
from dietly.domain.meals import Meal
from dietly.domain.nutrition import DayNutrition, NutritionTotals, PlanNutrition

PROTEIN_SHARE = 0.30
CARB_SHARE = 0.45
FAT_SHARE = 0.25
KCAL_PER_GRAM_PROTEIN = 4
KCAL_PER_GRAM_CARB = 4
KCAL_PER_GRAM_FAT = 9

_FIELDS = tuple(item.name for item in fields(NutritionTotals))


def entry_nutrition(meal: Meal | None, servings: float = 1.0) -> NutritionTotals:
    """Return the nutrition a meal contributes at the given servings."""
    if meal is None:
        return NutritionTotals()
    return NutritionTotals(
        **{name: getattr(meal.nutrition, name) * servings for name in _FIELDS}
    )


def sum_totals(items: Iterable[NutritionTotals]) -> NutritionTotals:
    """Sum nutrition totals field by field."""
    sums = dict.fromkeys(_FIELDS, 0.0)
    for item in items:
        for name in _FIELDS:
            sums[name] += getattr(item, name)
    return NutritionTotals(**sums)


def aggregate_entries(
    entries: Iterable[MealEntry], meals: Mapping[UUID, Meal]
) -> NutritionTotals:
    """Sum the nutrition of meal entries, resolving meals by id."""
    return sum_totals(
        entry_nutrition(meals.get(entry.meal_id), entry.servings) for entry in entries
    )


def aggregate_day(day: PlanDay, meals: Mapping[UUID, Meal]) -> NutritionTotals:
    """Return total nutrition for every scheduled entry of a day."""
    return aggregate_entries(day.meals.entries(), meals)


def consumed_day(day: PlanDay, meals: Mapping[UUID, Meal]) -> NutritionTotals:
    """Return total nutrition for the consumed entries of a day."""
    return aggregate_entries(
        (entry for entry in day.meals.entries() if entry.consumed), meals
    )


def aggregate_plan(plan: MealPlan, meals: Mapping[UUID, Meal]) -> PlanNutrition:
    """Return plan totals, the per-day breakdown and the average daily calories."""
    daily = [
        DayNutrition(date=day.date, totals=aggregate_day(day, meals))
        for day in plan.days
    ]
    totals = sum_totals(item.totals for item in daily)
    day_count = plan.duration or len(plan.days)
    average = totals.calories / day_count if day_count else 0.0
    return PlanNutrition(totals=totals, average_calories=average, daily=daily)


def calculate_target_nutrition(daily_calories: float) -> TargetNutrition:
    """Split a calorie target into protein, carbohydrate and fat grams."""
    return TargetNutrition(
        daily_calories=daily_calories,
        protein=round(daily_calories * PROTEIN_SHARE / KCAL_PER_GRAM_PROTEIN),
        carbohydrates=round(daily_calories * CARB_SHARE / KCAL_PER_GRAM_CARB),
        fats=round(daily_calories * FAT_SHARE / KCAL_PER_GRAM_FAT),
    )


def round_totals(totals: NutritionTotals, ndigits: int = 1) -> NutritionTotals:
    """Round every field for presentation."""
    return NutritionTotals(
        **{name: round(getattr(totals, name), ndigits) for name in _FIELDS}
    )
