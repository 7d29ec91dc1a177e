"""Nutrition aggregation results."""

from dataclasses import dataclass
from datetime import date

from dietly.domain.meal_plans import Adherence


@dataclass(frozen=True)
class NutritionTotals:
    """Summed nutrition across a set of meal entries."""

    calories: float = 0.0
    protein: float = 0.0
    carbohydrates: float = 0.0
    fats: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0


@dataclass(frozen=True)
class DayNutrition:
    """Nutrition totals for a single plan day."""

    date: date
    totals: NutritionTotals


@dataclass(frozen=True)
class PlanNutrition:
    """Nutrition totals for a whole plan with the per-day breakdown."""

    totals: NutritionTotals
    average_calories: float
    daily: list[DayNutrition]


@dataclass(frozen=True)
class DailyStatus:
    """Consumption snapshot for one plan day."""

    date: date
    week_number: int
    planned: NutritionTotals
    consumed_calories: float
    target_calories: float
    completion_percentage: float
    adherence: Adherence
