"""Consumption tracking and adherence accounting."""

from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime

from dietly.domain.errors import (
    DayNotFoundError,
    InvalidSlotError,
    PlanNotActiveError,
)
from dietly.domain.meal_plans import ACTIVE, Adherence, MealEntry, MealPlan, PlanDay
from dietly.domain.meals import MEAL_TYPES, SNACK


def recompute_adherence(days: Iterable[PlanDay]) -> Adherence:
    """Count scheduled and consumed entries across the plan."""
    total = 0
    consumed = 0
    for day in days:
        for entry in day.meals.entries():
            total += 1
            if entry.consumed:
                consumed += 1
    percentage = 100.0 * consumed / total if total else 0.0
    return Adherence(
        consumed_meals=consumed,
        total_meals=total,
        adherence_percentage=percentage,
    )


def mark_consumed(  # noqa: PLR0913
    plan: MealPlan,
    on_date: date,
    meal_type: str,
    snack_index: int | None = None,
    consumed: bool | None = None,
    now: datetime | None = None,
) -> MealPlan:
    """Flip (or set) the consumed flag on one slot and refresh adherence.

    ``consumed=None`` toggles the current value. Only active plans accept
    consumption changes.
    """
    if plan.status != ACTIVE:
        raise PlanNotActiveError(plan.status)
    if meal_type not in MEAL_TYPES:
        raise InvalidSlotError(f"Invalid meal type: {meal_type}")

    position = None
    for index, day in enumerate(plan.days):
        if day.date == on_date:
            position = index
            break
    if position is None:
        raise DayNotFoundError
    day = plan.days[position]

    if meal_type == SNACK:
        snacks = list(day.meals.snacks)
        if snack_index is None or not 0 <= snack_index < len(snacks):
            raise InvalidSlotError("Invalid snack index")
        snacks[snack_index] = _flip(snacks[snack_index], consumed, now)
        meals = replace(day.meals, snacks=tuple(snacks))
    else:
        entry = getattr(day.meals, meal_type)
        if entry is None:
            raise InvalidSlotError(f"No {meal_type} is scheduled for this day")
        meals = replace(day.meals, **{meal_type: _flip(entry, consumed, now)})

    days = list(plan.days)
    days[position] = replace(day, meals=meals)
    return replace(
        plan,
        days=tuple(days),
        adherence=recompute_adherence(days),
        updated_at=now or plan.updated_at,
    )


def _flip(entry: MealEntry, consumed: bool | None, now: datetime | None) -> MealEntry:
    value = (not entry.consumed) if consumed is None else consumed
    return replace(entry, consumed=value, consumed_at=now if value else None)
