"""Meal plan status transitions.

``draft -> active -> {completed, cancelled}``; completed and cancelled are
terminal and no transition may skip a state.
"""

from dataclasses import replace
from datetime import date, datetime

from dietly.domain.errors import InvalidTransitionError
from dietly.domain.meal_plans import ACTIVE, CANCELLED, COMPLETED, DRAFT, MealPlan

_TRANSITIONS: dict[str, frozenset[str]] = {
    DRAFT: frozenset({ACTIVE}),
    ACTIVE: frozenset({COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    """Return True when ``current -> target`` is a permitted move."""
    return target in _TRANSITIONS.get(current, frozenset())


def transition(plan: MealPlan, target: str, now: datetime) -> MealPlan:
    """Return the plan moved to ``target`` or raise InvalidTransitionError."""
    if not can_transition(plan.status, target):
        raise InvalidTransitionError(plan.status, target)
    stopped_at = now if target == CANCELLED else plan.stopped_at
    return replace(plan, status=target, stopped_at=stopped_at, updated_at=now)


def is_expired(plan: MealPlan, today: date) -> bool:
    """Return True for an active plan whose last day is in the past."""
    return plan.status == ACTIVE and today > plan.end_date
