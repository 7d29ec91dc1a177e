"""Candidate meal selection for plan slots."""

import logging
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from dietly.domain.errors import InsufficientMealsError
from dietly.domain.meals import MEAL_TYPES, Meal
from dietly.domain.models import UserProfile
from dietly.services.catalog import MealRepository

MIN_WEEKLY_OPTIONS = 3

_logger = logging.getLogger(__name__)


def filter_candidates(
    meals: Iterable[Meal],
    profile: UserProfile,
    min_options: int = MIN_WEEKLY_OPTIONS,
) -> list[Meal]:
    """Return the candidate pool for one meal type.

    Allergens are a hard exclusion. Dietary preferences only narrow the pool
    when at least ``min_options`` preferred meals remain.
    """
    allergies = {item.lower() for item in profile.allergies}
    safe = [
        meal
        for meal in meals
        if meal.is_active and not (meal.all_allergens() & allergies)
    ]
    preferences = {item.lower() for item in profile.dietary_preferences}
    if not preferences:
        return safe
    preferred = [
        meal
        for meal in safe
        if {tag.lower() for tag in meal.dietary_tags} & preferences
    ]
    if len(preferred) >= min_options:
        return preferred
    return safe


def suggestion_for(profile: UserProfile, missing_meal_types: Sequence[str]) -> str:
    """Human-readable advice for an empty candidate pool."""
    kinds = " and ".join(missing_meal_types)
    if profile.allergies or profile.dietary_preferences:
        return (
            "Try relaxing your dietary preferences or allergy settings, "
            f"or ask an administrator to add more {kinds} meals."
        )
    return f"Ask an administrator to add more {kinds} meals to the catalog."


def pick_options(pool: Sequence[Meal], rng: random.Random, count: int) -> list[Meal]:
    """Sample up to ``count`` distinct meals in a reproducible order."""
    ordered = sorted(pool, key=lambda meal: (meal.name.lower(), str(meal.id)))
    return rng.sample(ordered, min(count, len(ordered)))


@dataclass
class MealSelectionService:
    """Builds allergy-safe candidate pools from the meal catalog."""

    repository: MealRepository
    min_options: int = MIN_WEEKLY_OPTIONS

    def select_candidates(self, profile: UserProfile, meal_type: str) -> list[Meal]:
        """Return eligible meals of one type, failing when none exist."""
        pools = self._pools(profile, MEAL_TYPES)
        pool = pools.get(meal_type, [])
        if not pool:
            counts = {name: len(candidates) for name, candidates in pools.items()}
            counts.setdefault(meal_type, 0)
            raise InsufficientMealsError(
                missing_meal_types=[meal_type],
                available_counts=counts,
                suggestion=suggestion_for(profile, [meal_type]),
            )
        return pool

    def select_pools(
        self, profile: UserProfile, meal_types: Sequence[str] = MEAL_TYPES
    ) -> dict[str, list[Meal]]:
        """Return a candidate pool for every meal type.

        Reports every empty meal type at once so the caller can show the
        complete picture.
        """
        pools = self._pools(profile, meal_types)
        counts = {meal_type: len(pool) for meal_type, pool in pools.items()}
        missing = [meal_type for meal_type in meal_types if not pools[meal_type]]
        if missing:
            _logger.info(
                "Insufficient meals for user %s: missing=%s counts=%s",
                profile.id,
                missing,
                counts,
            )
            raise InsufficientMealsError(
                missing_meal_types=missing,
                available_counts=counts,
                suggestion=suggestion_for(profile, missing),
            )
        return pools

    def _pools(
        self, profile: UserProfile, meal_types: Sequence[str]
    ) -> dict[str, list[Meal]]:
        catalog = self.repository.list_meals()
        return {
            meal_type: filter_candidates(
                (meal for meal in catalog if meal.meal_type == meal_type),
                profile,
                self.min_options,
            )
            for meal_type in meal_types
        }
