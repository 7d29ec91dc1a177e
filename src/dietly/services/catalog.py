"""Meal catalog browsing and back-office management."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from dietly.domain.errors import MealNotFoundError, MealValidationError
from dietly.domain.meals import (
    DIFFICULTIES,
    INGREDIENT_UNITS,
    MEAL_SOURCES,
    MEAL_TYPES,
    Meal,
)
from dietly.domain.models import Page, paginate
from dietly.services.audit import AuditService

_NUTRITION_FIELDS = (
    "calories",
    "protein",
    "carbohydrates",
    "fats",
    "fiber",
    "sugar",
    "sodium",
)

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for catalog meals."""

    def list_meals(
        self, meal_type: str | None = None, include_inactive: bool = False
    ) -> list[Meal]:
        """Return meals, optionally of one type, active only by default."""

    def get_meal(self, meal_id: UUID) -> Meal | None:
        """Return a meal by id regardless of its active flag."""

    def get_meals(self, meal_ids: Iterable[UUID]) -> list[Meal]:
        """Return the meals with the given ids."""

    def create_meal(
        self, payload: dict[str, object], created_by: UUID | None
    ) -> Meal:
        """Create a meal and return it."""

    def update_meal(self, meal_id: UUID, payload: dict[str, object]) -> Meal:
        """Replace a meal's fields and return it."""

    def set_active(self, meal_id: UUID, is_active: bool) -> Meal:
        """Toggle the soft-delete flag."""


@dataclass(frozen=True)
class MealFilters:
    """Catalog browsing filters."""

    meal_type: str | None = None
    dietary_tags: frozenset[str] = field(default_factory=frozenset)
    exclude_allergens: frozenset[str] = field(default_factory=frozenset)
    difficulty: str | None = None
    min_calories: float | None = None
    max_calories: float | None = None
    min_protein: float | None = None
    search: str | None = None

    def matches(self, meal: Meal) -> bool:  # noqa: PLR0911
        """Return True when the meal passes every filter."""
        if self.meal_type and meal.meal_type != self.meal_type:
            return False
        if self.difficulty and meal.difficulty != self.difficulty:
            return False
        if self.dietary_tags and not (self.dietary_tags & meal.dietary_tags):
            return False
        if self.exclude_allergens and (self.exclude_allergens & meal.all_allergens()):
            return False
        calories = meal.nutrition.calories
        if self.min_calories is not None and calories < self.min_calories:
            return False
        if self.max_calories is not None and calories > self.max_calories:
            return False
        if self.min_protein is not None and meal.nutrition.protein < self.min_protein:
            return False
        if self.search:
            needle = self.search.lower()
            haystack = f"{meal.name} {meal.description or ''}".lower()
            if needle not in haystack:
                return False
        return True


@dataclass
class MealCatalogService:
    """Application service for the meal library."""

    repository: MealRepository
    audit_service: AuditService | None = None

    def browse(
        self, filters: MealFilters, page: int = 1, limit: int = 50
    ) -> Page[Meal]:
        """Return active meals passing the filters, sorted by name."""
        meals = [
            meal
            for meal in self.repository.list_meals(meal_type=filters.meal_type)
            if filters.matches(meal)
        ]
        meals.sort(key=lambda meal: meal.name.lower())
        return paginate(meals, page, limit)

    def meals_by_type(
        self,
        meal_type: str,
        exclude_allergens: Iterable[str] = (),
        dietary_tags: Iterable[str] = (),
    ) -> list[Meal]:
        """Return active meals of one type, allergy-filtered."""
        if meal_type not in MEAL_TYPES:
            raise MealValidationError(f"Unknown meal type: {meal_type}")
        filters = MealFilters(
            meal_type=meal_type,
            exclude_allergens=frozenset(exclude_allergens),
            dietary_tags=frozenset(dietary_tags),
        )
        return self.browse(filters, page=1, limit=10_000).items

    def get_meal(self, meal_id: UUID) -> Meal:
        """Return an active meal or raise MealNotFoundError."""
        meal = self.repository.get_meal(meal_id)
        if meal is None or not meal.is_active:
            raise MealNotFoundError
        return meal

    def lookup(self, meal_ids: Iterable[UUID]) -> dict[UUID, Meal]:
        """Resolve meal references, including retired meals."""
        unique = set(meal_ids)
        if not unique:
            return {}
        return {meal.id: meal for meal in self.repository.get_meals(unique)}

    def list_all(
        self, include_inactive: bool = True, page: int = 1, limit: int = 50
    ) -> Page[Meal]:
        """Back-office listing including retired meals."""
        meals = self.repository.list_meals(include_inactive=include_inactive)
        meals.sort(key=lambda meal: meal.name.lower())
        return paginate(meals, page, limit)

    def create_meal(self, actor_id: UUID, payload: dict[str, object]) -> Meal:
        """Validate and create a catalog meal."""
        cleaned = validate_meal_payload(payload)
        meal = self.repository.create_meal(cleaned, created_by=actor_id)
        _logger.info("Meal %s created by %s", meal.id, actor_id)
        self._audit(actor_id, meal.id, "created", None, cleaned)
        return meal

    def update_meal(
        self, actor_id: UUID, meal_id: UUID, changes: dict[str, object]
    ) -> Meal:
        """Merge changes into a meal, validate the result and save it."""
        current = self.repository.get_meal(meal_id)
        if current is None:
            raise MealNotFoundError
        before = meal_to_payload(current)
        merged = {**before, **{k: v for k, v in changes.items() if v is not None}}
        cleaned = validate_meal_payload(merged)
        meal = self.repository.update_meal(meal_id, cleaned)
        self._audit(actor_id, meal_id, "updated", before, cleaned)
        return meal

    def delete_meal(self, actor_id: UUID, meal_id: UUID) -> Meal:
        """Retire a meal from the catalog without removing it."""
        return self._set_active(actor_id, meal_id, is_active=False)

    def restore_meal(self, actor_id: UUID, meal_id: UUID) -> Meal:
        """Bring a retired meal back into the catalog."""
        return self._set_active(actor_id, meal_id, is_active=True)

    def _set_active(self, actor_id: UUID, meal_id: UUID, is_active: bool) -> Meal:
        current = self.repository.get_meal(meal_id)
        if current is None:
            raise MealNotFoundError
        meal = self.repository.set_active(meal_id, is_active)
        self._audit(
            actor_id,
            meal_id,
            "restored" if is_active else "deleted",
            {"is_active": current.is_active},
            {"is_active": is_active},
        )
        return meal

    def _audit(  # noqa: PLR0913
        self,
        actor_id: UUID,
        meal_id: UUID,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        if self.audit_service is None:
            return
        self.audit_service.record_event(
            actor_id=actor_id,
            entity_type="meal",
            entity_id=meal_id,
            event_type=event_type,
            before=before,
            after=after,
        )


def validate_meal_payload(payload: dict[str, object]) -> dict[str, object]:  # noqa: PLR0912
    """Normalize a meal payload, raising MealValidationError on bad input."""
    name = str(payload.get("name") or "").strip()
    if not name:
        raise MealValidationError("Please add a meal name")
    meal_type = payload.get("meal_type")
    if meal_type not in MEAL_TYPES:
        raise MealValidationError(
            f"meal_type must be one of: {', '.join(MEAL_TYPES)}"
        )
    difficulty = payload.get("difficulty") or "medium"
    if difficulty not in DIFFICULTIES:
        raise MealValidationError("difficulty must be easy, medium or hard")
    source = payload.get("source") or "manual"
    if source not in MEAL_SOURCES:
        raise MealValidationError(f"Unknown meal source: {source}")

    raw_nutrition = payload.get("nutrition")
    if not isinstance(raw_nutrition, dict) or raw_nutrition.get("calories") is None:
        raise MealValidationError("nutrition.calories is required")
    nutrition: dict[str, float] = {}
    for name_key in _NUTRITION_FIELDS:
        value = float(raw_nutrition.get(name_key) or 0.0)
        if value < 0:
            raise MealValidationError(f"nutrition.{name_key} must not be negative")
        nutrition[name_key] = value

    raw_ingredients = payload.get("ingredients") or []
    if not isinstance(raw_ingredients, list) or not raw_ingredients:
        raise MealValidationError("At least one ingredient is required")
    ingredients = []
    for item in raw_ingredients:
        if not isinstance(item, dict) or not item.get("name"):
            raise MealValidationError("Every ingredient needs a name")
        unit = item.get("unit")
        if unit not in INGREDIENT_UNITS:
            raise MealValidationError(f"Unsupported ingredient unit: {unit}")
        ingredients.append(
            {
                "name": str(item["name"]),
                "amount": float(item.get("amount") or 0.0),
                "unit": unit,
                "allergens": sorted(_lower_set(item.get("allergens"))),
            }
        )

    servings = int(payload.get("servings") or 1)
    if servings < 1:
        raise MealValidationError("servings must be at least 1")

    return {
        "name": name,
        "meal_type": meal_type,
        "description": payload.get("description"),
        "servings": servings,
        "difficulty": difficulty,
        "nutrition": nutrition,
        "ingredients": ingredients,
        "instructions": [str(step) for step in payload.get("instructions") or []],
        "dietary_tags": sorted(_lower_set(payload.get("dietary_tags"))),
        "allergens": sorted(_lower_set(payload.get("allergens"))),
        "prep_time": payload.get("prep_time"),
        "cook_time": payload.get("cook_time"),
        "image_url": payload.get("image_url"),
        "source": source,
    }


def meal_to_payload(meal: Meal) -> dict[str, object]:
    """Return the editable fields of a meal in payload form."""
    return {
        "name": meal.name,
        "meal_type": meal.meal_type,
        "description": meal.description,
        "servings": meal.servings,
        "difficulty": meal.difficulty,
        "nutrition": {
            name_key: getattr(meal.nutrition, name_key)
            for name_key in _NUTRITION_FIELDS
        },
        "ingredients": [
            {
                "name": item.name,
                "amount": item.amount,
                "unit": item.unit,
                "allergens": sorted(item.allergens),
            }
            for item in meal.ingredients
        ],
        "instructions": list(meal.instructions),
        "dietary_tags": sorted(meal.dietary_tags),
        "allergens": sorted(meal.allergens),
        "prep_time": meal.prep_time,
        "cook_time": meal.cook_time,
        "image_url": meal.image_url,
        "source": meal.source,
    }


def _lower_set(values: object) -> set[str]:
    if not values:
        return set()
    if isinstance(values, str):
        values = [values]
    return {str(value).strip().lower() for value in values if str(value).strip()}
