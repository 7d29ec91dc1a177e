"""Domain models for the meal catalog."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

BREAKFAST = "breakfast"
LUNCH = "lunch"
DINNER = "dinner"
SNACK = "snack"

MEAL_TYPES = (BREAKFAST, LUNCH, DINNER, SNACK)
MAIN_MEAL_TYPES = (BREAKFAST, LUNCH, DINNER)

INGREDIENT_UNITS = frozenset(
    {"g", "kg", "ml", "l", "cup", "tbsp", "tsp", "oz", "lb", "piece"}
)
DIFFICULTIES = frozenset({"easy", "medium", "hard"})
MEAL_SOURCES = frozenset({"spoonacular", "manual", "admin", "other"})


@dataclass(frozen=True)
class Nutrition:
    """Nutrition facts for one serving of a meal."""

    calories: float
    protein: float = 0.0
    carbohydrates: float = 0.0
    fats: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0


@dataclass(frozen=True)
class Ingredient:
    """One ingredient line of a recipe."""

    name: str
    amount: float
    unit: str
    allergens: tuple[str, ...] = ()


@dataclass(frozen=True)
class Meal:
    """A recipe in the meal catalog."""

    id: UUID
    name: str
    meal_type: str
    nutrition: Nutrition
    description: str | None = None
    servings: int = 1
    difficulty: str = "medium"
    ingredients: tuple[Ingredient, ...] = ()
    instructions: tuple[str, ...] = ()
    dietary_tags: frozenset[str] = field(default_factory=frozenset)
    allergens: frozenset[str] = field(default_factory=frozenset)
    prep_time: int | None = None
    cook_time: int | None = None
    image_url: str | None = None
    source: str = "manual"
    is_active: bool = True
    created_by: UUID | None = None
    created_at: datetime | None = None

    @property
    def total_time(self) -> int:
        """Preparation plus cooking time in minutes."""
        return (self.prep_time or 0) + (self.cook_time or 0)

    def all_allergens(self) -> frozenset[str]:
        """Return meal-level and ingredient-level allergen tags, lowercased."""
        tags = {tag.lower() for tag in self.allergens}
        for ingredient in self.ingredients:
            tags.update(tag.lower() for tag in ingredient.allergens)
        return frozenset(tags)
