"""Pydantic models for API request bodies."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Request body accepting camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeneratePlanRequest(ApiModel):
    """Body of POST /meal-plans/generate."""

    start_date: date
    duration: int
    name: str | None = Field(default=None, max_length=100)
    seed: int | None = None
    activate: bool = True


class ManualDayRequest(ApiModel):
    """Meal ids for one day of a hand-built plan."""

    breakfast: UUID | None = None
    lunch: UUID | None = None
    dinner: UUID | None = None
    snacks: list[UUID] = Field(default_factory=list)
    notes: str | None = Field(default=None, max_length=500)


class ManualPlanRequest(ApiModel):
    """Body of POST /meal-plans."""

    name: str = Field(min_length=1, max_length=100)
    start_date: date
    days: list[ManualDayRequest]


class ConsumeRequest(ApiModel):
    """Body of PUT /meal-plans/{id}/consume.

    ``date`` may be a calendar date or a datetime; only the date part is used.
    """

    on_date: datetime | date = Field(alias="date")
    meal_type: str
    snack_index: int | None = None
    consumed: bool | None = None

    @property
    def calendar_date(self) -> date:
        """The addressed calendar day."""
        if isinstance(self.on_date, datetime):
            return self.on_date.date()
        return self.on_date


class ProfileUpdateRequest(ApiModel):
    """Body of PUT /users/profile/update."""

    name: str | None = Field(default=None, max_length=50)
    age: int | None = Field(default=None, ge=10, le=120)
    gender: str | None = None
    height: float | None = Field(default=None, gt=0, le=300)
    current_weight: float | None = Field(default=None, ge=20, le=500)
    target_weight: float | None = Field(default=None, ge=20, le=500)
    health_goal: str | None = None
    activity_level: str | None = None
    dietary_preferences: list[str] | None = None
    allergies: list[str] | None = None
    timezone: str | None = None


class ProgressRequest(ApiModel):
    """Body of POST /progress."""

    entry_date: date | None = Field(default=None, alias="date")
    weight: float
    energy_level: int | None = None
    activity_minutes: int | None = None
    water_intake: float | None = None
    sleep_hours: float | None = None
    mood: str | None = None
    notes: str | None = None


class NutritionRequest(ApiModel):
    """Nutrition facts of a catalog meal."""

    calories: float
    protein: float = 0.0
    carbohydrates: float = 0.0
    fats: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0


class IngredientRequest(ApiModel):
    """One ingredient line."""

    name: str
    amount: float = 0.0
    unit: str
    allergens: list[str] = Field(default_factory=list)


class MealRequest(ApiModel):
    """Body of POST /admin/meals."""

    name: str
    meal_type: str
    description: str | None = None
    servings: int = 1
    difficulty: str = "medium"
    nutrition: NutritionRequest
    ingredients: list[IngredientRequest]
    instructions: list[str] = Field(default_factory=list)
    dietary_tags: list[str] = Field(default_factory=list)
    allergens: list[str] = Field(default_factory=list)
    prep_time: int | None = None
    cook_time: int | None = None
    image_url: str | None = None
    source: str = "admin"


class MealUpdateRequest(ApiModel):
    """Body of PUT /admin/meals/{id}; omitted fields keep their value."""

    name: str | None = None
    meal_type: str | None = None
    description: str | None = None
    servings: int | None = None
    difficulty: str | None = None
    nutrition: NutritionRequest | None = None
    ingredients: list[IngredientRequest] | None = None
    instructions: list[str] | None = None
    dietary_tags: list[str] | None = None
    allergens: list[str] | None = None
    prep_time: int | None = None
    cook_time: int | None = None
    image_url: str | None = None
    source: str | None = None


class RoleRequest(ApiModel):
    """Body of PUT /admin/users/{id}/role."""

    role: str
