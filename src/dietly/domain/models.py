"""Domain models for users and their profiles."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar
from uuid import UUID

T = TypeVar("T")

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = frozenset({ROLE_USER, ROLE_ADMIN})

GENDERS = frozenset({"male", "female", "other"})
HEALTH_GOALS = frozenset({"lose", "maintain", "gain"})
ACTIVITY_LEVELS = frozenset({"sedentary", "light", "moderate", "active", "very_active"})

# Fields a profile must carry before a meal plan can be generated.
REQUIRED_PROFILE_FIELDS = (
    "age",
    "gender",
    "height",
    "current_weight",
    "target_weight",
    "health_goal",
    "activity_level",
)


@dataclass(frozen=True)
class UserProfile:
    """A user account together with diet preferences and targets."""

    id: UUID
    name: str
    email: str
    role: str = ROLE_USER
    age: int | None = None
    gender: str | None = None
    height: float | None = None
    current_weight: float | None = None
    target_weight: float | None = None
    health_goal: str | None = "maintain"
    activity_level: str | None = "moderate"
    daily_calorie_target: int | None = None
    dietary_preferences: frozenset[str] = field(default_factory=frozenset)
    allergies: frozenset[str] = field(default_factory=frozenset)
    timezone: str | None = None
    created_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        """Return True for back-office users."""
        return self.role == ROLE_ADMIN

    def missing_fields(self) -> list[str]:
        """Return the required profile fields that are unset or blank."""
        return [
            name
            for name in REQUIRED_PROFILE_FIELDS
            if _is_blank(getattr(self, name))
        ]

    def is_complete(self) -> bool:
        """Return True when every required profile field is filled in."""
        return not self.missing_fields()


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float):
        return math.isnan(value)
    return False


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a listing."""

    items: list[T]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        """Total number of pages."""
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)


def paginate(items: list[T], page: int, limit: int) -> Page[T]:
    """Slice an in-memory listing into a page."""
    page = max(page, 1)
    limit = max(limit, 1)
    start = (page - 1) * limit
    return Page(
        items=items[start : start + limit], page=page, limit=limit, total=len(items)
    )
