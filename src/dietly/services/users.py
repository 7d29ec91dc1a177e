"""User profile business logic."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dietly.domain.errors import (
    ProfileIncompleteError,
    UserNotFoundError,
    UserValidationError,
)
from dietly.domain.meal_plans import TargetNutrition
from dietly.domain.models import (
    ACTIVITY_LEVELS,
    GENDERS,
    HEALTH_GOALS,
    ROLES,
    Page,
    UserProfile,
    paginate,
)
from dietly.services.audit import AuditService
from dietly.services.calories import (
    bmi_category,
    calculate_bmi,
    calculate_bmr,
    calculate_daily_calorie_target,
    calculate_tdee,
)
from dietly.services.nutrition import calculate_target_nutrition

PROFILE_FIELDS = (
    "name",
    "age",
    "gender",
    "height",
    "current_weight",
    "target_weight",
    "health_goal",
    "activity_level",
    "dietary_preferences",
    "allergies",
    "timezone",
)

# Changing any of these recomputes the stored calorie target.
_TARGET_INPUTS = frozenset(
    {"current_weight", "height", "age", "gender", "activity_level", "health_goal"}
)

_logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile for a user id, if present."""

    def create_profile(self, user_id: UUID, email: str, name: str) -> UserProfile:
        """Create and return a default profile."""

    def update_profile(self, user_id: UUID, changes: dict[str, object]) -> UserProfile:
        """Apply changes to a profile and return it."""

    def list_profiles(self) -> list[UserProfile]:
        """Return every profile."""

    def delete_profile(self, user_id: UUID) -> None:
        """Remove a profile and everything it owns."""


@dataclass(frozen=True)
class NutritionNeeds:
    """Calorie and macro needs derived from a profile."""

    bmr: float
    tdee: float
    daily_calories: int
    macros: TargetNutrition
    bmi: float | None
    bmi_category: str


@dataclass
class UserService:
    """Application service for profiles and account administration."""

    repository: UserRepository
    audit_service: AuditService | None = None

    def ensure_profile(self, user_id: UUID, email: str, name: str) -> UserProfile:
        """Return the profile for an authenticated user, creating it on first use."""
        existing = self.repository.get_profile(user_id)
        if existing:
            return existing
        created = self.repository.create_profile(user_id, email=email, name=name)
        _logger.info("Created profile for user %s", user_id)
        return created

    def get_profile(self, user_id: UUID) -> UserProfile:
        """Return a profile or raise UserNotFoundError."""
        profile = self.repository.get_profile(user_id)
        if profile is None:
            raise UserNotFoundError
        return profile

    def update_profile(self, user_id: UUID, changes: dict[str, object]) -> UserProfile:
        """Apply allowed profile changes, recomputing the calorie target."""
        current = self.get_profile(user_id)
        updates = {
            key: value
            for key, value in changes.items()
            if key in PROFILE_FIELDS and value is not None
        }
        _validate_profile_changes(updates)
        for key in ("dietary_preferences", "allergies"):
            if key in updates:
                updates[key] = sorted(
                    {str(item).strip().lower() for item in updates[key] if str(item).strip()}
                )

        if _TARGET_INPUTS & updates.keys():
            merged = {name: getattr(current, name) for name in _TARGET_INPUTS}
            merged.update({k: v for k, v in updates.items() if k in _TARGET_INPUTS})
            target = calculate_daily_calorie_target(
                weight=merged["current_weight"],
                height=merged["height"],
                age=merged["age"],
                gender=merged["gender"],
                activity_level=merged["activity_level"],
                health_goal=merged["health_goal"],
            )
            if target:
                updates["daily_calorie_target"] = target

        if not updates:
            return current
        return self.repository.update_profile(user_id, updates)

    def nutrition_needs(self, profile: UserProfile) -> NutritionNeeds:
        """Return BMR, TDEE, target calories and macro split for a profile."""
        required = {
            "current_weight": profile.current_weight,
            "height": profile.height,
            "age": profile.age,
            "gender": profile.gender,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ProfileIncompleteError(missing)
        bmr = calculate_bmr(
            profile.current_weight, profile.height, profile.age, profile.gender
        )
        tdee = calculate_tdee(bmr, profile.activity_level)
        daily = profile.daily_calorie_target or calculate_daily_calorie_target(
            weight=profile.current_weight,
            height=profile.height,
            age=profile.age,
            gender=profile.gender,
            activity_level=profile.activity_level,
            health_goal=profile.health_goal,
        )
        bmi = calculate_bmi(profile.current_weight, profile.height)
        return NutritionNeeds(
            bmr=bmr,
            tdee=tdee,
            daily_calories=daily,
            macros=calculate_target_nutrition(daily),
            bmi=bmi,
            bmi_category=bmi_category(bmi),
        )

    def list_users(
        self,
        role: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[UserProfile]:
        """Back-office user listing, newest first."""
        profiles = self.repository.list_profiles()
        if role:
            profiles = [profile for profile in profiles if profile.role == role]
        if search:
            needle = search.lower()
            profiles = [
                profile
                for profile in profiles
                if needle in profile.name.lower() or needle in profile.email.lower()
            ]
        return paginate(profiles, page, limit)

    def set_role(self, actor_id: UUID, user_id: UUID, role: str) -> UserProfile:
        """Change a user's role."""
        if role not in ROLES:
            raise UserValidationError("role must be user or admin")
        if actor_id == user_id:
            raise UserValidationError("You cannot change your own role")
        current = self.get_profile(user_id)
        updated = self.repository.update_profile(user_id, {"role": role})
        self._audit(actor_id, user_id, "role_changed", {"role": current.role}, {"role": role})
        return updated

    def delete_user(self, actor_id: UUID, user_id: UUID) -> None:
        """Remove a user account."""
        if actor_id == user_id:
            raise UserValidationError("You cannot delete your own account")
        current = self.get_profile(user_id)
        self.repository.delete_profile(user_id)
        _logger.info("User %s deleted by %s", user_id, actor_id)
        self._audit(actor_id, user_id, "deleted", {"email": current.email}, None)

    def _audit(
        self,
        actor_id: UUID,
        user_id: UUID,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        if self.audit_service is None:
            return
        self.audit_service.record_event(
            actor_id=actor_id,
            entity_type="user",
            entity_id=user_id,
            event_type=event_type,
            before=before,
            after=after,
        )


def _validate_profile_changes(updates: dict[str, object]) -> None:
    if "name" in updates and not str(updates["name"]).strip():
        raise UserValidationError("Please add a name")
    if "gender" in updates and updates["gender"] not in GENDERS:
        raise UserValidationError("gender must be male, female or other")
    if "health_goal" in updates and updates["health_goal"] not in HEALTH_GOALS:
        raise UserValidationError("healthGoal must be lose, maintain or gain")
    if "activity_level" in updates and updates["activity_level"] not in ACTIVITY_LEVELS:
        raise UserValidationError(
            f"activityLevel must be one of: {', '.join(sorted(ACTIVITY_LEVELS))}"
        )
    if "timezone" in updates:
        try:
            ZoneInfo(str(updates["timezone"]))
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise UserValidationError(
                f"Unknown timezone: {updates['timezone']}"
            ) from exc
