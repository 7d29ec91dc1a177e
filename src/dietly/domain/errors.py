"""Error taxonomy surfaced to API callers.

Every failure path in the services raises one of these so the client can tell
"fix your profile" from "fix the catalog" from "try again later". The API layer
renders them as ``{"success": false, "message": ..., "details": ...}``.
"""

from uuid import UUID


class DietlyError(Exception):
    """Base class for domain failures with an HTTP status."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def details(self) -> dict[str, object] | None:
        """Structured details for the client, if any."""
        return None


class ProfileIncompleteError(DietlyError):
    """The user has not filled in the fields needed to generate a plan."""

    def __init__(self, missing_fields: list[str]) -> None:
        super().__init__(
            "Please complete your profile before generating a meal plan. "
            f"Missing: {', '.join(missing_fields)}"
        )
        self.missing_fields = missing_fields

    @property
    def details(self) -> dict[str, object]:
        return {"missingFields": list(self.missing_fields)}


class InsufficientMealsError(DietlyError):
    """The catalog cannot supply a meal for every required meal type."""

    status_code = 422

    def __init__(
        self,
        missing_meal_types: list[str],
        available_counts: dict[str, int],
        suggestion: str,
    ) -> None:
        super().__init__(
            "Not enough meals available to build a meal plan: no "
            f"{', '.join(missing_meal_types)} meals match your profile."
        )
        self.missing_meal_types = missing_meal_types
        self.available_counts = available_counts
        self.suggestion = suggestion

    @property
    def details(self) -> dict[str, object]:
        return {
            "missingMealTypes": list(self.missing_meal_types),
            "availableCounts": dict(self.available_counts),
            "suggestion": self.suggestion,
        }


class ActivePlanExistsError(DietlyError):
    """The user already follows an active plan."""

    status_code = 409

    def __init__(self) -> None:
        super().__init__(
            "You already have an active meal plan. "
            "Please complete or stop it before starting a new one."
        )


class PlanValidationError(DietlyError):
    """A plan request carries invalid parameters."""


class PlanNotFoundError(DietlyError):
    """No plan with the given id belongs to the caller."""

    status_code = 404

    def __init__(self, plan_id: UUID | None = None) -> None:
        super().__init__("Meal plan not found")
        self.plan_id = plan_id


class DayNotFoundError(DietlyError):
    """The requested date is not part of the plan."""

    status_code = 404

    def __init__(self) -> None:
        super().__init__("No meals scheduled for the requested date")


class InvalidSlotError(DietlyError):
    """The addressed meal slot does not exist on the day."""


class PlanNotActiveError(DietlyError):
    """The action requires an active plan."""

    status_code = 409

    def __init__(self, status: str) -> None:
        super().__init__(f"Meal plan is {status} and cannot be updated")
        self.status = status


class InvalidTransitionError(DietlyError):
    """A lifecycle transition is not permitted from the current status."""

    status_code = 409

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move a meal plan from {current} to {target}")
        self.current = current
        self.target = target


class PlanConflictError(DietlyError):
    """A concurrent update changed the plan first."""

    status_code = 409

    def __init__(self) -> None:
        super().__init__("Meal plan was modified concurrently, please retry")


class MealNotFoundError(DietlyError):
    """No active catalog meal with the given id."""

    status_code = 404

    def __init__(self) -> None:
        super().__init__("Meal not found")


class MealValidationError(DietlyError):
    """A catalog meal payload is invalid."""


class UserNotFoundError(DietlyError):
    """No profile with the given id."""

    status_code = 404

    def __init__(self) -> None:
        super().__init__("User not found")


class UserValidationError(DietlyError):
    """A profile or role change is invalid."""


class ProgressValidationError(DietlyError):
    """A progress entry is invalid."""


class ProgressNotFoundError(DietlyError):
    """No progress entry matched the request."""

    status_code = 404

    def __init__(self) -> None:
        super().__init__("Progress entry not found")


class RecommendationNotFoundError(DietlyError):
    """No recommendation with the given id belongs to the caller."""

    status_code = 404

    def __init__(self) -> None:
        super().__init__("Recommendation not found")


class RecommendationValidationError(DietlyError):
    """A recommendation update or filter is invalid."""


class PersistenceError(DietlyError):
    """The storage layer failed; not retried inside the core."""

    status_code = 500
