"""Rule-based recommendations from profile, plan adherence and progress."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from typing import Protocol
from uuid import UUID, uuid4

from dietly.domain.errors import (
    RecommendationNotFoundError,
    RecommendationValidationError,
)
from dietly.domain.meal_plans import MealPlan
from dietly.domain.models import Page, UserProfile, paginate
from dietly.domain.progress import ProgressEntry
from dietly.domain.recommendations import (
    ACTIVE,
    ARCHIVED,
    DISMISSED,
    KINDS,
    PRIORITIES,
    STATUSES,
    ActionStep,
    Recommendation,
)
from dietly.services.adherence import recompute_adherence
from dietly.services.meal_plans import MealPlanService
from dietly.services.progress import ProgressService

LOW_ADHERENCE = 70.0
VERY_LOW_ADHERENCE = 50.0
MIN_SAFE_CALORIES = 1200
SLOW_CHANGE_KG = 0.5
MAX_ACTIVE = 10

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class Advice:
    """A recommendation produced by a rule, before it is stored."""

    kind: str
    priority: str
    title: str
    description: str
    reasoning: str
    steps: tuple[str, ...]
    generated_by: str = "rule-based"
    confidence: float = 0.8


class RecommendationRepository(Protocol):
    """Persistence interface for recommendations."""

    def create_recommendation(self, recommendation: Recommendation) -> Recommendation:
        """Insert a recommendation and return it."""

    def get_recommendation(self, recommendation_id: UUID) -> Recommendation | None:
        """Return a recommendation by id."""

    def list_recommendations(self, user_id: UUID) -> list[Recommendation]:
        """Return a user's recommendations, newest first."""

    def update_recommendation(self, recommendation: Recommendation) -> Recommendation:
        """Save a recommendation and return it."""

    def delete_recommendation(self, recommendation_id: UUID) -> None:
        """Remove a recommendation."""


def weight_progress_advice(
    profile: UserProfile, recent: Sequence[ProgressEntry]
) -> Advice | None:
    """Compare the two latest weigh-ins against the weight goal."""
    if not profile.target_weight or not profile.current_weight or len(recent) < 2:
        return None
    latest, previous = recent[0].weight, recent[1].weight
    remaining = profile.current_weight - profile.target_weight
    if profile.health_goal == "lose" and remaining > 0:
        lost = previous - latest
        if 0 < lost < SLOW_CHANGE_KG:
            return Advice(
                kind="progress",
                priority="high",
                title="Weight Loss Progress",
                description=(
                    "You're making progress! Consider increasing your activity "
                    "level or adjusting your calorie intake slightly."
                ),
                reasoning=(
                    f"You've lost {lost:.1f}kg since your previous entry, but "
                    "progress is slow. Small adjustments can help."
                ),
                steps=(
                    "Increase daily activity by 15-20 minutes",
                    "Review your meal plan adherence",
                    "Consider consulting with a nutritionist",
                ),
                confidence=0.75,
            )
        if lost <= 0:
            return Advice(
                kind="progress",
                priority="critical",
                title="Weight Loss Stalled",
                description=(
                    "Your weight loss has stalled. It's time to reassess your approach."
                ),
                reasoning=(
                    "No weight loss since your previous entry. This could be a "
                    "plateau, inaccurate tracking or a plan that needs adjusting."
                ),
                steps=(
                    "Verify you're tracking all meals accurately",
                    "Consider recalculating your calorie needs",
                    "Review and adjust your meal plan",
                ),
                confidence=0.85,
            )
    if profile.health_goal == "gain" and remaining < 0:
        gained = latest - previous
        if 0 < gained < SLOW_CHANGE_KG:
            return Advice(
                kind="progress",
                priority="high",
                title="Weight Gain Progress",
                description=(
                    "You're gaining weight gradually. Ensure you're consuming "
                    "enough calories and protein."
                ),
                reasoning=(
                    f"You've gained {gained:.1f}kg since your previous entry. "
                    "Keep monitoring to ensure steady progress."
                ),
                steps=(
                    "Ensure you're meeting daily calorie targets",
                    "Focus on protein-rich meals",
                    "Track your progress weekly",
                ),
                confidence=0.75,
            )
    return None


def adherence_advice(plan: MealPlan | None, today: date) -> Advice | None:
    """Flag low adherence over the plan days that have already passed."""
    if plan is None:
        return None
    elapsed = [day for day in plan.days if day.date < today]
    if not elapsed:
        return None
    percentage = recompute_adherence(elapsed).adherence_percentage
    if percentage >= LOW_ADHERENCE:
        return None
    return Advice(
        kind="meal",
        priority="high" if percentage < VERY_LOW_ADHERENCE else "medium",
        title="Low Meal Plan Adherence",
        description=(
            f"Your meal plan adherence is {percentage:.0f}%. Improving adherence "
            "will help you reach your goals faster."
        ),
        reasoning=(
            "Low adherence suggests difficulty following the plan. Consider "
            "adjusting meal preferences or simplifying the plan."
        ),
        steps=(
            "Review meals you're skipping and why",
            "Update your dietary preferences if needed",
            "Set daily reminders for meals",
        ),
    )


def calorie_target_advice(profile: UserProfile) -> Advice | None:
    """Warn about targets below a sustainable minimum."""
    target = profile.daily_calorie_target
    if not target or target >= MIN_SAFE_CALORIES:
        return None
    return Advice(
        kind="nutrition",
        priority="critical",
        title="Very Low Calorie Target",
        description=(
            f"Your daily calorie target ({target} calories) is very low. "
            "This may not be sustainable."
        ),
        reasoning=(
            "Extremely low calorie targets can lead to nutrient deficiencies "
            "and metabolic slowdown."
        ),
        steps=(
            "Consult with a healthcare professional",
            "Consider a more moderate calorie deficit",
            "Focus on nutrient-dense foods",
        ),
        confidence=0.9,
    )


def activity_advice(profile: UserProfile) -> Advice | None:
    """Suggest more activity to sedentary users with a weight goal."""
    if profile.activity_level != "sedentary":
        return None
    if profile.health_goal in (None, "maintain"):
        return None
    return Advice(
        kind="exercise",
        priority="medium",
        title="Increase Physical Activity",
        description=(
            "Increasing your activity level can help you reach your "
            f"{profile.health_goal} weight goal faster."
        ),
        reasoning=(
            "A sedentary lifestyle combined with a weight goal benefits from "
            "increased activity."
        ),
        steps=(
            "Start with 15-20 minutes of daily walking",
            "Gradually increase activity level in profile",
            "Find activities you enjoy",
        ),
        confidence=0.7,
    )


def profile_advice(profile: UserProfile) -> Advice | None:
    """Ask for the measurements every calculation depends on."""
    if profile.height and profile.current_weight and profile.age:
        return None
    return Advice(
        kind="general",
        priority="low",
        title="Complete Your Profile",
        description=(
            "Complete your profile information for more accurate meal plan "
            "recommendations."
        ),
        reasoning=(
            "Missing profile data prevents accurate calorie and nutrition "
            "calculations."
        ),
        steps=(
            "Add your height, weight, and age",
            "Update your health goals",
            "Set your dietary preferences",
        ),
        confidence=1.0,
    )


def evaluate(
    profile: UserProfile,
    recent: Sequence[ProgressEntry],
    active_plan: MealPlan | None,
    today: date,
) -> list[Advice]:
    """Run every rule and return the advice that applies, in rule order."""
    candidates = (
        weight_progress_advice(profile, recent),
        adherence_advice(active_plan, today),
        calorie_target_advice(profile),
        activity_advice(profile),
        profile_advice(profile),
    )
    return [advice for advice in candidates if advice is not None]


def _sort_key(recommendation: Recommendation) -> tuple[int, float]:
    created_at = recommendation.created_at
    created = created_at.timestamp() if created_at else 0.0
    return PRIORITIES.index(recommendation.priority), -created


@dataclass
class RecommendationService:
    """Generates and manages a user's recommendations."""

    repository: RecommendationRepository
    meal_plan_service: MealPlanService
    progress_service: ProgressService
    clock: Callable[[], datetime] = field(default=_utc_now)

    def generate(self, profile: UserProfile) -> list[Recommendation]:
        """Replace the user's active recommendations with fresh ones."""
        recent = self.progress_service.list_entries(profile, page=1, limit=2).items
        active_plan = self.meal_plan_service.current_plan(profile)
        today = self.meal_plan_service.today_for(profile)
        advice = evaluate(profile, recent, active_plan, today)

        now = self.clock()
        for stale in self.repository.list_recommendations(profile.id):
            if stale.status == ACTIVE:
                self.repository.update_recommendation(
                    replace(stale, status=ARCHIVED, updated_at=now)
                )
        created = [
            self.repository.create_recommendation(
                Recommendation(
                    id=uuid4(),
                    user_id=profile.id,
                    kind=item.kind,
                    priority=item.priority,
                    title=item.title,
                    description=item.description,
                    reasoning=item.reasoning,
                    action_steps=tuple(ActionStep(step) for step in item.steps),
                    generated_by=item.generated_by,
                    confidence=item.confidence,
                    created_at=now,
                    updated_at=now,
                )
            )
            for item in advice
        ]
        _logger.info(
            "Generated %s recommendations for user %s", len(created), profile.id
        )
        return created

    def list_recommendations(  # noqa: PLR0913
        self,
        profile: UserProfile,
        status: str | None = None,
        kind: str | None = None,
        priority: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[Recommendation]:
        """Return the user's recommendations, most urgent first."""
        if status and status not in STATUSES:
            raise RecommendationValidationError(f"Invalid status: {status}")
        if kind and kind not in KINDS:
            raise RecommendationValidationError(f"Invalid type: {kind}")
        if priority and priority not in PRIORITIES:
            raise RecommendationValidationError(f"Invalid priority: {priority}")
        items = [
            item
            for item in self.repository.list_recommendations(profile.id)
            if (status is None or item.status == status)
            and (kind is None or item.kind == kind)
            and (priority is None or item.priority == priority)
        ]
        return paginate(sorted(items, key=_sort_key), page, limit)

    def active(self, profile: UserProfile) -> list[Recommendation]:
        """Return up to ten active recommendations, most urgent first."""
        return self.list_recommendations(
            profile, status=ACTIVE, page=1, limit=MAX_ACTIVE
        ).items

    def get(self, profile: UserProfile, recommendation_id: UUID) -> Recommendation:
        """Return one of the user's recommendations."""
        recommendation = self.repository.get_recommendation(recommendation_id)
        if recommendation is None or recommendation.user_id != profile.id:
            raise RecommendationNotFoundError
        return recommendation

    def apply(self, profile: UserProfile, recommendation_id: UUID) -> Recommendation:
        """Mark a recommendation as applied."""
        current = self.get(profile, recommendation_id)
        now = self.clock()
        return self.repository.update_recommendation(
            replace(current, applied=True, applied_at=now, updated_at=now)
        )

    def dismiss(self, profile: UserProfile, recommendation_id: UUID) -> Recommendation:
        """Hide a recommendation from the active list."""
        current = self.get(profile, recommendation_id)
        return self.repository.update_recommendation(
            replace(current, status=DISMISSED, updated_at=self.clock())
        )

    def complete_step(
        self, profile: UserProfile, recommendation_id: UUID, step_index: int
    ) -> Recommendation:
        """Tick off one action step."""
        current = self.get(profile, recommendation_id)
        if not 0 <= step_index < len(current.action_steps):
            raise RecommendationValidationError("Invalid action step index")
        now = self.clock()
        steps = list(current.action_steps)
        steps[step_index] = replace(steps[step_index], completed=True, completed_at=now)
        return self.repository.update_recommendation(
            replace(current, action_steps=tuple(steps), updated_at=now)
        )

    def delete(self, profile: UserProfile, recommendation_id: UUID) -> None:
        """Delete one of the user's recommendations."""
        self.get(profile, recommendation_id)
        self.repository.delete_recommendation(recommendation_id)
