"""Domain models for personalized recommendations."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

KINDS = frozenset({"nutrition", "exercise", "meal", "progress", "general"})

# Listing order: most urgent first.
PRIORITIES = ("critical", "high", "medium", "low")

ACTIVE = "active"
DISMISSED = "dismissed"
COMPLETED = "completed"
ARCHIVED = "archived"
STATUSES = frozenset({ACTIVE, DISMISSED, COMPLETED, ARCHIVED})


@dataclass(frozen=True)
class ActionStep:
    """One suggested step of a recommendation."""

    step: str
    completed: bool = False
    completed_at: datetime | None = None


@dataclass(frozen=True)
class Recommendation:
    """Advice derived from a user's profile, plan adherence and progress."""

    id: UUID
    user_id: UUID
    kind: str
    priority: str
    title: str
    description: str
    reasoning: str = ""
    action_steps: tuple[ActionStep, ...] = ()
    status: str = ACTIVE
    applied: bool = False
    applied_at: datetime | None = None
    generated_by: str = "rule-based"
    confidence: float = 0.8
    created_at: datetime | None = None
    updated_at: datetime | None = None
