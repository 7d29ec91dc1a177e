"""Supabase repository for recommendations."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from dietly.adapters.supabase_errors import storage_errors
from dietly.domain.errors import PersistenceError, RecommendationNotFoundError
from dietly.domain.recommendations import ActionStep, Recommendation
from dietly.services.recommendations import RecommendationRepository

_TABLE = "recommendations"


@dataclass
class SupabaseRecommendationRepository(RecommendationRepository):
    """Supabase-backed recommendation persistence."""

    client: Client

    def create_recommendation(self, recommendation: Recommendation) -> Recommendation:
        """Insert a recommendation row."""
        with storage_errors("create recommendation"):
            response = (
                self.client.table(_TABLE)
                .insert(recommendation_to_row(recommendation))
                .execute()
            )
        if not response.data:
            raise PersistenceError("Failed to create recommendation")
        return parse_recommendation(response.data[0])

    def get_recommendation(self, recommendation_id: UUID) -> Recommendation | None:
        """Return a recommendation by id, if present."""
        with storage_errors("load recommendation"):
            response = (
                self.client.table(_TABLE)
                .select("*")
                .eq("id", str(recommendation_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return parse_recommendation(response.data[0])

    def list_recommendations(self, user_id: UUID) -> list[Recommendation]:
        """Return a user's recommendations, newest first."""
        with storage_errors("list recommendations"):
            response = (
                self.client.table(_TABLE)
                .select("*")
                .eq("user_id", str(user_id))
                .order("created_at", desc=True)
                .execute()
            )
        return [parse_recommendation(row) for row in response.data or []]

    def update_recommendation(self, recommendation: Recommendation) -> Recommendation:
        """Write the mutable fields of a recommendation."""
        row = recommendation_to_row(recommendation)
        for column in ("id", "user_id", "created_at"):
            row.pop(column)
        with storage_errors("update recommendation"):
            response = (
                self.client.table(_TABLE)
                .update(row)
                .eq("id", str(recommendation.id))
                .execute()
            )
        if not response.data:
            raise RecommendationNotFoundError
        return parse_recommendation(response.data[0])

    def delete_recommendation(self, recommendation_id: UUID) -> None:
        """Delete a recommendation row."""
        with storage_errors("delete recommendation"):
            self.client.table(_TABLE).delete().eq(
                "id", str(recommendation_id)
            ).execute()


def recommendation_to_row(recommendation: Recommendation) -> dict[str, object]:
    """Serialize a recommendation into a table row."""
    return {
        "id": str(recommendation.id),
        "user_id": str(recommendation.user_id),
        "type": recommendation.kind,
        "priority": recommendation.priority,
        "title": recommendation.title,
        "description": recommendation.description,
        "reasoning": recommendation.reasoning,
        "action_steps": [
            {
                "step": step.step,
                "completed": step.completed,
                "completed_at": _iso(step.completed_at),
            }
            for step in recommendation.action_steps
        ],
        "status": recommendation.status,
        "applied": recommendation.applied,
        "applied_at": _iso(recommendation.applied_at),
        "generated_by": recommendation.generated_by,
        "confidence": recommendation.confidence,
        "created_at": _iso(recommendation.created_at),
        "updated_at": _iso(recommendation.updated_at),
    }


def parse_recommendation(row: dict[str, object]) -> Recommendation:
    """Parse a recommendations row into a domain model."""
    return Recommendation(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        kind=str(row.get("type") or "general"),
        priority=str(row.get("priority") or "medium"),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        reasoning=str(row.get("reasoning") or ""),
        action_steps=tuple(
            ActionStep(
                step=str(item.get("step", "")),
                completed=bool(item.get("completed", False)),
                completed_at=_parse_datetime(item.get("completed_at")),
            )
            for item in row.get("action_steps") or []
        ),
        status=str(row.get("status") or "active"),
        applied=bool(row.get("applied", False)),
        applied_at=_parse_datetime(row.get("applied_at")),
        generated_by=str(row.get("generated_by") or "rule-based"),
        confidence=float(row.get("confidence") or 0.0),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
