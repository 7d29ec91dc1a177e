"""Supabase-backed profile repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from dietly.adapters.supabase_errors import storage_errors
from dietly.domain.errors import PersistenceError, UserNotFoundError
from dietly.domain.models import UserProfile
from dietly.services.users import UserRepository

_TABLE = "profiles"


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for profile persistence."""

    client: Client

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile for a user id, if present."""
        with storage_errors("load profile"):
            response = (
                self.client.table(_TABLE)
                .select("*")
                .eq("id", str(user_id))
                .limit(1)
                .execute()
            )
        if response.data:
            return _parse_profile(response.data[0])
        return None

    def create_profile(self, user_id: UUID, email: str, name: str) -> UserProfile:
        """Create a default profile row and return it."""
        with storage_errors("create profile"):
            response = (
                self.client.table(_TABLE)
                .insert({"id": str(user_id), "email": email, "name": name})
                .execute()
            )
        if not response.data:
            raise PersistenceError("Failed to create profile")
        return _parse_profile(response.data[0])

    def update_profile(self, user_id: UUID, changes: dict[str, object]) -> UserProfile:
        """Apply changes to a profile and return it."""
        with storage_errors("update profile"):
            response = (
                self.client.table(_TABLE)
                .update(changes)
                .eq("id", str(user_id))
                .execute()
            )
        if not response.data:
            raise UserNotFoundError
        return _parse_profile(response.data[0])

    def list_profiles(self) -> list[UserProfile]:
        """Return every profile, newest first."""
        with storage_errors("list profiles"):
            response = (
                self.client.table(_TABLE)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
        return [_parse_profile(row) for row in response.data or []]

    def delete_profile(self, user_id: UUID) -> None:
        """Delete a profile; plans and progress cascade in the database."""
        with storage_errors("delete profile"):
            self.client.table(_TABLE).delete().eq("id", str(user_id)).execute()


def _parse_profile(row: dict[str, object]) -> UserProfile:
    created_raw = row.get("created_at")
    return UserProfile(
        id=UUID(str(row["id"])),
        name=str(row.get("name") or ""),
        email=str(row.get("email") or ""),
        role=str(row.get("role") or "user"),
        age=row.get("age"),
        gender=row.get("gender"),
        height=_optional_float(row.get("height")),
        current_weight=_optional_float(row.get("current_weight")),
        target_weight=_optional_float(row.get("target_weight")),
        health_goal=row.get("health_goal"),
        activity_level=row.get("activity_level"),
        daily_calorie_target=row.get("daily_calorie_target"),
        dietary_preferences=frozenset(row.get("dietary_preferences") or ()),
        allergies=frozenset(row.get("allergies") or ()),
        timezone=row.get("timezone"),
        created_at=datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else None,
    )


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None
