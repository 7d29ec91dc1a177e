"""Supabase repository for audit events."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from dietly.adapters.supabase_errors import storage_errors
from dietly.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed audit repository."""

    client: Client

    def create_event(  # noqa: PLR0913
        self,
        actor_id: UUID,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        """Create an audit event row."""
        with storage_errors("record audit event"):
            self.client.table("audit_events").insert(
                {
                    "actor_id": str(actor_id),
                    "entity_type": entity_type,
                    "entity_id": str(entity_id),
                    "event_type": event_type,
                    "before_json": before,
                    "after_json": after,
                }
            ).execute()

    def list_events(self, entity_id: UUID, limit: int) -> list[dict[str, object]]:
        """Return recent audit events for an entity."""
        with storage_errors("list audit events"):
            response = (
                self.client.table("audit_events")
                .select("*")
                .eq("entity_id", str(entity_id))
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        return response.data or []
