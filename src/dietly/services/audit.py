"""Audit logging for back-office changes."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

_logger = logging.getLogger(__name__)


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

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

    def list_events(self, entity_id: UUID, limit: int) -> list[dict[str, object]]:
        """Return recent events for an entity."""


@dataclass
class AuditService:
    """Records who changed which catalog meal, user or plan."""

    repository: AuditRepository

    def record_event(  # noqa: PLR0913
        self,
        actor_id: UUID,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        before: dict[str, object] | None = None,
        after: dict[str, object] | None = None,
    ) -> None:
        """Persist an audit event."""
        _logger.info(
            "Audit %s %s %s by %s", event_type, entity_type, entity_id, actor_id
        )
        self.repository.create_event(
            actor_id=actor_id,
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_type,
            before=before,
            after=after,
        )

    def history(self, entity_id: UUID, limit: int = 20) -> list[dict[str, object]]:
        """Return the latest events recorded for an entity."""
        return self.repository.list_events(entity_id, limit)
