"""Supabase repository for progress entries."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from dietly.adapters.supabase_errors import storage_errors
from dietly.domain.errors import PersistenceError
from dietly.domain.progress import ProgressEntry
from dietly.services.progress import ProgressRepository

_TABLE = "progress_entries"


@dataclass
class SupabaseProgressRepository(ProgressRepository):
    """Supabase implementation for progress entries."""

    client: Client

    def upsert_entry(
        self, user_id: UUID, entry_date: date, values: dict[str, object]
    ) -> ProgressEntry:
        """Create or update the entry for (user, date)."""
        row = {
            "user_id": str(user_id),
            "entry_date": entry_date.isoformat(),
            **values,
        }
        with storage_errors("save progress entry"):
            response = (
                self.client.table(_TABLE)
                .upsert(row, on_conflict="user_id,entry_date")
                .execute()
            )
        if not response.data:
            raise PersistenceError("Failed to save progress entry")
        return _parse_entry(response.data[0])

    def get_entry(self, entry_id: UUID) -> ProgressEntry | None:
        """Return an entry by id, if present."""
        with storage_errors("load progress entry"):
            response = (
                self.client.table(_TABLE)
                .select("*")
                .eq("id", str(entry_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def list_entries(
        self, user_id: UUID, start: date | None = None, end: date | None = None
    ) -> list[ProgressEntry]:
        """Return entries in an inclusive date range, newest first."""
        query = self.client.table(_TABLE).select("*").eq("user_id", str(user_id))
        if start:
            query = query.gte("entry_date", start.isoformat())
        if end:
            query = query.lte("entry_date", end.isoformat())
        with storage_errors("list progress entries"):
            response = query.order("entry_date", desc=True).execute()
        return [_parse_entry(row) for row in response.data or []]

    def delete_entry(self, entry_id: UUID) -> None:
        """Delete an entry."""
        with storage_errors("delete progress entry"):
            self.client.table(_TABLE).delete().eq("id", str(entry_id)).execute()


def _parse_entry(row: dict[str, object]) -> ProgressEntry:
    updated_raw = row.get("updated_at")
    bmi = row.get("bmi")
    return ProgressEntry(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        entry_date=date.fromisoformat(str(row["entry_date"])),
        weight=float(row.get("weight") or 0.0),
        bmi=float(bmi) if bmi is not None else None,
        energy_level=row.get("energy_level"),
        activity_minutes=int(row.get("activity_minutes") or 0),
        water_intake=float(row.get("water_intake") or 0.0),
        sleep_hours=float(row.get("sleep_hours") or 0.0),
        mood=row.get("mood"),
        notes=row.get("notes"),
        updated_at=datetime.fromisoformat(updated_raw)
        if isinstance(updated_raw, str) and updated_raw
        else None,
    )
