"""Body progress tracking."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from dietly.domain.errors import ProgressNotFoundError, ProgressValidationError
from dietly.domain.models import Page, UserProfile, paginate
from dietly.domain.progress import MOODS, ProgressEntry, ProgressStats, SeriesStats
from dietly.services.calories import calculate_bmi
from dietly.services.users import UserService

# (min, max) bounds for numeric progress fields.
_BOUNDS = {
    "weight": (20, 500),
    "energy_level": (1, 5),
    "activity_minutes": (0, 1440),
    "water_intake": (0, 20),
    "sleep_hours": (0, 24),
}
MAX_NOTES_LENGTH = 500

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class ProgressRepository(Protocol):
    """Persistence interface for progress entries."""

    def upsert_entry(
        self, user_id: UUID, entry_date: date, values: dict[str, object]
    ) -> ProgressEntry:
        """Create the entry for a date or update the given fields of it."""

    def get_entry(self, entry_id: UUID) -> ProgressEntry | None:
        """Return an entry by id."""

    def list_entries(
        self, user_id: UUID, start: date | None = None, end: date | None = None
    ) -> list[ProgressEntry]:
        """Return entries within an inclusive date range, newest first."""

    def delete_entry(self, entry_id: UUID) -> None:
        """Remove an entry."""


@dataclass
class ProgressService:
    """Records daily measurements and summarizes them."""

    repository: ProgressRepository
    user_service: UserService
    default_timezone: str = "UTC"
    clock: Callable[[], datetime] = field(default=_utc_now)

    def today_for(self, profile: UserProfile) -> date:
        """Return the calendar date in the profile's timezone."""
        tz = ZoneInfo(profile.timezone or self.default_timezone)
        return self.clock().astimezone(tz).date()

    def record(
        self,
        profile: UserProfile,
        values: dict[str, object],
        entry_date: date | None = None,
    ) -> ProgressEntry:
        """Create or update the entry for a date (today by default).

        Only the supplied optional fields overwrite an existing entry. A
        weight recorded for today also becomes the profile's current weight.
        """
        cleaned = _validate_values(values)
        today = self.today_for(profile)
        target_date = entry_date or today
        if target_date > today:
            raise ProgressValidationError("Progress cannot be recorded for a future date")
        cleaned["bmi"] = calculate_bmi(float(cleaned["weight"]), profile.height)
        entry = self.repository.upsert_entry(profile.id, target_date, cleaned)
        if target_date == today:
            self.user_service.update_profile(
                profile.id, {"current_weight": cleaned["weight"]}
            )
        _logger.info("Progress recorded for user %s on %s", profile.id, target_date)
        return entry

    def list_entries(
        self,
        profile: UserProfile,
        start: date | None = None,
        end: date | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> Page[ProgressEntry]:
        """Return the user's entries, newest first."""
        return paginate(self.repository.list_entries(profile.id, start, end), page, limit)

    def latest(self, profile: UserProfile) -> ProgressEntry:
        """Return the most recent entry or raise ProgressNotFoundError."""
        entries = self.repository.list_entries(profile.id)
        if not entries:
            raise ProgressNotFoundError
        return entries[0]

    def delete(self, profile: UserProfile, entry_id: UUID) -> None:
        """Delete one of the user's entries."""
        entry = self.repository.get_entry(entry_id)
        if entry is None or entry.user_id != profile.id:
            raise ProgressNotFoundError
        self.repository.delete_entry(entry_id)

    def stats(self, profile: UserProfile, days: int = 30) -> ProgressStats | None:
        """Summarize the last ``days`` days; None when nothing was recorded."""
        if days < 1:
            raise ProgressValidationError("days must be at least 1")
        start = self.today_for(profile) - timedelta(days=days)
        entries = sorted(
            self.repository.list_entries(profile.id, start=start),
            key=lambda entry: entry.entry_date,
        )
        if not entries:
            return None
        energy = [e.energy_level for e in entries if e.energy_level is not None]
        return ProgressStats(
            total_entries=len(entries),
            start_date=entries[0].entry_date,
            end_date=entries[-1].entry_date,
            weight=series_stats([e.weight for e in entries if e.weight]),
            bmi=series_stats([e.bmi for e in entries if e.bmi]),
            average_energy=round(sum(energy) / len(energy), 1) if energy else None,
        )


def series_stats(values: Sequence[float]) -> SeriesStats | None:
    """Starting/current/change/average/min/max and trend of a dated series."""
    if not values:
        return None
    return SeriesStats(
        starting=values[0],
        current=values[-1],
        change=round(values[-1] - values[0], 1),
        average=round(sum(values) / len(values), 1),
        minimum=min(values),
        maximum=max(values),
        trend=trend(values),
    )


def trend(values: Sequence[float]) -> str:
    """Compare the last value with the first one."""
    if len(values) <= 1:
        return "insufficient_data"
    if values[-1] > values[0]:
        return "increasing"
    if values[-1] < values[0]:
        return "decreasing"
    return "stable"


def _validate_values(values: dict[str, object]) -> dict[str, object]:
    if values.get("weight") is None:
        raise ProgressValidationError("Missing required fields: weight")
    cleaned = {key: value for key, value in values.items() if value is not None}
    for key, (low, high) in _BOUNDS.items():
        if key in cleaned and not low <= float(cleaned[key]) <= high:
            raise ProgressValidationError(f"{key} must be between {low} and {high}")
    if "mood" in cleaned and cleaned["mood"] not in MOODS:
        raise ProgressValidationError(
            f"mood must be one of: {', '.join(sorted(MOODS))}"
        )
    if len(str(cleaned.get("notes") or "")) > MAX_NOTES_LENGTH:
        raise ProgressValidationError(
            f"notes cannot be longer than {MAX_NOTES_LENGTH} characters"
        )
    unknown = cleaned.keys() - {*_BOUNDS, "mood", "notes"}
    if unknown:
        raise ProgressValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
    return cleaned
