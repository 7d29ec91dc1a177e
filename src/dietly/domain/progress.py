"""Domain models for body progress tracking."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

MOODS = frozenset({"excellent", "good", "neutral", "low", "poor"})


@dataclass(frozen=True)
class ProgressEntry:
    """A daily body measurement entry."""

    id: UUID
    user_id: UUID
    entry_date: date
    weight: float
    bmi: float | None = None
    energy_level: int | None = None
    activity_minutes: int = 0
    water_intake: float = 0.0
    sleep_hours: float = 0.0
    mood: str | None = None
    notes: str | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class SeriesStats:
    """Summary statistics of a numeric series ordered by date."""

    starting: float
    current: float
    change: float
    average: float
    minimum: float
    maximum: float
    trend: str


@dataclass(frozen=True)
class ProgressStats:
    """Progress summary over a window of days."""

    total_entries: int
    start_date: date
    end_date: date
    weight: SeriesStats | None
    bmi: SeriesStats | None
    average_energy: float | None
