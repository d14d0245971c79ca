from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from .billing import DEFAULT_RATE_PER_HOUR, bill


@dataclass(frozen=True, slots=True)
class Session:
    id: int
    arrive_at: datetime
    leave_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.leave_at is None

    @property
    def duration(self) -> float | None:
        """Elapsed seconds between arrival and leave, or None while open."""
        if self.leave_at is None:
            return None
        return (self.leave_at - self.arrive_at).total_seconds()

    def cost(self, rate_per_hour: float = DEFAULT_RATE_PER_HOUR) -> float | None:
        duration = self.duration
        if duration is None:
            return None
        return bill(duration, rate_per_hour).cost


@dataclass(frozen=True, slots=True)
class DayGroup:
    day_local: date
    sessions: list[Session]


@dataclass(frozen=True, slots=True)
class PeriodStatistics:
    label: str
    raw_seconds: float
    billable_seconds: int
    cost: float
