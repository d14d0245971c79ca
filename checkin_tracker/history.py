from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from zoneinfo import ZoneInfo

from .billing import DEFAULT_RATE_PER_HOUR, bill
from .errors import ValidationError
from .models import DayGroup, PeriodStatistics, Session

MONTHLY = "monthly"
YEARLY = "yearly"
ALL_TIME = "all-time"


def period_label(year: int | None = None, month: int | None = None) -> str:
    if year is not None and month is not None:
        return MONTHLY
    if year is not None:
        return YEARLY
    return ALL_TIME


def local_day(session: Session, tz: ZoneInfo) -> date:
    return session.arrive_at.astimezone(tz).date()


def filter_by_period(
    sessions: Iterable[Session],
    tz: ZoneInfo,
    year: int | None = None,
    month: int | None = None,
) -> list[Session]:
    """Keep sessions whose local arrival falls in the given year (and month).

    With no year every session is returned. A month only narrows a year.
    """
    if month is not None and year is None:
        raise ValidationError("A month filter needs a year")
    if month is not None and not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")

    if year is None:
        return list(sessions)

    selected: list[Session] = []
    for session in sessions:
        arrived = session.arrive_at.astimezone(tz)
        if arrived.year != year:
            continue
        if month is not None and arrived.month != month:
            continue
        selected.append(session)
    return selected


def group_by_day(sessions: Iterable[Session], tz: ZoneInfo) -> list[DayGroup]:
    buckets: dict[date, list[Session]] = {}
    for session in sessions:
        buckets.setdefault(local_day(session, tz), []).append(session)

    return [DayGroup(day_local=day, sessions=buckets[day]) for day in sorted(buckets, reverse=True)]


def period_statistics(
    sessions: Iterable[Session],
    year: int | None = None,
    month: int | None = None,
    rate_per_hour: float = DEFAULT_RATE_PER_HOUR,
) -> PeriodStatistics | None:
    # Rounds the summed raw time once; this differs from summing per-session costs.
    raw_seconds = sum(session.duration or 0.0 for session in sessions)
    if raw_seconds <= 0:
        return None

    billing = bill(raw_seconds, rate_per_hour)
    return PeriodStatistics(
        label=period_label(year, month),
        raw_seconds=raw_seconds,
        billable_seconds=billing.billable_seconds,
        cost=billing.cost,
    )
