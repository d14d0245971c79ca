from __future__ import annotations

import calendar
import io
from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo

import discord

from .billing import DEFAULT_RATE_PER_HOUR
from .errors import ValidationError
from .history import filter_by_period, group_by_day, period_statistics
from .models import PeriodStatistics, Session
from .tracker import CheckInTracker

# Discord rejects messages over 2000 characters; longer reports go out as a file.
MESSAGE_LIMIT = 2000

PERIOD_TITLES = {
    "monthly": "Monthly",
    "yearly": "Yearly",
    "all-time": "All-time",
}


def format_duration(total_seconds: float) -> str:
    """Render a duration as `1h 5m`, `1h`, `5m` or `<1 min`."""
    if total_seconds < 60:
        return "<1 min"

    total_minutes = int(total_seconds // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"


def format_currency(amount: float) -> str:
    return f"${amount:,.2f}"


def format_time(value: datetime, tz: ZoneInfo) -> str:
    return value.astimezone(tz).strftime("%I:%M %p").lstrip("0")


def format_date(value: datetime, tz: ZoneInfo) -> str:
    local = value.astimezone(tz)
    return f"{local:%b} {local.day}, {local.year}"


class ReportChannelLike(Protocol):
    async def send(self, content: str | None = None, **kwargs): ...


class Reporter:
    def __init__(
        self,
        tracker: CheckInTracker,
        tz: ZoneInfo,
        rate_per_hour: float = DEFAULT_RATE_PER_HOUR,
    ) -> None:
        self.tracker = tracker
        self.tz = tz
        self.rate_per_hour = rate_per_hour

    def sessions_for(self, year: int | None = None, month: int | None = None) -> list[Session]:
        return filter_by_period(self.tracker.list_sessions(), self.tz, year, month)

    def statistics_for(self, sessions: list[Session], year: int | None, month: int | None) -> PeriodStatistics | None:
        return period_statistics(sessions, year, month, rate_per_hour=self.rate_per_hour)

    def build_history_content(self, year: int | None = None, month: int | None = None) -> str:
        # Rows carry their own rounded cost; the header carries the period total.
        sessions = self.sessions_for(year, month)
        stats = self.statistics_for(sessions, year, month)

        if year is None:
            scope = "all sessions"
        elif month is None:
            scope = str(year)
        else:
            scope = f"{calendar.month_name[month]} {year}"

        if not sessions:
            return f"No sessions recorded for {scope}."

        lines = [f"**History - {scope}**"]
        if stats is not None:
            lines.append(
                f"{PERIOD_TITLES[stats.label]} total: `{format_duration(stats.billable_seconds)}`"
                f" | cost `{format_currency(stats.cost)}`"
            )

        for group in group_by_day(sessions, self.tz):
            lines.append("")
            lines.append(f"__{group.day_local:%a %b} {group.day_local.day}, {group.day_local.year}__")
            for session in group.sessions:
                lines.append(self._history_row(session))

        return "\n".join(lines)

    def build_history_message(self, year: int | None = None, month: int | None = None) -> dict:
        """Keyword arguments for sending the history; long listings become a file."""
        content = self.build_history_content(year, month)
        if len(content) <= MESSAGE_LIMIT:
            return {"content": content}

        title = content.split("\n", 1)[0]
        suffix = "all" if year is None else (str(year) if month is None else f"{year}-{month:02}")
        attachment = discord.File(io.BytesIO(content.encode("utf-8")), filename=f"history-{suffix}.txt")
        return {"content": f"{title} (full listing attached)", "file": attachment}

    def _history_row(self, session: Session) -> str:
        arrive = format_time(session.arrive_at, self.tz)
        if session.leave_at is None:
            return f"- #{session.id} {arrive} - in progress"

        leave = format_time(session.leave_at, self.tz)
        cost = session.cost(self.rate_per_hour)
        return (
            f"- #{session.id} {arrive} - {leave}"
            f" `{format_duration(session.duration)}` {format_currency(cost)}"
        )

    def build_monthly_report(
        self,
        year: int,
        month: int,
        sessions: list[Session],
        stats: PeriodStatistics,
    ) -> str:
        """Lay out one month as a fixed-width table with a totals footer.

        Footer figures are read from `stats` as-is so the report always agrees
        with the history view.
        """
        header = f"{'Date':<14}{'Arrive':<10}{'Leave':<10}{'Duration':>10}"
        lines = [
            "Check-in Record",
            f"{calendar.month_name[month]} {year}",
            "",
            header,
            "-" * len(header),
        ]

        for session in sessions:
            leave = format_time(session.leave_at, self.tz) if session.leave_at else "open"
            lines.append(
                f"{format_date(session.arrive_at, self.tz):<14}"
                f"{format_time(session.arrive_at, self.tz):<10}"
                f"{leave:<10}"
                f"{format_duration(session.duration or 0):>10}"
            )

        lines.append("-" * len(header))
        lines.append(f"{'Total Time:':<34}{format_duration(stats.billable_seconds):>10}")
        lines.append(f"{'Total Cost:':<34}{format_currency(stats.cost):>10}")
        return "\n".join(lines)

    def monthly_report(self, year: int, month: int) -> str:
        sessions = self.sessions_for(year, month)
        stats = self.statistics_for(sessions, year, month)
        if stats is None:
            raise ValidationError(f"Nothing to report for {calendar.month_name[month]} {year}")
        return self.build_monthly_report(year, month, sessions, stats)

    async def post_report(self, report_channel: ReportChannelLike, year: int, month: int) -> str:
        table = self.monthly_report(year, month)
        content = f"```\n{table}\n```"

        kwargs = {"allowed_mentions": discord.AllowedMentions.none()}
        if len(content) > MESSAGE_LIMIT:
            attachment = discord.File(io.BytesIO(table.encode("utf-8")), filename=f"report-{year}-{month:02}.txt")
            await report_channel.send(
                f"Check-in report for {calendar.month_name[month]} {year}",
                file=attachment,
                **kwargs,
            )
        else:
            await report_channel.send(content, **kwargs)
        return table
