import asyncio
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from checkin_tracker.db import Database
from checkin_tracker.errors import ValidationError
from checkin_tracker.reporter import Reporter, format_currency, format_duration, format_time
from checkin_tracker.tracker import CheckInTracker


class FakeChannel:
    def __init__(self) -> None:
        self.sent = []

    async def send(self, content=None, **kwargs):
        self.sent.append((content, kwargs))


def make_reporter(tz: ZoneInfo = ZoneInfo("UTC")) -> tuple[CheckInTracker, Reporter]:
    db = Database(":memory:")
    db.initialize()
    tracker = CheckInTracker(store=db)
    return tracker, Reporter(tracker, tz=tz)


def test_format_duration() -> None:
    assert format_duration(0) == "<1 min"
    assert format_duration(59) == "<1 min"
    assert format_duration(60) == "1m"
    assert format_duration(3600) == "1h"
    assert format_duration(3660 + 59) == "1h 1m"


def test_format_currency_and_time() -> None:
    assert format_currency(12.5) == "$12.50"
    assert format_currency(1234) == "$1,234.00"
    assert format_time(datetime(2026, 2, 1, 18, 5, tzinfo=timezone.utc), ZoneInfo("UTC")) == "6:05 PM"


def test_monthly_report_totals_match_statistics() -> None:
    tracker, reporter = make_reporter()
    start = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)
    tracker.add_manual_session(start, start + timedelta(minutes=10))
    tracker.add_manual_session(start + timedelta(days=1), start + timedelta(days=1, minutes=10))
    tracker.add_manual_session(datetime(2026, 3, 1, 9, tzinfo=timezone.utc), datetime(2026, 3, 1, 12, tzinfo=timezone.utc))

    report = reporter.monthly_report(2026, 2)
    lines = report.splitlines()

    assert lines[0] == "Check-in Record"
    assert lines[1] == "February 2026"
    assert "Date" in lines[3] and "Duration" in lines[3]
    assert sum(1 for line in lines if line.startswith("Feb ")) == 2
    assert "10m" in lines[5]
    assert lines[-2].startswith("Total Time:") and lines[-2].endswith("30m")
    assert lines[-1].startswith("Total Cost:") and lines[-1].endswith("$5.00")


def test_monthly_report_marks_open_session() -> None:
    tracker, reporter = make_reporter()
    start = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)
    tracker.add_manual_session(start, start + timedelta(hours=1))
    tracker.start_session(now_utc=start + timedelta(days=1))

    report = reporter.monthly_report(2026, 2)

    assert "open" in report
    assert report.splitlines()[-2].endswith("1h")


def test_monthly_report_without_time_refused() -> None:
    _, reporter = make_reporter()

    with pytest.raises(ValidationError):
        reporter.monthly_report(2026, 2)


def test_history_content() -> None:
    tracker, reporter = make_reporter()
    start = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)
    tracker.add_manual_session(start, start + timedelta(minutes=61))
    tracker.start_session(now_utc=start + timedelta(days=1))

    content = reporter.build_history_content(2026, 2)

    assert content.startswith("**History - February 2026**")
    assert "Monthly total: `1h 15m` | cost `$12.50`" in content
    assert content.index("Mon Feb 2, 2026") < content.index("Sun Feb 1, 2026")
    assert "in progress" in content
    assert "`1h 1m` $12.50" in content


def test_history_without_sessions() -> None:
    _, reporter = make_reporter()

    assert reporter.build_history_content(2026) == "No sessions recorded for 2026."
    assert reporter.build_history_content() == "No sessions recorded for all sessions."


def test_history_message_short_listing_inline() -> None:
    tracker, reporter = make_reporter()
    start = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)
    tracker.add_manual_session(start, start + timedelta(minutes=30))

    message = reporter.build_history_message(2026, 2)

    assert message == {"content": reporter.build_history_content(2026, 2)}


def test_history_message_attaches_long_listing() -> None:
    tracker, reporter = make_reporter()
    start = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)
    for day in range(27):
        for hour in range(3):
            arrive = start + timedelta(days=day, hours=hour * 3)
            tracker.add_manual_session(arrive, arrive + timedelta(hours=1))

    message = reporter.build_history_message(2026, 2)

    assert len(reporter.build_history_content(2026, 2)) > 2000
    assert message["content"] == "**History - February 2026** (full listing attached)"
    assert message["file"].filename == "history-2026-02.txt"


def test_post_report_sends_code_block() -> None:
    tracker, reporter = make_reporter()
    start = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)
    tracker.add_manual_session(start, start + timedelta(minutes=90))
    channel = FakeChannel()

    table = asyncio.run(reporter.post_report(channel, 2026, 2))

    content, kwargs = channel.sent[0]
    assert content == f"```\n{table}\n```"
    assert "allowed_mentions" in kwargs
    assert table.splitlines()[-2].endswith("1h 30m")


def test_post_report_attaches_long_reports() -> None:
    tracker, reporter = make_reporter()
    start = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)
    for day in range(27):
        for hour in range(3):
            arrive = start + timedelta(days=day, hours=hour * 3)
            tracker.add_manual_session(arrive, arrive + timedelta(hours=1))
    channel = FakeChannel()

    asyncio.run(reporter.post_report(channel, 2026, 2))

    content, kwargs = channel.sent[0]
    assert content == "Check-in report for February 2026"
    assert kwargs["file"].filename == "report-2026-02.txt"
