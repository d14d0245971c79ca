from __future__ import annotations

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from .db import SessionStore
from .errors import ConflictError, NotFoundError, ValidationError
from .models import Session

LOCAL_INPUT_FORMAT = "%Y-%m-%d %H:%M"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_local_datetime(value: str, tz: ZoneInfo) -> datetime:
    """Parse a `YYYY-MM-DD HH:MM` wall-clock time in `tz` into an aware datetime."""
    try:
        parsed = datetime.strptime(value.strip(), LOCAL_INPUT_FORMAT)
    except ValueError as exc:
        raise ValidationError(f"Expected a time like 2026-02-01 18:30, got {value!r}") from exc

    local = parsed.replace(tzinfo=tz)
    # Wall-clock times skipped by a DST jump do not survive a round trip through UTC.
    if local.astimezone(timezone.utc).astimezone(tz).replace(tzinfo=None) != parsed:
        raise ValidationError(f"{value.strip()} does not exist in {tz.key}")
    return local


class CheckInTracker:
    """Mediates every session mutation and keeps at most one session open."""

    def __init__(self, store: SessionStore, logger: logging.Logger | None = None) -> None:
        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        # Display copy of store.list_all(); dropped after every mutation attempt.
        self._cached_sessions: list[Session] | None = None

    def can_enter(self) -> bool:
        return self.store.find_open() is None

    def open_session(self) -> Session | None:
        return self.store.find_open()

    def list_sessions(self) -> list[Session]:
        if self._cached_sessions is None:
            self._cached_sessions = self.store.list_all()
        return list(self._cached_sessions)

    def start_session(self, now_utc: datetime | None = None) -> Session:
        arrive_at = now_utc or utc_now()
        try:
            session = self.store.insert_open(arrive_at)
        finally:
            self._invalidate()

        if session is None:
            self.logger.debug("Refusing start: a session is already open")
            raise ConflictError("A session is already open")

        self.logger.info("Session started: id=%s arrive_at=%s", session.id, session.arrive_at.isoformat())
        return session

    def end_session(self, now_utc: datetime | None = None) -> Session:
        leave_at = now_utc or utc_now()
        try:
            current = self.store.find_open()
            if current is None:
                self.logger.debug("Refusing end: no open session")
                raise NotFoundError("No open session to end")

            updated = self.store.update(current.id, leave_at)
        finally:
            self._invalidate()

        if updated is None:
            # Closed or deleted between the lookup and the conditional update.
            raise NotFoundError(f"Session {current.id} is no longer open")

        self.logger.info("Session ended: id=%s duration=%ss", updated.id, updated.duration)
        return updated

    def add_manual_session(self, arrive_at: datetime, leave_at: datetime) -> Session:
        if arrive_at.tzinfo is None or leave_at.tzinfo is None:
            raise ValidationError("arrive_at and leave_at must be timezone-aware")
        # Same-zone comparisons use wall-clock time, so compare in UTC.
        if leave_at.astimezone(timezone.utc) <= arrive_at.astimezone(timezone.utc):
            raise ValidationError("Leave time must be later than arrive time")

        try:
            session = self.store.insert(arrive_at, leave_at)
        finally:
            self._invalidate()

        self.logger.info(
            "Manual session added: id=%s arrive_at=%s leave_at=%s",
            session.id,
            arrive_at.isoformat(),
            leave_at.isoformat(),
        )
        return session

    def delete_session(self, session_id: int) -> None:
        try:
            if self.store.get(session_id) is None:
                raise NotFoundError(f"Session {session_id} does not exist")
            deleted = self.store.delete(session_id)
        finally:
            self._invalidate()

        if not deleted:
            raise NotFoundError(f"Session {session_id} does not exist")
        self.logger.info("Session deleted: id=%s", session_id)

    def _invalidate(self) -> None:
        self._cached_sessions = None
