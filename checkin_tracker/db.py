from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from .errors import StoreError
from .models import Session


class SessionStore(Protocol):
    def list_all(self) -> list[Session]: ...

    def find_open(self) -> Session | None: ...

    def get(self, session_id: int) -> Session | None: ...

    def insert(self, arrive_at: datetime, leave_at: datetime | None = None) -> Session: ...

    def insert_open(self, arrive_at: datetime) -> Session | None: ...

    def update(self, session_id: int, leave_at: datetime) -> Session | None: ...

    def delete(self, session_id: int) -> bool: ...


class Database:
    """Thin SQLite access layer for check-in sessions."""

    def __init__(self, db_path: str | Path) -> None:
        self._conn = sqlite3.connect(str(db_path))
        self._conn.row_factory = sqlite3.Row
        self._closed = False

    def close(self) -> None:
        if self._closed:
            return
        self._conn.close()
        self._closed = True

    def initialize(self) -> None:
        # sessions: one row per arrive/leave interval; leave_at NULL while open.
        # sessions_single_open: at most one row may have leave_at NULL.
        with self._guarded("initialize"):
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  arrive_at TEXT NOT NULL,
                  leave_at TEXT
                );

                CREATE INDEX IF NOT EXISTS sessions_arrive_at
                  ON sessions (arrive_at);

                CREATE UNIQUE INDEX IF NOT EXISTS sessions_single_open
                  ON sessions ((leave_at IS NULL))
                  WHERE leave_at IS NULL;
                """
            )
            self._conn.commit()

    def list_all(self) -> list[Session]:
        with self._guarded("list_all"):
            rows = self._conn.execute(
                "SELECT id, arrive_at, leave_at FROM sessions ORDER BY arrive_at DESC, id DESC"
            ).fetchall()
        return [_row_to_session(row) for row in rows]

    def find_open(self) -> Session | None:
        with self._guarded("find_open"):
            row = self._conn.execute(
                """
                SELECT id, arrive_at, leave_at
                FROM sessions
                WHERE leave_at IS NULL
                ORDER BY arrive_at DESC, id DESC
                LIMIT 1
                """
            ).fetchone()
        return _row_to_session(row) if row is not None else None

    def get(self, session_id: int) -> Session | None:
        with self._guarded("get"):
            row = self._conn.execute(
                "SELECT id, arrive_at, leave_at FROM sessions WHERE id = ?",
                (session_id,),
            ).fetchone()
        return _row_to_session(row) if row is not None else None

    def insert(self, arrive_at: datetime, leave_at: datetime | None = None) -> Session:
        leave = _to_storage(leave_at) if leave_at is not None else None
        with self._guarded("insert"):
            cursor = self._conn.execute(
                "INSERT INTO sessions (arrive_at, leave_at) VALUES (?, ?)",
                (_to_storage(arrive_at), leave),
            )
            self._conn.commit()
            session_id = cursor.lastrowid
        return self._require(session_id)

    def insert_open(self, arrive_at: datetime) -> Session | None:
        # Single statement so the existence check and the insert cannot interleave.
        with self._guarded("insert_open"):
            try:
                cursor = self._conn.execute(
                    """
                    INSERT INTO sessions (arrive_at, leave_at)
                    SELECT ?, NULL
                    WHERE NOT EXISTS (SELECT 1 FROM sessions WHERE leave_at IS NULL)
                    """,
                    (_to_storage(arrive_at),),
                )
            except sqlite3.IntegrityError:
                self._conn.rollback()
                return None
            self._conn.commit()
            if cursor.rowcount == 0:
                return None
            session_id = cursor.lastrowid
        return self._require(session_id)

    def update(self, session_id: int, leave_at: datetime) -> Session | None:
        with self._guarded("update"):
            cursor = self._conn.execute(
                "UPDATE sessions SET leave_at = ? WHERE id = ? AND leave_at IS NULL",
                (_to_storage(leave_at), session_id),
            )
            self._conn.commit()
            if cursor.rowcount == 0:
                return None
        return self._require(session_id)

    def delete(self, session_id: int) -> bool:
        with self._guarded("delete"):
            cursor = self._conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            self._conn.commit()
        return cursor.rowcount > 0

    def _require(self, session_id: int | None) -> Session:
        session = self.get(session_id) if session_id is not None else None
        if session is None:
            raise StoreError(f"Session {session_id} missing after write")
        return session

    @contextmanager
    def _guarded(self, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            raise StoreError(f"{operation} failed: {exc}") from exc


def _row_to_session(row: sqlite3.Row) -> Session:
    leave = row["leave_at"]
    return Session(
        id=row["id"],
        arrive_at=datetime.fromisoformat(row["arrive_at"]),
        leave_at=datetime.fromisoformat(leave) if leave is not None else None,
    )


def _to_storage(value: datetime) -> str:
    """Normalize a timezone-aware datetime to a sortable UTC string."""
    if value.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware")
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
