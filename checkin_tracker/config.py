from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .billing import DEFAULT_RATE_PER_HOUR

DEFAULT_DB_PATH = Path("checkin_tracker.db")


@dataclass(frozen=True, slots=True)
class Config:
    discord_token: str
    guild_id: int
    report_channel_id: int
    timezone: ZoneInfo
    rate_per_hour: float
    database_path: Path


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value.strip()


def _required_int_env(name: str) -> int:
    value = _required_env(name)
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc

    if parsed <= 0:
        raise ValueError(f"Environment variable {name} must be positive")
    return parsed


def _timezone_from_env(name: str) -> ZoneInfo:
    tz_name = _required_env(name)
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"Invalid timezone in {name}: {tz_name}") from exc


def _rate_from_env(name: str) -> float:
    raw = os.getenv(name, str(DEFAULT_RATE_PER_HOUR)).strip()
    try:
        rate = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc

    if rate <= 0:
        raise ValueError(f"{name} must be positive")
    return rate


def load_config() -> Config:
    db_path = os.getenv("DATABASE_PATH", "").strip()

    return Config(
        discord_token=_required_env("DISCORD_TOKEN"),
        guild_id=_required_int_env("GUILD_ID"),
        report_channel_id=_required_int_env("REPORT_CHANNEL_ID"),
        timezone=_timezone_from_env("TIMEZONE"),
        rate_per_hour=_rate_from_env("RATE_PER_HOUR"),
        database_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
    )
