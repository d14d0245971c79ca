from pathlib import Path

import pytest

from checkin_tracker.config import DEFAULT_DB_PATH, load_config


@pytest.fixture
def base_env(monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "token")
    monkeypatch.setenv("GUILD_ID", "123")
    monkeypatch.setenv("REPORT_CHANNEL_ID", "456")
    monkeypatch.setenv("TIMEZONE", "America/Toronto")
    monkeypatch.delenv("RATE_PER_HOUR", raising=False)
    monkeypatch.delenv("DATABASE_PATH", raising=False)
    return monkeypatch


def test_load_config_defaults(base_env) -> None:
    config = load_config()

    assert config.guild_id == 123
    assert config.timezone.key == "America/Toronto"
    assert config.rate_per_hour == 10.0
    assert config.database_path == DEFAULT_DB_PATH


def test_load_config_overrides(base_env) -> None:
    base_env.setenv("RATE_PER_HOUR", "12.5")
    base_env.setenv("DATABASE_PATH", "/tmp/sessions.db")

    config = load_config()

    assert config.rate_per_hour == 12.5
    assert config.database_path == Path("/tmp/sessions.db")


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("GUILD_ID", "abc"),
        ("GUILD_ID", "-1"),
        ("TIMEZONE", "Mars/Olympus"),
        ("RATE_PER_HOUR", "free"),
        ("RATE_PER_HOUR", "0"),
    ],
)
def test_load_config_rejects_bad_values(base_env, name, value) -> None:
    base_env.setenv(name, value)

    with pytest.raises(ValueError):
        load_config()


def test_load_config_requires_token(base_env) -> None:
    base_env.delenv("DISCORD_TOKEN")

    with pytest.raises(ValueError, match="DISCORD_TOKEN"):
        load_config()
