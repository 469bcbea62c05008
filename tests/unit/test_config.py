"""Unit tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from taskrelay.config import DEFAULT_CONFIG, load_config

_ENV_VARS = (
    "REDIS_URL",
    "REDIS_USERNAME",
    "REDIS_PASSWORD",
    "DISCORD_BOT_TOKEN",
    "DISCORD_GUILD_ID",
    "STREAM_REQUESTS",
    "STREAM_RESULTS",
)

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TASKRELAY_ENV_PATH", str(tmp_path / "missing.env"))


def test_defaults_when_config_file_is_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path / "absent.yml")

    assert config.streams.requests == "discord:requests"
    assert config.streams.results == "discord:results"
    assert config.streams.block_ms == 5000
    assert config.streams.count == 10
    assert config.streams.retry_delay_s == 5.0
    assert config.redis.url == "redis://localhost:6379/0"
    assert config.redis.password is None
    assert config.discord.token == ""
    assert config.discord.guild_id is None


def test_yaml_values_override_defaults_with_env_expansion(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MY_REDIS_HOST", "cache.internal")
    path = tmp_path / "config.yml"
    path.write_text(
        "redis:\n"
        "  url: redis://${MY_REDIS_HOST}:6380/1\n"
        "streams:\n"
        "  results: team:results\n"
        "discord:\n"
        "  guild_id: '1234'\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.redis.url == "redis://cache.internal:6380/1"
    assert config.streams.results == "team:results"
    assert config.streams.requests == "discord:requests"
    assert config.discord.guild_id == 1234


def test_environment_overrides_stream_names_and_credentials(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STREAM_REQUESTS", "env:requests")
    monkeypatch.setenv("STREAM_RESULTS", "env:results")
    monkeypatch.setenv("DISCORD_BOT_TOKEN", " abc ")
    monkeypatch.setenv("REDIS_PASSWORD", "hunter2")

    config = load_config(tmp_path / "absent.yml")

    assert config.streams.requests == "env:requests"
    assert config.streams.results == "env:results"
    assert config.discord.token == "abc"
    assert config.redis.password == "hunter2"


def test_env_overrides_do_not_leak_into_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STREAM_REQUESTS", "env:requests")
    load_config(tmp_path / "absent.yml")

    assert DEFAULT_CONFIG["streams"]["requests"] == "discord:requests"  # type: ignore[index]
