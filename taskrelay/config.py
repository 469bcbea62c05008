"""Configuration management.

Configuration is built once by the daemon and passed explicitly into each
component:

    config = load_config()
    producer = RequestProducer(store, config.streams)
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from taskrelay.constants import (
    ERROR_RETRY_S,
    REDIS_MAX_CONNECTIONS,
    REDIS_SOCKET_TIMEOUT,
    STREAM_REQUESTS,
    STREAM_RESULTS,
    XREAD_BLOCK_MS,
    XREAD_COUNT,
)
from taskrelay.utils import expand_env_vars

# Project root (relative to this file)
_project_root = Path(__file__).parent.parent


@dataclass
class RedisConfig:
    """Connection settings for the stream store."""

    url: str
    username: str | None
    password: str | None
    max_connections: int
    socket_timeout: int


@dataclass
class StreamsConfig:
    """Stream names and read behaviour for the relay.

    Attributes:
        requests: Stream that receives task requests.
        results: Stream that workers answer on.
        block_ms: How long one blocking read waits for new results.
        count: Maximum results returned per read.
        retry_delay_s: Backoff after a failed read.
    """

    requests: str = STREAM_REQUESTS
    results: str = STREAM_RESULTS
    block_ms: int = XREAD_BLOCK_MS
    count: int = XREAD_COUNT
    retry_delay_s: float = ERROR_RETRY_S


@dataclass
class DiscordConfig:
    token: str
    guild_id: int | None = None


@dataclass
class Config:
    redis: RedisConfig
    streams: StreamsConfig
    discord: DiscordConfig


DEFAULT_CONFIG: dict[str, object] = {  # guard: loose-dict - YAML configuration structure
    "redis": {
        "url": "redis://localhost:6379/0",
        "username": None,
        "password": None,
        "max_connections": REDIS_MAX_CONNECTIONS,
        "socket_timeout": REDIS_SOCKET_TIMEOUT,
    },
    "streams": {
        "requests": STREAM_REQUESTS,
        "results": STREAM_RESULTS,
        "block_ms": XREAD_BLOCK_MS,
        "count": XREAD_COUNT,
        "retry_delay_s": ERROR_RETRY_S,
    },
    "discord": {
        "token": "",
        "guild_id": None,
    },
}

# Environment variables that override the merged config: env name -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "REDIS_URL": ("redis", "url"),
    "REDIS_USERNAME": ("redis", "username"),
    "REDIS_PASSWORD": ("redis", "password"),
    "DISCORD_BOT_TOKEN": ("discord", "token"),
    "DISCORD_GUILD_ID": ("discord", "guild_id"),
    "STREAM_REQUESTS": ("streams", "requests"),
    "STREAM_RESULTS": ("streams", "results"),
}


def _deep_merge(base: dict[str, object], override: dict[str, object]) -> dict[str, object]:  # guard: loose-dict
    """Deep merge override dict into base dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)  # type: ignore[arg-type]
        else:
            result[key] = value
    return result


def _apply_env_overrides(merged: dict[str, Any]) -> dict[str, Any]:  # guard: loose-dict
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name, "").strip()
        if value:
            merged.setdefault(section, {})[key] = value
    return merged


def _parse_optional_int(value: object) -> int | None:
    if value is None:
        return None
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    return None


def _optional_str(value: object) -> str | None:
    return str(value) if value else None


def _build_config(raw: dict[str, Any]) -> Config:  # guard: loose-dict
    redis_raw = raw["redis"]
    streams_raw = raw["streams"]
    discord_raw = raw["discord"]
    return Config(
        redis=RedisConfig(
            url=str(redis_raw["url"]),
            username=_optional_str(redis_raw.get("username")),
            password=_optional_str(redis_raw.get("password")),
            max_connections=int(redis_raw.get("max_connections", REDIS_MAX_CONNECTIONS)),
            socket_timeout=int(redis_raw.get("socket_timeout", REDIS_SOCKET_TIMEOUT)),
        ),
        streams=StreamsConfig(
            requests=str(streams_raw["requests"]),
            results=str(streams_raw["results"]),
            block_ms=int(streams_raw.get("block_ms", XREAD_BLOCK_MS)),
            count=int(streams_raw.get("count", XREAD_COUNT)),
            retry_delay_s=float(streams_raw.get("retry_delay_s", ERROR_RETRY_S)),
        ),
        discord=DiscordConfig(
            token=str(discord_raw.get("token") or "").strip(),
            guild_id=_parse_optional_int(discord_raw.get("guild_id")),
        ),
    )


def _resolve_path(value: str | None, default: Path) -> Path:
    path = Path(value).expanduser() if value else default
    if not path.is_absolute():
        path = (_project_root / path).resolve()
    return path


def load_config(path: Path | None = None) -> Config:
    """Build the runtime configuration.

    Sources, lowest precedence first: ``DEFAULT_CONFIG``, the optional YAML file
    (``TASKRELAY_CONFIG_PATH`` or ``config.yml`` in the project root, with
    ``${VAR}`` references expanded), then the variables in ``ENV_OVERRIDES``.
    A ``.env`` file (``TASKRELAY_ENV_PATH`` or ``.env``) is loaded first.

    Args:
        path: Explicit YAML path; overrides ``TASKRELAY_CONFIG_PATH``.

    Returns:
        The typed configuration.
    """
    load_dotenv(_resolve_path(os.getenv("TASKRELAY_ENV_PATH"), _project_root / ".env"))

    if path is None:
        path = _resolve_path(os.getenv("TASKRELAY_CONFIG_PATH"), _project_root / "config.yml")

    user_config: dict[str, Any] = {}  # guard: loose-dict
    if path.exists():
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        if isinstance(raw, dict):
            user_config = expand_env_vars(raw)  # type: ignore[assignment]

    merged = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), user_config)
    return _build_config(_apply_env_overrides(merged))
