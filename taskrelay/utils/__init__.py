"""Shared helpers."""

from __future__ import annotations

import os
import re

from taskrelay.utils.outcome import Outcome, capture

__all__ = ["Outcome", "capture", "decode", "expand_env_vars"]


def expand_env_vars(config: object) -> object:
    """Recursively expand environment variables in config.

    Replaces ${VAR} patterns with environment variable values. Unset variables
    are left untouched.
    """
    if isinstance(config, dict):
        return {k: expand_env_vars(v) for k, v in config.items()}  # type: ignore[misc]
    if isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    if isinstance(config, str):

        def replace_env_var(match: re.Match[str]) -> str:
            env_var = match.group(1)
            return os.getenv(env_var, match.group(0))

        return re.sub(r"\$\{([^}]+)\}", replace_env_var, config)
    return config


def decode(value: bytes | str) -> str:
    """Decode a Redis response value to ``str``.

    Invalid UTF-8 is replaced with U+FFFD rather than raised.
    """
    return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else str(value)
