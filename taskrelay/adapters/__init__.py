"""Chat-platform adapters."""

from taskrelay.adapters.discord_adapter import DiscordAdapter

__all__ = ["DiscordAdapter"]
