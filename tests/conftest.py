"""Pytest configuration for taskrelay tests."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Callable

import pytest
from discord import ChannelType

BOT_USER_ID = 999
GUILD_ID = 42


def pytest_collection_modifyitems(config, items):
    """Set per-marker timeouts: unit=1s, integration=5s."""
    for item in items:
        if "unit" in item.keywords:
            item.add_marker(pytest.mark.timeout(1))
        elif "integration" in item.keywords:
            item.add_marker(pytest.mark.timeout(5))


def _build_channel(
    *,
    channel_id: int = 111,
    kind: ChannelType = ChannelType.text,
    everyone_can_view: bool = False,
    bot_can_view: bool = True,
    member_names: tuple[str, ...] = ("alice", "bob"),
) -> SimpleNamespace:
    me = SimpleNamespace(id=BOT_USER_ID, name="relay-bot", bot=True)
    default_role = SimpleNamespace(id=GUILD_ID, name="@everyone")
    guild = SimpleNamespace(id=GUILD_ID, me=me, default_role=default_role)

    def permissions_for(target: object) -> SimpleNamespace:
        if target is me:
            return SimpleNamespace(view_channel=bot_can_view)
        if target is default_role:
            return SimpleNamespace(view_channel=everyone_can_view)
        return SimpleNamespace(view_channel=False)

    members = [SimpleNamespace(id=index + 1, name=name, bot=False) for index, name in enumerate(member_names)]
    return SimpleNamespace(
        id=channel_id,
        type=kind,
        guild=guild,
        members=[*members, me],
        permissions_for=permissions_for,
    )


def _build_message(
    *,
    message_id: int = 555,
    content: str = "log $12 lunch",
    author_name: str = "alice",
    author_is_bot: bool = False,
    channel: SimpleNamespace | None = None,
    partial: bool = False,
) -> SimpleNamespace:
    channel = channel if channel is not None else _build_channel()
    if partial:
        return SimpleNamespace(id=message_id, channel=channel, guild=channel.guild)
    return SimpleNamespace(
        id=message_id,
        content=content,
        author=SimpleNamespace(id=1, name=author_name, bot=author_is_bot),
        channel=channel,
        guild=getattr(channel, "guild", None),
    )


@pytest.fixture
def make_channel() -> Callable[..., SimpleNamespace]:
    """Factory for discord.py-like guild channels."""
    return _build_channel


@pytest.fixture
def make_message() -> Callable[..., SimpleNamespace]:
    """Factory for discord.py-like messages."""
    return _build_message
