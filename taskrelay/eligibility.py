"""Eligibility gate for inbound Discord messages.

The relay only acts inside private server text channels the bot can see.
Public channels are never relayed, so task instructions do not leak.
"""

from __future__ import annotations

from discord import ChannelType

# Channel kinds that can carry a conversation (news channels are text channels too)
TEXT_CHANNEL_TYPES = frozenset({ChannelType.text, ChannelType.news})


def is_text_channel(channel: object) -> bool:
    """Check if a channel is a server text channel."""
    return getattr(channel, "type", None) in TEXT_CHANNEL_TYPES and getattr(channel, "guild", None) is not None


def can_view(channel: object) -> bool:
    """Check if the bot has permission to view a channel."""
    guild = getattr(channel, "guild", None)
    me = getattr(guild, "me", None)
    if me is None:
        return False
    return bool(channel.permissions_for(me).view_channel)  # type: ignore[attr-defined]


def is_public(channel: object) -> bool:
    """Check if a channel is viewable by the @everyone role."""
    guild = getattr(channel, "guild", None)
    default_role = getattr(guild, "default_role", None)
    if default_role is None:
        return False
    return bool(channel.permissions_for(default_role).view_channel)  # type: ignore[attr-defined]


def is_private_text_channel(channel: object) -> bool:
    """A text channel the bot can view but @everyone cannot."""
    return is_text_channel(channel) and can_view(channel) and not is_public(channel)


def is_eligible(message: object) -> bool:
    """Decide whether a message may become a task request.

    A message is eligible when it is complete (not a partial message), its
    author is not a bot, and it was posted in a private text channel.
    """
    author = getattr(message, "author", None)
    if author is None:
        return False
    if bool(getattr(author, "bot", False)):
        return False
    return is_private_text_channel(getattr(message, "channel", None))
