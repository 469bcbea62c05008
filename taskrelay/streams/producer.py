"""Request producer: turn an inbound message into a record on the request stream."""

from __future__ import annotations

import logging
import time
from typing import Callable

from taskrelay.config import StreamsConfig
from taskrelay.constants import LEDGER_PREFIX
from taskrelay.eligibility import is_text_channel
from taskrelay.errors import InvalidChannelError
from taskrelay.streams.store import StreamStore
from taskrelay.streams.types import RequestRecord

logger = logging.getLogger(__name__)


def ledger_key(channel_id: str) -> str:
    """Build the ledger id that groups requests from one channel."""
    return f"{LEDGER_PREFIX}:{channel_id}"


def _group_members(channel: object) -> list[str]:
    """Usernames of every member who can see *channel*, the bot included."""
    return [member.name for member in getattr(channel, "members", [])]


class RequestProducer:
    """Append task requests to the request stream.

    Safe to call concurrently: each call writes one independent record over
    the store's shared connection pool.
    """

    def __init__(
        self,
        store: StreamStore,
        streams: StreamsConfig,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._streams = streams
        self._clock = clock

    def next_request_id(self) -> str:
        """Request ids are ``<unix ms>-0``; two requests in the same millisecond collide."""
        return f"{int(self._clock() * 1000)}-0"

    def build_request(self, event: str, message: object, instruction: str | None = None) -> RequestRecord:
        """Build the request record for *message*.

        Raises:
            InvalidChannelError: The message was not posted in a server text channel.
        """
        channel = getattr(message, "channel", None)
        if not is_text_channel(channel):
            raise InvalidChannelError("Tasks can only be initiated from server text channels.")

        channel_id = str(getattr(channel, "id"))
        return RequestRecord(
            request_id=self.next_request_id(),
            event=event,
            instruction=instruction or str(getattr(message, "content", "")),
            sender=str(getattr(getattr(message, "author", None), "name", "")),
            group_members=_group_members(channel),
            ledger_id=ledger_key(channel_id),
            channel_id=channel_id,
            message_id=str(getattr(message, "id")),
        )

    async def submit(self, event: str, message: object, instruction: str | None = None) -> str:
        """Append one request for *message* to the request stream.

        Args:
            event: Name of the gateway event that triggered the request.
            message: The discord.py message the request answers to.
            instruction: Optional text to use instead of the message content.

        Returns:
            The request id.

        Raises:
            InvalidChannelError: Raised before any append for non-text channels.
        """
        request = self.build_request(event, message, instruction)
        await self._store.append(self._streams.requests, request.to_stream_dict(), record_id=request.request_id)
        logger.info(
            "Queued %s request %s from channel %s (message %s)",
            event,
            request.request_id,
            request.channel_id,
            request.message_id,
        )
        return request.request_id
