"""Discord adapter: gateway ingress into the request stream, reply egress for results."""

from __future__ import annotations

import asyncio
import contextlib
import importlib
import logging
from types import ModuleType
from typing import Awaitable, Callable, Protocol

from taskrelay.config import DiscordConfig
from taskrelay.constants import (
    DELETE_INSTRUCTION,
    DISCORD_MAX_MESSAGE_CHARS,
    DISCORD_READY_TIMEOUT_S,
    EVENT_MESSAGE_CREATE,
    EVENT_MESSAGE_DELETE,
    SUBMIT_FAILURE_REPLY,
)
from taskrelay.eligibility import is_eligible, is_private_text_channel, is_text_channel
from taskrelay.errors import AdapterError
from taskrelay.streams.producer import RequestProducer
from taskrelay.utils import capture

logger = logging.getLogger(__name__)


class DiscordClientLike(Protocol):
    """Minimal discord.py client surface used by the adapter."""

    user: object | None

    def event(self, coro: Callable[..., Awaitable[None]]) -> object: ...

    async def start(self, token: str) -> None: ...

    async def close(self) -> None: ...


class DiscordAdapter:
    """Discord bot adapter using discord.py.

    Eligible messages become task requests; results come back through
    ``fetch_text_channel`` and ``send_reply``, which make this adapter the
    relay's reply destination.
    """

    max_message_size = DISCORD_MAX_MESSAGE_CHARS
    _TRUNCATION_SUFFIX = "\n[...truncated...]"

    def __init__(self, config: DiscordConfig, producer: RequestProducer) -> None:
        self._discord: ModuleType = importlib.import_module("discord")
        self._token = config.token
        self._guild_id = config.guild_id
        self._producer = producer
        self._client: DiscordClientLike | None = None
        self._gateway_task: asyncio.Task[object] | None = None
        self._ready_event = asyncio.Event()

    async def start(self) -> None:
        """Initialize the Discord client, start the gateway and wait until ready."""
        if not self._token:
            raise ValueError("DISCORD_BOT_TOKEN is required to start Discord adapter")

        intents = self._discord.Intents.default()
        intents.guilds = True
        intents.members = True
        intents.messages = True
        intents.message_content = True

        self._client = self._discord.Client(intents=intents)
        self._register_gateway_handlers()
        self._ready_event.clear()
        self._gateway_task = asyncio.create_task(self._client.start(self._token), name="discord-gateway")

        try:
            await asyncio.wait_for(self._ready_event.wait(), timeout=DISCORD_READY_TIMEOUT_S)
        except asyncio.TimeoutError as exc:
            if self._gateway_task.done():
                task_exc = self._gateway_task.exception()
                if task_exc:
                    raise RuntimeError(f"Discord gateway failed to start: {task_exc}") from task_exc
            raise RuntimeError(
                f"Discord adapter did not become ready within {int(DISCORD_READY_TIMEOUT_S)} seconds"
            ) from exc

    async def stop(self) -> None:
        """Stop Discord client and gateway task."""
        if self._client is not None:
            await self._client.close()
        if self._gateway_task and not self._gateway_task.done():
            self._gateway_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._gateway_task

    def _register_gateway_handlers(self) -> None:
        if self._client is None:
            raise AdapterError("Discord client not initialized")

        async def on_ready() -> None:
            await self._handle_on_ready()

        async def on_message(message: object) -> None:
            await self._handle_on_message(message)

        async def on_message_delete(message: object) -> None:
            await self._handle_on_message_delete(message)

        self._client.event(on_ready)
        self._client.event(on_message)
        self._client.event(on_message_delete)

    async def _handle_on_ready(self) -> None:
        if self._client is None:
            return
        logger.info("Discord adapter ready as %s", getattr(self._client, "user", None))
        await self._warm_member_cache()
        self._ready_event.set()

    async def _warm_member_cache(self) -> None:
        """Chunk every guild so channel member lists are complete for ``groupMembers``."""
        guilds = list(getattr(self._client, "guilds", []))
        results = await asyncio.gather(*(guild.chunk() for guild in guilds), return_exceptions=True)
        for guild, result in zip(guilds, results):
            if isinstance(result, Exception):
                logger.warning("Failed to fetch members for guild %s: %s", getattr(guild, "id", "?"), result)

        private_channels = [
            channel
            for guild in guilds
            for channel in getattr(guild, "text_channels", [])
            if is_private_text_channel(channel)
        ]
        logger.info("Relaying from %d private text channel(s) in %d guild(s)", len(private_channels), len(guilds))

    def _is_foreign_guild(self, message: object) -> bool:
        if self._guild_id is None:
            return False
        msg_guild_id = getattr(getattr(message, "guild", None), "id", None)
        return msg_guild_id is not None and msg_guild_id != self._guild_id

    async def _handle_on_message(self, message: object) -> None:
        if self._is_foreign_guild(message) or not is_eligible(message):
            return
        await self._submit(EVENT_MESSAGE_CREATE, message)

    async def _handle_on_message_delete(self, message: object) -> None:
        if self._is_foreign_guild(message) or not is_eligible(message):
            return
        instruction = DELETE_INSTRUCTION.format(message_id=getattr(message, "id", ""))
        await self._submit(EVENT_MESSAGE_DELETE, message, instruction)

    async def _submit(self, event: str, message: object, instruction: str | None = None) -> None:
        outcome = await capture(self._producer.submit(event, message, instruction))
        if outcome.ok:
            return

        logger.error("Error sending %s request to stream: %s", event, outcome.error, exc_info=outcome.error)
        channel = getattr(message, "channel", None)
        notified = await capture(self.send_reply(channel, SUBMIT_FAILURE_REPLY, str(getattr(message, "id", ""))))
        if not notified.ok:
            logger.warning("Could not tell the user that request submission failed: %s", notified.error)

    async def fetch_text_channel(self, channel_id: str) -> object | None:
        """Resolve *channel_id* to a text channel, or None if it is missing or not text."""
        if self._client is None or not channel_id.isdigit():
            return None
        channel = await self._get_channel(int(channel_id))
        if channel is None or not is_text_channel(channel):
            return None
        return channel

    async def _get_channel(self, channel_id: int) -> object | None:
        if self._client is None:
            return None

        get_fn = getattr(self._client, "get_channel", None)
        if callable(get_fn):
            cached = get_fn(channel_id)
            if cached is not None:
                return cached

        fetch_fn = getattr(self._client, "fetch_channel", None)
        if callable(fetch_fn):
            try:
                return await fetch_fn(channel_id)
            except Exception as exc:  # noqa: BLE001 - missing/forbidden channels resolve to None
                logger.debug("Discord fetch_channel(%s) failed: %s", channel_id, exc)
        return None

    async def send_reply(self, channel: object, content: str, reply_to: str) -> None:
        """Reply to message *reply_to* in *channel*.

        The reference does not require the original message to still exist.
        """
        send_fn = getattr(channel, "send", None)
        if not callable(send_fn):
            raise AdapterError(f"Discord channel {getattr(channel, 'id', '?')} cannot send messages")
        if not reply_to.isdigit():
            raise AdapterError(f"Discord message_id must be numeric, got {reply_to!r}")

        reference = self._discord.MessageReference(
            message_id=int(reply_to),
            channel_id=int(getattr(channel, "id")),
            fail_if_not_exists=False,
        )
        await send_fn(content=self._fit_message_text(content), reference=reference)

    def _fit_message_text(self, text: str) -> str:
        if len(text) <= self.max_message_size:
            return text
        logger.warning("Truncating %d-character reply to Discord limit", len(text))
        return text[: self.max_message_size - len(self._TRUNCATION_SUFFIX)] + self._TRUNCATION_SUFFIX
