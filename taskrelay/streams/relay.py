"""Deliver results to their conversation, then clean up the request/result pair."""

from __future__ import annotations

import logging
from typing import Protocol

from taskrelay.streams.cleanup import CleanupCoordinator
from taskrelay.streams.consumer import ResultConsumer
from taskrelay.streams.types import ResultRecord
from taskrelay.utils import capture

logger = logging.getLogger(__name__)


class ReplyDestination(Protocol):
    """Chat-platform surface the relay delivers through."""

    async def fetch_text_channel(self, channel_id: str) -> object | None: ...

    async def send_reply(self, channel: object, content: str, reply_to: str) -> None: ...


class ResultRelay:
    """Sequentially deliver every result the consumer yields.

    The next record is not taken until delivery and cleanup of the current
    one have finished.
    """

    def __init__(
        self,
        consumer: ResultConsumer,
        cleanup: CleanupCoordinator,
        destination: ReplyDestination,
    ) -> None:
        self._consumer = consumer
        self._cleanup = cleanup
        self._destination = destination

    async def run(self) -> None:
        """Process results until the consumer stops."""
        logger.info("Result relay started")
        async for record in self._consumer.results():
            await self.handle(record)
        logger.info("Result relay stopped")

    async def stop(self) -> None:
        await self._consumer.stop()

    async def handle(self, record: ResultRecord) -> bool:
        """Deliver one result and clean up.

        Returns:
            True when the record reached cleanup, False when it was skipped.
        """
        if not record.is_actionable:
            return False

        channel = await self._destination.fetch_text_channel(record.channel_id)
        if channel is None:
            logger.warning(
                "Channel %s for result %s is not a reachable text channel; skipping",
                record.channel_id,
                record.id,
            )
            return False

        if record.result:
            delivered = await capture(self._destination.send_reply(channel, record.result, record.message_id))
            if not delivered.ok:
                logger.error(
                    "Failed to deliver result %s for request %s to channel %s",
                    record.id,
                    record.request_id,
                    record.channel_id,
                    exc_info=delivered.error,
                )
                return False

        await self._cleanup.cleanup(record.request_id, record.id)
        return True
