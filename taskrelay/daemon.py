"""taskrelay daemon: Discord in, Redis Streams through, Discord out."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

from taskrelay.adapters.discord_adapter import DiscordAdapter
from taskrelay.config import Config, load_config
from taskrelay.errors import StoreConnectionError
from taskrelay.logging_config import setup_logging
from taskrelay.streams import CleanupCoordinator, RequestProducer, ResultConsumer, ResultRelay, StreamStore

logger = logging.getLogger(__name__)


class RelayDaemon:
    """Owns the stores, the Discord adapter and the result relay task.

    Two stores are used: one for request appends and cleanup, one dedicated to
    the blocking result reads so appends never queue behind an XREAD.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self.shutdown_event = asyncio.Event()
        self.request_store: StreamStore | None = None
        self.result_store: StreamStore | None = None
        self.adapter: DiscordAdapter | None = None
        self.relay: ResultRelay | None = None
        self._relay_task: asyncio.Task[None] | None = None
        self.relay_failure: BaseException | None = None

    async def start(self) -> None:
        """Connect to Redis, log in to Discord and start relaying results.

        Raises:
            StoreConnectionError: Redis is unreachable.
        """
        streams = self.config.streams
        self.request_store = await StreamStore.connect(self.config.redis)
        self.result_store = await StreamStore.connect(self.config.redis)

        producer = RequestProducer(self.request_store, streams)
        self.adapter = DiscordAdapter(self.config.discord, producer)
        await self.adapter.start()

        self.relay = ResultRelay(
            ResultConsumer(self.result_store, streams),
            CleanupCoordinator(self.request_store, streams),
            self.adapter,
        )
        self._relay_task = asyncio.create_task(self.relay.run(), name="result-relay")
        self._relay_task.add_done_callback(self._on_relay_done)
        logger.info("Relaying %s -> %s", streams.requests, streams.results)

    def _on_relay_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            self.relay_failure = exc
            logger.error("Result relay failed: %s", exc, exc_info=exc)
        self.shutdown_event.set()

    async def stop(self) -> None:
        """Stop the relay, then the adapter, then the stores."""
        if self.relay is not None:
            await self.relay.stop()
        if self._relay_task is not None and not self._relay_task.done():
            self._relay_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._relay_task
        if self.adapter is not None:
            await self.adapter.stop()
        for store in (self.result_store, self.request_store):
            if store is not None:
                await store.close()
        logger.info("taskrelay stopped")


async def main() -> None:
    """Main entry point."""
    setup_logging()
    daemon = RelayDaemon(load_config())

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, daemon.shutdown_event.set)

    exit_code = 0
    try:
        await daemon.start()
        await daemon.shutdown_event.wait()
        if daemon.relay_failure is not None:
            exit_code = 1
        else:
            logger.info("Shutdown requested")
    except StoreConnectionError as e:
        logger.error(str(e))
        exit_code = 1
    except Exception as e:
        logger.error("Unexpected error: %s", e, exc_info=True)
        exit_code = 1
    finally:
        try:
            await daemon.stop()
        except Exception as e:
            logger.error("Error during daemon stop: %s", e)

    if exit_code:
        sys.exit(exit_code)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
