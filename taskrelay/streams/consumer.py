"""Result consumer: blocking reads from the result stream with fixed-delay retry.

A reader task moves between two states:

- ``READING``: one blocking read from the current cursor. New records go into
  a bounded queue in stream order and the cursor follows them. The next read
  is only issued once the caller has finished every queued record.
- ``BACKOFF``: entered after a failed read; sleeps for the retry delay, then
  goes back to ``READING`` with the cursor unchanged.

The cursor lives in memory only. A new process starts from the beginning of
the stream and so re-delivers anything that was not cleaned up.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable

from taskrelay.config import StreamsConfig
from taskrelay.constants import STREAM_BEGINNING
from taskrelay.errors import TransientReadError
from taskrelay.streams.store import StreamStore
from taskrelay.streams.types import ResultRecord
from taskrelay.utils import capture

logger = logging.getLogger(__name__)


class ConsumerState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    BACKOFF = "backoff"
    STOPPED = "stopped"


class ResultConsumer:
    """Single reader of the result stream.

    Run exactly one per result stream: there is no consumer group, so two
    consumers would both deliver every record.

    Example:
        consumer = ResultConsumer(store, config.streams)
        async for record in consumer.results():
            ...
        await consumer.stop()
    """

    def __init__(
        self,
        store: StreamStore,
        streams: StreamsConfig,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._streams = streams
        self._sleep = sleep
        self._queue: asyncio.Queue[ResultRecord] = asyncio.Queue(maxsize=streams.count)
        self._cursor = STREAM_BEGINNING
        self._state = ConsumerState.IDLE
        self._reader: asyncio.Task[None] | None = None

    @property
    def cursor(self) -> str:
        """Id of the last record handed to the queue."""
        return self._cursor

    @property
    def state(self) -> ConsumerState:
        return self._state

    def start(self) -> asyncio.Task[None]:
        """Spawn the reader task (idempotent)."""
        if self._reader is None:
            self._reader = asyncio.create_task(self._read_loop(), name="result-consumer")
        return self._reader

    async def stop(self) -> None:
        """Cancel the reader task and wait for it to finish."""
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader
        self._state = ConsumerState.STOPPED

    async def results(self) -> AsyncIterator[ResultRecord]:
        """Yield result records one at a time, in stream order.

        A record counts as finished when the caller asks for the next one (or
        closes the iterator). Iteration ends when the consumer is stopped; if
        the reader task fails, its exception is raised here.
        """
        reader = self.start()
        while True:
            record = await self._next(reader)
            if record is None:
                return
            try:
                yield record
            finally:
                self._queue.task_done()

    async def _next(self, reader: asyncio.Task[None]) -> ResultRecord | None:
        if not self._queue.empty():
            return self._queue.get_nowait()

        getter = asyncio.ensure_future(self._queue.get())
        try:
            await asyncio.wait({getter, reader}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            getter.cancel()
            raise

        if getter.done():
            return getter.result()
        getter.cancel()

        if reader.cancelled():
            return None
        exc = reader.exception()
        if exc is not None:
            raise exc
        return None

    async def _read_loop(self) -> None:
        streams = self._streams
        logger.info("Result consumer started on %s from cursor %s", streams.results, self._cursor)
        self._state = ConsumerState.READING
        try:
            while True:
                if self._state is ConsumerState.BACKOFF:
                    await self._sleep(streams.retry_delay_s)
                    self._state = ConsumerState.READING
                    continue

                outcome = await capture(
                    self._store.blocking_read(streams.results, self._cursor, streams.block_ms, streams.count)
                )
                if isinstance(outcome.error, TransientReadError):
                    logger.error(
                        "Error reading from stream %s, retrying in %ss: %s",
                        streams.results,
                        streams.retry_delay_s,
                        outcome.error,
                    )
                    self._state = ConsumerState.BACKOFF
                    continue

                entries = outcome.unwrap()
                if not entries:
                    continue

                for entry_id, data in entries:
                    await self._queue.put(ResultRecord.from_stream_entry(entry_id, data))
                    self._cursor = entry_id
                await self._queue.join()
        finally:
            self._state = ConsumerState.STOPPED
            logger.info("Result consumer stopped at cursor %s", self._cursor)
