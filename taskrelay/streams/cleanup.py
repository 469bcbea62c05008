"""Delete delivered request/result pairs from their streams."""

from __future__ import annotations

import asyncio
import logging

from taskrelay.config import StreamsConfig
from taskrelay.errors import CleanupError
from taskrelay.streams.store import StreamStore
from taskrelay.utils import Outcome

logger = logging.getLogger(__name__)


class CleanupCoordinator:
    def __init__(self, store: StreamStore, streams: StreamsConfig) -> None:
        self._store = store
        self._streams = streams

    async def cleanup(self, request_id: str, result_id: str) -> Outcome[int]:
        """Delete the request and its result concurrently.

        Failures are logged with both ids and returned as a ``CleanupError``;
        they are never retried or raised. When both deletes fail, the cause is
        an ``ExceptionGroup`` holding both errors.

        Returns:
            Outcome holding the number of entries deleted.
        """
        results = await asyncio.gather(
            self._store.delete(self._streams.requests, request_id),
            self._store.delete(self._streams.results, result_id),
            return_exceptions=True,
        )
        failures: list[Exception] = []
        for result in results:
            if isinstance(result, Exception):
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result

        if failures:
            error = CleanupError(request_id, result_id)
            cause = failures[0] if len(failures) == 1 else ExceptionGroup("stream deletes failed", failures)
            error.__cause__ = cause
            logger.error("%s", error, exc_info=cause)
            return Outcome(error=error)

        deleted = sum(int(result) for result in results)
        logger.debug("Cleaned up request %s and result %s (%d deleted)", request_id, result_id, deleted)
        return Outcome(value=deleted)
