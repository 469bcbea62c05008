"""Stream store client: append, blocking read and delete over Redis Streams."""

from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from taskrelay.config import RedisConfig
from taskrelay.errors import StoreConnectionError, TransientReadError
from taskrelay.utils import decode

logger = logging.getLogger(__name__)

StreamEntry = tuple[str, dict[str, str]]


class StreamStore:
    """Thin wrapper over a ``redis.asyncio`` client.

    The underlying connection pool is shared by all callers, so one store may
    serve concurrent appends. Responses are decoded to ``str`` here so the rest
    of the relay never sees bytes.
    """

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    @classmethod
    async def connect(cls, config: RedisConfig) -> "StreamStore":
        """Create a client and verify the connection.

        Raises:
            StoreConnectionError: The server could not be reached. Not retried.
        """
        redis_client: Redis = Redis.from_url(
            config.url,
            username=config.username,
            password=config.password,
            max_connections=config.max_connections,
            socket_timeout=config.socket_timeout,
            decode_responses=False,  # We handle decoding manually
        )
        try:
            await redis_client.ping()  # pyright: ignore[reportGeneralTypeIssues]
        except RedisError as exc:
            await redis_client.aclose()
            raise StoreConnectionError(f"Could not connect to Redis at {config.url}: {exc}") from exc
        logger.info("Connected to Redis at %s", config.url)
        return cls(redis_client)

    async def append(self, stream: str, fields: dict[str, str], record_id: str = "*") -> str:
        """Append *fields* to *stream* and return the id the store assigned.

        Values must already be strings; callers serialize lists themselves.
        """
        entry_id = await self._redis.xadd(stream, fields, id=record_id)  # type: ignore[arg-type]
        return decode(entry_id)

    async def blocking_read(self, stream: str, after_id: str, block_ms: int, count: int) -> list[StreamEntry] | None:
        """Read up to *count* entries after *after_id*, waiting up to *block_ms*.

        Returns:
            Entries in append order, or ``None`` when the block window elapsed
            with nothing new.

        Raises:
            TransientReadError: The read failed; the caller may retry it.
        """
        try:
            raw = await self._redis.xread({stream: after_id}, count=count, block=block_ms)
        except RedisError as exc:
            raise TransientReadError(f"XREAD on {stream} failed: {exc}") from exc

        if not raw:
            return None

        entries: list[StreamEntry] = []
        for _stream_name, stream_entries in raw:
            for entry_id, data in stream_entries:
                entries.append((decode(entry_id), {decode(k): decode(v) for k, v in data.items()}))
        return entries or None

    async def delete(self, stream: str, record_id: str) -> int:
        """Delete one entry by id. Deleting a missing id returns 0."""
        return int(await self._redis.xdel(stream, record_id))

    async def close(self) -> None:
        await self._redis.aclose()
