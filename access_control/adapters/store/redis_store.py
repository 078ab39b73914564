"""Redis-backed key-value store.

Wraps a ``redis.asyncio.Redis`` client created once at process start and
shared across requests. Redis errors are not caught here; they reach the
caller unchanged.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import redis.asyncio as redis

from access_control.adapters.store.base import AbstractKeyValueStore

logger = logging.getLogger(__name__)


class RedisKeyValueStore(AbstractKeyValueStore):
    """Store implementation talking to a Redis server."""

    def __init__(self, client: redis.Redis) -> None:
        """Initialize the store around an existing client.

        Args:
            client: Async Redis client. Must be created with
                ``decode_responses=True`` so hashes come back as ``str``.
        """
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float | None = None) -> "RedisKeyValueStore":
        """Build a store with its own connection pool."""
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=socket_timeout,
        )
        return cls(client)

    async def hset(self, key: str, mapping: Mapping[str, str | int]) -> None:
        await self._client.hset(key, mapping={k: str(v) for k, v in mapping.items()})

    async def hgetall(self, key: str) -> dict[str, str]:
        return await self._client.hgetall(key) or {}

    async def expire(self, key: str, seconds: int) -> bool:
        return bool(await self._client.expire(key, seconds))

    async def ttl(self, key: str) -> int:
        return int(await self._client.ttl(key))

    async def zadd(self, key: str, member: int, score: int) -> None:
        await self._client.zadd(key, {str(member): score})

    async def zremrangebyscore(self, key: str, min_score: int, max_score: int) -> int:
        return int(await self._client.zremrangebyscore(key, min_score, max_score))

    async def zrange(self, key: str, start: int, stop: int) -> list[int]:
        members = await self._client.zrange(key, start, stop)
        return [int(m) for m in members]

    async def zremrangebyrank(self, key: str, start: int, stop: int) -> int:
        return int(await self._client.zremrangebyrank(key, start, stop))

    async def zrange_batch(self, keys: Sequence[str]) -> list[list[int]]:
        if not keys:
            return []
        async with self._client.pipeline(transaction=False) as pipe:
            for key in keys:
                pipe.zrange(key, 0, -1)
            results = await pipe.execute()
        return [[int(m) for m in members] for members in results]

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        logger.debug("store.closing", extra={"backend": "redis"})
        await self._client.aclose()
