"""Key-value store interface.

Services depend on this abstraction (not on a concrete client) so the Redis
backend can be swapped for the in-memory fake in tests and single-process
setups. The method names follow the Redis commands they map to.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Sequence


class AbstractKeyValueStore(ABC):
    """Hash, sorted-set and expiry operations used by access control."""

    @abstractmethod
    async def hset(self, key: str, mapping: Mapping[str, str | int]) -> None:
        """Write fields into the hash at ``key``."""
        raise NotImplementedError

    @abstractmethod
    async def hgetall(self, key: str) -> dict[str, str]:
        """Return every field of the hash, or an empty dict when absent."""
        raise NotImplementedError

    @abstractmethod
    async def expire(self, key: str, seconds: int) -> bool:
        """Set the key's time-to-live. Returns False when the key is missing."""
        raise NotImplementedError

    @abstractmethod
    async def ttl(self, key: str) -> int:
        """Remaining TTL in seconds; -1 without expiry, -2 when missing."""
        raise NotImplementedError

    @abstractmethod
    async def zadd(self, key: str, member: int, score: int) -> None:
        """Add ``member`` with ``score`` to the sorted set."""
        raise NotImplementedError

    @abstractmethod
    async def zremrangebyscore(self, key: str, min_score: int, max_score: int) -> int:
        """Remove members with ``min_score <= score <= max_score``."""
        raise NotImplementedError

    @abstractmethod
    async def zrange(self, key: str, start: int, stop: int) -> list[int]:
        """Return members by rank (inclusive, negative indexes allowed)."""
        raise NotImplementedError

    @abstractmethod
    async def zremrangebyrank(self, key: str, start: int, stop: int) -> int:
        """Remove members by rank (inclusive, negative indexes allowed)."""
        raise NotImplementedError

    @abstractmethod
    async def zrange_batch(self, keys: Sequence[str]) -> list[list[int]]:
        """Read every member of each sorted set in one round trip.

        Results are returned in the order of ``keys``. The batch is not a
        transaction: individual reads may observe different instants.
        """
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Check connectivity."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release connections held by the store."""
        return None
