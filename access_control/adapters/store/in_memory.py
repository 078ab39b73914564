"""In-memory key-value store.

Notes:
- Per-process only: running multiple workers gives each its own data.
- Expiry is lazy: a key past its deadline is dropped when next touched.
- Guarded by a lock; the async methods never await while holding it.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from access_control.adapters.store.base import AbstractKeyValueStore


@dataclass
class _Entry:
    value: dict[Any, Any]
    expires_at: float | None = field(default=None)


def _rank_slice(size: int, start: int, stop: int) -> slice:
    """Translate inclusive Redis rank bounds into a Python slice."""
    if start < 0:
        start = max(size + start, 0)
    if stop < 0:
        stop = size + stop
    if start > stop or start >= size:
        return slice(0, 0)
    return slice(start, min(stop, size - 1) + 1)


class InMemoryKeyValueStore(AbstractKeyValueStore):
    """Dictionary-backed store mimicking the Redis commands in use.

    Hashes hold string fields; sorted sets map member to score and are kept
    ordered by ``(score, member)`` on read, as Redis does.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._data: dict[str, _Entry] = {}

    def _live(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            del self._data[key]
            return None
        return entry

    def _sorted_members(self, key: str) -> list[int]:
        entry = self._live(key)
        if entry is None:
            return []
        return [m for m, _ in sorted(entry.value.items(), key=lambda kv: (kv[1], kv[0]))]

    def _drop_if_empty(self, key: str) -> None:
        entry = self._data.get(key)
        if entry is not None and not entry.value:
            del self._data[key]

    async def hset(self, key: str, mapping: Mapping[str, str | int]) -> None:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                entry = _Entry(value={})
                self._data[key] = entry
            entry.value.update({k: str(v) for k, v in mapping.items()})

    async def hgetall(self, key: str) -> dict[str, str]:
        with self._lock:
            entry = self._live(key)
            return dict(entry.value) if entry is not None else {}

    async def expire(self, key: str, seconds: int) -> bool:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return False
            entry.expires_at = self._clock() + seconds
            return True

    async def ttl(self, key: str) -> int:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return -2
            if entry.expires_at is None:
                return -1
            return max(0, int(math.ceil(entry.expires_at - self._clock())))

    async def zadd(self, key: str, member: int, score: int) -> None:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                entry = _Entry(value={})
                self._data[key] = entry
            entry.value[int(member)] = int(score)

    async def zremrangebyscore(self, key: str, min_score: int, max_score: int) -> int:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return 0
            doomed = [m for m, s in entry.value.items() if min_score <= s <= max_score]
            for member in doomed:
                del entry.value[member]
            self._drop_if_empty(key)
            return len(doomed)

    async def zrange(self, key: str, start: int, stop: int) -> list[int]:
        with self._lock:
            members = self._sorted_members(key)
            return members[_rank_slice(len(members), start, stop)]

    async def zremrangebyrank(self, key: str, start: int, stop: int) -> int:
        with self._lock:
            members = self._sorted_members(key)
            doomed = members[_rank_slice(len(members), start, stop)]
            if not doomed:
                return 0
            entry = self._data[key]
            for member in doomed:
                del entry.value[member]
            self._drop_if_empty(key)
            return len(doomed)

    async def zrange_batch(self, keys: Sequence[str]) -> list[list[int]]:
        with self._lock:
            return [self._sorted_members(key) for key in keys]

    async def ping(self) -> bool:
        return True

    def clear(self) -> None:
        """Drop all data. For testing."""
        with self._lock:
            self._data.clear()
