"""Process-lifetime cache of relocated asset URLs with per-key claims."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator


@dataclass
class _KeyLock:
    lock: asyncio.Lock
    waiters: int = 0


class RelocationClaim:
    """Exclusive right to relocate one cache key, valid inside `RelocationCache.claim`."""

    def __init__(self, cache: "RelocationCache", key: str) -> None:
        self._cache = cache
        self.key = key

    @property
    def url(self) -> str | None:
        return self._cache.get(self.key)

    def commit(self, url: str) -> str:
        return self._cache._commit(self.key, url)


class RelocationCache:
    """Namespaced task id -> durable storage URL.

    Entries are written once and never evicted. Failures are not cached, so a
    later claim re-attempts the upload. Claims on the same key are serialized
    by a per-key lock that is dropped once nobody holds or waits for it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._locks: dict[str, _KeyLock] = {}

    def get(self, key: str) -> str | None:
        return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def pending_claims(self) -> int:
        return len(self._locks)

    def _commit(self, key: str, url: str) -> str:
        return self._entries.setdefault(key, url)

    @asynccontextmanager
    async def claim(self, key: str) -> AsyncIterator[RelocationClaim]:
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock(asyncio.Lock())
        entry.waiters += 1
        try:
            async with entry.lock:
                yield RelocationClaim(self, key)
        finally:
            entry.waiters -= 1
            if entry.waiters == 0 and self._locks.get(key) is entry:
                del self._locks[key]


__all__ = ["RelocationCache", "RelocationClaim"]
