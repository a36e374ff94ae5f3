"""Keyed asyncio locks with bounded acquisition.

One registry per resource kind (accounts, markets). Holding the lock for a key
is the in-process critical section; the SQL layer adds its own row-level
guards for multi-process deployments. A key's lock lives only while someone
holds or waits for it.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from config.settings import settings
from src.pm_common.errors import BusyError


class KeyedLocks:
    def __init__(self, resource: str, timeout: float) -> None:
        self._resource = resource
        self._timeout = timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Acquire the lock for ``key`` or raise BusyError after the timeout."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            try:
                async with asyncio.timeout(self._timeout):
                    await lock.acquire()
            except TimeoutError:
                raise BusyError(self._resource, key) from None
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    @asynccontextmanager
    async def hold_many(self, keys: list[str]) -> AsyncIterator[None]:
        """Acquire several keys in sorted order so two callers never deadlock."""
        async with _nested(self, sorted(set(keys))):
            yield


@asynccontextmanager
async def _nested(locks: KeyedLocks, keys: list[str]) -> AsyncIterator[None]:
    if not keys:
        yield
        return
    async with locks.hold(keys[0]):
        async with _nested(locks, keys[1:]):
            yield


account_locks = KeyedLocks("account", settings.LOCK_TIMEOUT_SECONDS)
market_locks = KeyedLocks("market", settings.LOCK_TIMEOUT_SECONDS)
