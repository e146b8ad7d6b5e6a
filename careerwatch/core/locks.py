import asyncio
from typing import Dict, Hashable


class KeyedLock:
    """
    One asyncio.Lock per key, created on first use.

    Usage:
        locks = KeyedLock()
        async with locks(url):
            ...
    """

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}

    def get(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __call__(self, key: Hashable) -> asyncio.Lock:
        return self.get(key)
