"""
Keyed asyncio locks for serializing party mutations.

One lock per key ("party:<id>", "player:<id>"), created on demand and dropped
once no coroutine holds or waits on it. Several keys are always acquired in
sorted order so two workflows touching the same keys cannot deadlock.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Iterable, List


def party_key(party_id: int) -> str:
    return f"party:{party_id}"


def player_key(player_id: str) -> str:
    return f"player:{player_id}"


class KeyedLockRegistry:
    """In-memory registry of asyncio locks addressed by string keys.

    Note: locks only serialize coroutines of this process. Running several bot
    processes against one database is outside what this protects.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def _checkout(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
            self._users[key] = 0
        self._users[key] += 1
        return lock

    def _release(self, key: str):
        self._users[key] -= 1
        if self._users[key] == 0:
            del self._users[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, *keys: str):
        """Hold every lock in ``keys`` for the duration of the block."""
        ordered: List[str] = sorted(set(keys))
        acquired: List[asyncio.Lock] = []
        for key in ordered:
            self._checkout(key)
        try:
            for key in ordered:
                lock = self._locks[key]
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in ordered:
                self._release(key)

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def active_keys(self) -> Iterable[str]:
        return list(self._locks)
