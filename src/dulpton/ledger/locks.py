"""Per-user serialization of read-modify-write sequences.

Two concurrent collects for the same user would otherwise both read the same
``last_reward_at`` and credit twice. Commands touching a user's balance run
under that user's lock. The registry is per process; multi-process
deployments also rely on the store's row-level write ordering.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class UserLocks:
    """Registry of ``asyncio.Lock`` keyed by user id."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, user_id: int) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, *user_ids: int) -> AsyncIterator[None]:
        """Acquire the locks for ``user_ids`` in ascending order."""
        locks = [self._lock_for(uid) for uid in sorted(set(user_ids))]
        acquired: list[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def is_locked(self, user_id: int) -> bool:
        lock = self._locks.get(user_id)
        return lock is not None and lock.locked()
