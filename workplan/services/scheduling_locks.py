"""
Per-user locks for scheduling operations.

Two operations touching the same user's calendar must not interleave their
read-allocate-write cycles. Locks are always taken in sorted user-id order.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable


class SchedulingLocks:
    """Registry of one asyncio.Lock per user."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, user_ids: Iterable[str]) -> AsyncIterator[None]:
        acquired: list[asyncio.Lock] = []
        try:
            for user_id in sorted({user_id for user_id in user_ids if user_id}):
                lock = self._lock_for(user_id)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
