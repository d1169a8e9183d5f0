# src/threadcore/sessions/locks.py
"""Per-thread advisory locks for the session read-modify-write cycle."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class _LockEntry:
    __slots__ = ("lock", "waiters")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.waiters = 0


class ThreadLockRegistry:
    """
    In-process mutex keyed by thread id.

    Entries exist only while some task holds or waits for them. This only
    serializes writers inside one process; separate processes sharing a
    Redis cache still race (last writer wins).
    """

    def __init__(self) -> None:
        self._entries: Dict[str, _LockEntry] = {}

    @asynccontextmanager
    async def hold(self, thread_id: str) -> AsyncIterator[None]:
        entry = self._entries.get(thread_id)
        if entry is None:
            entry = self._entries[thread_id] = _LockEntry()
        entry.waiters += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.waiters -= 1
            if entry.waiters == 0:
                self._entries.pop(thread_id, None)

    def is_locked(self, thread_id: str) -> bool:
        entry = self._entries.get(thread_id)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)
