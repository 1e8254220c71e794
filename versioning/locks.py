"""Per-landing mutual exclusion for mutating version operations."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager


class UnitLocks:
    """One asyncio.Lock per landing id, dropped once no caller holds or awaits it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, unit_id: str):
        lock = self._locks.get(unit_id)
        if lock is None:
            lock = self._locks[unit_id] = asyncio.Lock()
        self._users[unit_id] = self._users.get(unit_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[unit_id] -= 1
            if self._users[unit_id] == 0:
                del self._users[unit_id]
                del self._locks[unit_id]

    def is_locked(self, unit_id: str) -> bool:
        lock = self._locks.get(unit_id)
        return lock is not None and lock.locked()


unit_locks = UnitLocks()
