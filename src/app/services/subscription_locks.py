"""Per-subscription mutual exclusion

User-triggered calls and the renewal sweep take the same lock for a
(guild, feature) pair so neither clobbers the other's write.
"""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Tuple


class SubscriptionLocks:
    """One asyncio.Lock per (guild_id, feature_id), created on demand"""

    def __init__(self):
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)
        self._waiters: Dict[Tuple[str, str], int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, guild_id: str, feature_id: str) -> AsyncIterator[None]:
        key = (guild_id, feature_id)
        self._waiters[key] += 1
        try:
            async with self._locks[key]:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                # nobody else holds or waits on it
                del self._waiters[key]
                del self._locks[key]

    def is_locked(self, guild_id: str, feature_id: str) -> bool:
        lock = self._locks.get((guild_id, feature_id))
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
