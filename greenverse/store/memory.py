"""
In-Memory Progress Store

Backs offline/demo mode and tests. Nothing is persisted across processes;
create one instance per process (or per test).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from greenverse.models.progress import ProgressState
from greenverse.store.base import ProgressStore, ProgressTransaction

logger = logging.getLogger(__name__)


class _MemoryTransaction(ProgressTransaction):
    def __init__(self, store: "InMemoryProgressStore", user_id: str, progress: Optional[ProgressState]):
        super().__init__(user_id, progress)
        self._store = store

    async def save(self, progress: ProgressState) -> None:
        self._store._put(progress)


class InMemoryProgressStore(ProgressStore):
    """Dict-backed store with one asyncio lock per user"""

    backend = "memory"

    def __init__(self):
        self._progress: Dict[str, ProgressState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_holders: Dict[str, int] = {}
        logger.info("InMemoryProgressStore initialized - progress is NOT persisted across restarts")

    async def get(self, user_id: str) -> Optional[ProgressState]:
        progress = self._progress.get(user_id)
        return progress.model_copy(deep=True) if progress else None

    async def save(self, progress: ProgressState) -> None:
        self._put(progress)

    async def all(self) -> List[ProgressState]:
        return [p.model_copy(deep=True) for p in self._progress.values()]

    @asynccontextmanager
    async def transaction(self, user_id: str) -> AsyncIterator[ProgressTransaction]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_holders[user_id] = self._lock_holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield _MemoryTransaction(self, user_id, await self.get(user_id))
        finally:
            # Drop the lock once nobody holds or waits on it
            self._lock_holders[user_id] -= 1
            if not self._lock_holders[user_id]:
                del self._lock_holders[user_id]
                del self._locks[user_id]

    async def clear(self) -> None:
        """Drop all progress"""
        self._progress.clear()

    def _put(self, progress: ProgressState) -> None:
        self._progress[progress.user_id] = progress.model_copy(deep=True)
        logger.debug(f"Saved progress for user {progress.user_id} to memory store")
