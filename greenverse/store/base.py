"""Persistence interface for progress snapshots"""
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import List, Optional

from greenverse.models.progress import ProgressState


class ProgressTransaction(ABC):
    """
    Exclusive read-modify-write handle on one user's progress

    `progress` is the stored snapshot at the time the lock was taken, or
    None if the user has no progress yet.
    """

    def __init__(self, user_id: str, progress: Optional[ProgressState]):
        self.user_id = user_id
        self.progress = progress

    @abstractmethod
    async def save(self, progress: ProgressState) -> None:
        """Persist the new snapshot before the lock is released"""


class ProgressStore(ABC):
    """
    Storage for per-user ProgressState snapshots

    Implementations must serialize transactions for the same user.
    """

    backend = "abstract"

    async def open(self) -> None:
        """Acquire resources (connection pools, etc.)"""

    async def close(self) -> None:
        """Release resources"""

    async def ping(self) -> bool:
        """True if the backend is reachable"""
        return True

    @abstractmethod
    async def get(self, user_id: str) -> Optional[ProgressState]:
        """Current snapshot, or None if the user has no progress"""

    @abstractmethod
    async def save(self, progress: ProgressState) -> None:
        """Insert or replace a snapshot without locking"""

    @abstractmethod
    async def all(self) -> List[ProgressState]:
        """Every stored snapshot"""

    @abstractmethod
    def transaction(self, user_id: str) -> AbstractAsyncContextManager[ProgressTransaction]:
        """Lock one user's progress for a read-modify-write cycle"""
