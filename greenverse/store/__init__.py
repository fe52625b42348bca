"""
Progress persistence adapters

- InMemoryProgressStore: offline/demo mode and tests
- PostgresProgressStore: online mode (psycopg)

The same engine and service run on top of either.
"""

import logging

from greenverse.exceptions import ConfigurationError
from greenverse.store.base import ProgressStore, ProgressTransaction
from greenverse.store.memory import InMemoryProgressStore

logger = logging.getLogger(__name__)


def create_store(backend: str, database_url: str = "") -> ProgressStore:
    """
    Build the store for a configured backend

    Args:
        backend: 'memory' or 'postgres'
        database_url: Connection string for the postgres backend
    """
    if backend == "memory":
        return InMemoryProgressStore()

    if backend == "postgres":
        # psycopg is only needed in online mode
        from greenverse.store.postgres import PostgresProgressStore
        return PostgresProgressStore(database_url)

    raise ConfigurationError(f"Unknown store backend '{backend}'", config_key="STORE_BACKEND")


__all__ = [
    "ProgressStore",
    "ProgressTransaction",
    "InMemoryProgressStore",
    "create_store",
]
