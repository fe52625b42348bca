"""PostgreSQL progress store"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, List, Optional

import psycopg
import pydantic
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from greenverse.config import DATABASE_URL
from greenverse.exceptions import wrap_external_exception
from greenverse.models.progress import ProgressState
from greenverse.store.base import ProgressStore, ProgressTransaction

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS user_progress (
    user_id TEXT PRIMARY KEY,
    data JSONB NOT NULL,
    total_points INTEGER NOT NULL DEFAULT 0,
    last_activity TIMESTAMPTZ,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS idx_user_progress_points ON user_progress (total_points DESC);
CREATE INDEX IF NOT EXISTS idx_user_progress_activity ON user_progress (last_activity DESC);
"""

UPSERT_SQL = """
INSERT INTO user_progress (user_id, data, total_points, last_activity, updated_at)
VALUES (%s, %s, %s, %s, now())
ON CONFLICT (user_id) DO UPDATE
SET data = EXCLUDED.data,
    total_points = EXCLUDED.total_points,
    last_activity = EXCLUDED.last_activity,
    updated_at = now()
"""


def _load(row: Optional[dict]) -> Optional[ProgressState]:
    if row is None:
        return None
    return ProgressState.model_validate(row["data"])


def _upsert_params(progress: ProgressState) -> tuple:
    return (
        progress.user_id,
        Jsonb(progress.model_dump(mode="json")),
        progress.total_points,
        progress.last_activity_date,
    )


class _PostgresTransaction(ProgressTransaction):
    def __init__(self, conn: psycopg.AsyncConnection, user_id: str, progress: Optional[ProgressState]):
        super().__init__(user_id, progress)
        self._conn = conn

    async def save(self, progress: ProgressState) -> None:
        async with self._conn.cursor() as cur:
            await cur.execute(UPSERT_SQL, _upsert_params(progress))


class PostgresProgressStore(ProgressStore):
    """Progress snapshots as JSONB rows, one per user"""

    backend = "postgres"

    def __init__(self, connection_string: str = DATABASE_URL):
        self.connection_string = connection_string
        self._pool: Optional[AsyncConnectionPool] = None

    async def open(self) -> None:
        """Initialize connection pool and schema"""
        logger.info("Initializing database connection pool")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=2,
            max_size=10,
            open=False
        )
        try:
            await self._pool.open()
            async with self.connection() as conn:
                await conn.execute(CREATE_TABLE_SQL)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="open_store")

    async def close(self) -> None:
        """Close connection pool"""
        if self._pool:
            logger.info("Closing database connection pool")
            await self._pool.close()

    async def ping(self) -> bool:
        """Run SELECT 1 against the pool"""
        try:
            async with self.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT 1")
                    await cur.fetchone()
            return True
        except (psycopg.Error, RuntimeError) as e:
            logger.error(f"Database health check failed: {e}")
            return False

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Get database connection from pool"""
        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.connection() as conn:
            conn.row_factory = dict_row
            yield conn

    async def get(self, user_id: str) -> Optional[ProgressState]:
        try:
            async with self.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT data FROM user_progress WHERE user_id = %s", (user_id,))
                    return _load(await cur.fetchone())
        except (psycopg.Error, pydantic.ValidationError) as e:
            raise wrap_external_exception(e, operation="get_progress", user_id=user_id)

    async def save(self, progress: ProgressState) -> None:
        try:
            async with self.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(UPSERT_SQL, _upsert_params(progress))
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="save_progress", user_id=progress.user_id)

    async def all(self) -> List[ProgressState]:
        try:
            async with self.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT data FROM user_progress ORDER BY total_points DESC")
                    return [_load(row) for row in await cur.fetchall()]
        except (psycopg.Error, pydantic.ValidationError) as e:
            raise wrap_external_exception(e, operation="list_progress")

    @asynccontextmanager
    async def transaction(self, user_id: str) -> AsyncIterator[ProgressTransaction]:
        """
        Serialize read-modify-write per user

        The advisory lock also covers users with no row yet, which
        SELECT ... FOR UPDATE cannot.
        """
        try:
            async with self.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor() as cur:
                        await cur.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (user_id,))
                        await cur.execute(
                            "SELECT data FROM user_progress WHERE user_id = %s FOR UPDATE",
                            (user_id,),
                        )
                        current = _load(await cur.fetchone())
                    yield _PostgresTransaction(conn, user_id, current)
        except (psycopg.Error, pydantic.ValidationError) as e:
            raise wrap_external_exception(e, operation="progress_transaction", user_id=user_id)
