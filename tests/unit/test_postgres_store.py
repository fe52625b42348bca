"""Unit tests for the PostgreSQL store (mocked pool, no database required)"""
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

import psycopg

from greenverse.exceptions import ConnectionError, ConsistencyError, QueryError
from greenverse.gamification.engine import new_progress
from greenverse.store.postgres import (
    CREATE_TABLE_SQL,
    UPSERT_SQL,
    PostgresProgressStore,
    _load,
    _upsert_params,
)
from greenverse.models.progress import ChallengeCompletion, ProgressState


@pytest.fixture
def pg_store(mock_db_pool):
    """Store wired to the mock pool"""
    store = PostgresProgressStore("postgresql://localhost/greenverse_test")
    store._pool = mock_db_pool
    return store


def _queries(db_events):
    return [query for kind, query in db_events if kind == "execute"]


# ============================================================================
# Row Helpers
# ============================================================================

def test_upsert_params_round_trip():
    """Snapshot survives JSONB serialization"""
    at = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
    progress = ProgressState(
        user_id="user-42",
        total_points=10,
        streak=1,
        last_activity_date=at,
        completed_challenges=[ChallengeCompletion(challenge_id="lights-off", points=10, completed_at=at)],
    )

    user_id, data, total_points, last_activity = _upsert_params(progress)

    assert user_id == "user-42"
    assert total_points == 10
    assert last_activity == at
    assert _load({"data": data.obj}) == progress


def test_load_missing_row():
    assert _load(None) is None


# ============================================================================
# Pool Lifecycle
# ============================================================================

@pytest.mark.asyncio
async def test_ping_without_pool():
    """Unopened store reports unreachable instead of raising"""
    store = PostgresProgressStore("postgresql://localhost/none")
    assert await store.ping() is False
    assert store.backend == "postgres"


@pytest.mark.asyncio
async def test_ping(pg_store, db_events):
    assert await pg_store.ping() is True
    assert _queries(db_events) == ["SELECT 1"]


@pytest.mark.asyncio
async def test_open_creates_schema(monkeypatch, mock_db_pool, mock_db_connection):
    pool_factory = MagicMock(return_value=mock_db_pool)
    monkeypatch.setattr("greenverse.store.postgres.AsyncConnectionPool", pool_factory)
    store = PostgresProgressStore("postgresql://localhost/greenverse_test")

    await store.open()

    assert pool_factory.call_args.kwargs["open"] is False
    mock_db_pool.open.assert_awaited_once()
    mock_db_connection.execute.assert_awaited_once_with(CREATE_TABLE_SQL)

    await store.close()
    mock_db_pool.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_open_connection_failure(monkeypatch, mock_db_pool):
    mock_db_pool.open.side_effect = psycopg.OperationalError("connection refused")
    monkeypatch.setattr("greenverse.store.postgres.AsyncConnectionPool", MagicMock(return_value=mock_db_pool))
    store = PostgresProgressStore("postgresql://localhost/greenverse_test")

    with pytest.raises(ConnectionError) as exc_info:
        await store.open()

    assert exc_info.value.operation == "open_store"


# ============================================================================
# Reads and Writes
# ============================================================================

@pytest.mark.asyncio
async def test_get(pg_store, mock_db_cursor, progress):
    mock_db_cursor.fetchone.return_value = {"data": progress.model_dump(mode="json")}

    loaded = await pg_store.get(progress.user_id)

    assert loaded == progress
    mock_db_cursor.execute.assert_awaited_once()
    assert mock_db_cursor.execute.call_args.args[1] == (progress.user_id,)


@pytest.mark.asyncio
async def test_get_missing_user(pg_store):
    assert await pg_store.get("nobody") is None


@pytest.mark.asyncio
async def test_get_corrupt_snapshot(pg_store, mock_db_cursor):
    mock_db_cursor.fetchone.return_value = {"data": {"user_id": "user-42", "total_points": "lots"}}

    with pytest.raises(ConsistencyError):
        await pg_store.get("user-42")


@pytest.mark.asyncio
async def test_get_connection_failure(pg_store, mock_db_cursor):
    mock_db_cursor.execute.side_effect = psycopg.OperationalError("server closed the connection")

    with pytest.raises(ConnectionError) as exc_info:
        await pg_store.get("user-42")

    assert exc_info.value.user_id == "user-42"


@pytest.mark.asyncio
async def test_save_upserts(pg_store, mock_db_cursor, progress):
    await pg_store.save(progress)

    query, params = mock_db_cursor.execute.call_args.args
    assert query == UPSERT_SQL
    assert params[0] == progress.user_id


@pytest.mark.asyncio
async def test_save_query_failure(pg_store, mock_db_cursor, progress):
    mock_db_cursor.execute.side_effect = psycopg.DataError("bad value")

    with pytest.raises(QueryError):
        await pg_store.save(progress)


@pytest.mark.asyncio
async def test_all(pg_store, mock_db_cursor):
    mock_db_cursor.fetchall.return_value = [
        {"data": new_progress("alice").model_dump(mode="json")},
        {"data": new_progress("bob").model_dump(mode="json")},
    ]

    assert [p.user_id for p in await pg_store.all()] == ["alice", "bob"]


# ============================================================================
# Transactions
# ============================================================================

@pytest.mark.asyncio
async def test_transaction_locks_user_before_reading(pg_store, db_events, test_user_id):
    """Advisory lock, then row lock, inside one database transaction"""
    async with pg_store.transaction(test_user_id) as txn:
        assert txn.progress is None

    kinds = [kind for kind, _ in db_events]
    queries = _queries(db_events)
    assert kinds == ["begin", "execute", "execute", "end"]
    assert "pg_advisory_xact_lock(hashtext(%s))" in queries[0]
    assert "FOR UPDATE" in queries[1]


@pytest.mark.asyncio
async def test_transaction_save_uses_same_connection(
    pg_store, mock_db_pool, mock_db_connection, mock_db_cursor, db_events, progress
):
    async with pg_store.transaction(progress.user_id) as txn:
        await txn.save(progress)

    mock_db_pool.connection.assert_called_once()
    assert mock_db_connection.cursor.call_count == 2
    assert [kind for kind, _ in db_events][-2:] == ["execute", "end"]
    query, params = mock_db_cursor.execute.call_args.args
    assert query == UPSERT_SQL
    assert params[0] == progress.user_id


@pytest.mark.asyncio
async def test_transaction_loads_existing_snapshot(pg_store, mock_db_cursor, progress):
    progress.total_points = 40
    mock_db_cursor.fetchone.return_value = {"data": progress.model_dump(mode="json")}

    async with pg_store.transaction(progress.user_id) as txn:
        assert txn.progress.total_points == 40


@pytest.mark.asyncio
async def test_transaction_connection_failure(pg_store, mock_db_cursor, test_user_id):
    mock_db_cursor.execute.side_effect = psycopg.OperationalError("connection refused")

    with pytest.raises(ConnectionError) as exc_info:
        async with pg_store.transaction(test_user_id):
            pass

    assert exc_info.value.operation == "progress_transaction"
