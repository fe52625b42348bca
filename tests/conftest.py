"""Global test fixtures for greenverse tests"""
import random
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from greenverse.gamification.catalog import default_catalog
from greenverse.gamification.engine import new_progress
from greenverse.services.gamification_service import GamificationService
from greenverse.store.memory import InMemoryProgressStore


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def now():
    """Fixed reference time (midday UTC so +/- hours stay on the same day)"""
    return datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for services"""

    def __init__(self, current: datetime):
        self.current = current

    def __call__(self) -> datetime:
        return self.current


@pytest.fixture
def clock(now):
    return FakeClock(now)


# ============================================================================
# Game Fixtures
# ============================================================================

@pytest.fixture
def catalog():
    """Default challenges, quizzes and badges"""
    return default_catalog()


@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-42"


@pytest.fixture
def progress(test_user_id):
    """Fresh progress for the test user"""
    return new_progress(test_user_id)


@pytest.fixture
def perfect_climate_answers():
    """All correct answers for the climate-change quiz"""
    return [1, 2, 1, 3, 1, 2]


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def store():
    """Empty in-memory progress store"""
    return InMemoryProgressStore()


@pytest.fixture
def service(store, catalog, clock):
    """GamificationService on the in-memory store with a fixed clock"""
    return GamificationService(store, catalog, clock=clock, rng=random.Random(7))


@pytest.fixture
def test_api_key():
    """Standard test API key"""
    return "test_api_key_12345"


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db_events():
    """Ordered log of transaction and query events on the mock connection"""
    return []


@pytest.fixture
def mock_db_cursor(db_events):
    """Mock database cursor that logs executed queries"""
    cursor = AsyncMock()
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock(side_effect=lambda query, params=None: db_events.append(("execute", query)))
    return cursor


@pytest.fixture
def mock_db_connection(mock_db_cursor, db_events):
    """Mock database connection whose cursor() and transaction() are async context managers"""
    conn = MagicMock()
    conn.execute = AsyncMock()
    conn.cursor.return_value.__aenter__.return_value = mock_db_cursor
    conn.transaction.return_value.__aenter__.side_effect = lambda *args: db_events.append(("begin", None))
    conn.transaction.return_value.__aexit__.side_effect = lambda *args: db_events.append(("end", None))
    return conn


@pytest.fixture
def mock_db_pool(mock_db_connection):
    """Mock connection pool handing out the mock connection"""
    pool = MagicMock()
    pool.open = AsyncMock()
    pool.close = AsyncMock()
    pool.connection.return_value.__aenter__.return_value = mock_db_connection
    return pool
