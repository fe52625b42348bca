"""Unit tests for leaderboard ranking (greenverse/gamification/leaderboard.py)"""
import pytest
from datetime import datetime, timedelta, timezone

from greenverse.exceptions import ValidationError
from greenverse.gamification.leaderboard import get_leaderboard, period_start
from greenverse.gamification.points_system import calculate_level
from greenverse.models.progress import ProgressState


def _player(user_id, points, last_activity):
    return ProgressState(
        user_id=user_id,
        total_points=points,
        level=calculate_level(points),
        last_activity_date=last_activity,
    )


def test_leaderboard_ranked_by_points(now):
    players = [
        _player("a", 300, now - timedelta(hours=5)),
        _player("b", 300, now - timedelta(hours=1)),
        _player("c", 500, now - timedelta(days=2)),
    ]

    board = get_leaderboard(players, "weekly", now=now)

    assert [e.user_id for e in board] == ["c", "b", "a"]
    assert [e.rank for e in board] == [1, 2, 3]
    assert board[0].total_points == 500


def test_weekly_excludes_inactive_users(now):
    players = [
        _player("recent", 100, now - timedelta(days=6)),
        _player("stale", 900, now - timedelta(days=8)),
        _player("never", 0, None),
    ]

    board = get_leaderboard(players, "weekly", now=now)

    assert [e.user_id for e in board] == ["recent"]


def test_monthly_window(now):
    players = [
        _player("three-weeks", 100, now - timedelta(days=21)),
        _player("two-months", 900, now - timedelta(days=60)),
    ]

    board = get_leaderboard(players, "monthly", now=now)

    assert [e.user_id for e in board] == ["three-weeks"]


def test_all_time_includes_everyone(now):
    players = [
        _player("old", 900, now - timedelta(days=400)),
        _player("never", 0, None),
    ]

    board = get_leaderboard(players, "all-time", now=now)

    assert [e.user_id for e in board] == ["old", "never"]


def test_leaderboard_limit(now):
    players = [_player(f"user-{i}", i * 10, now) for i in range(60)]

    board = get_leaderboard(players, "weekly", now=now)

    assert len(board) == 50
    assert board[0].user_id == "user-59"

    assert len(get_leaderboard(players, "weekly", now=now, limit=5)) == 5


def test_invalid_period_rejected(now):
    with pytest.raises(ValidationError) as exc_info:
        get_leaderboard([], "daily", now=now)
    assert exc_info.value.field == "period"


def test_period_start_monthly_clamps_day():
    now = datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc)
    assert period_start("monthly", now) == datetime(2024, 2, 29, 12, 0, tzinfo=timezone.utc)


def test_period_start_all_time(now):
    assert period_start("all-time", now) is None
