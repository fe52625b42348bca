"""
Leaderboard Ranking

Ranks users by total points (descending), breaking ties by most recent
activity. Periods restrict the board to users active in the window:
- weekly: last 7 days (default)
- monthly: last calendar month
- all-time: everyone
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional
import logging

from greenverse.exceptions import ValidationError
from greenverse.models.progress import LeaderboardEntry, ProgressState
from greenverse.utils.datetime_helpers import now_utc, subtract_months, to_utc

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
PERIODS = ("weekly", "monthly", "all-time")

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


def period_start(period: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Earliest activity timestamp included in a period

    Returns None for all-time.

    Raises:
        ValidationError: Unknown period
    """
    if period not in PERIODS:
        raise ValidationError(
            f"Unknown leaderboard period '{period}'",
            field="period",
            value=period,
        )

    now = to_utc(now) if now is not None else now_utc()
    if period == "weekly":
        return now - timedelta(days=7)
    if period == "monthly":
        return subtract_months(now, 1)
    return None


def get_leaderboard(
    all_progress: Iterable[ProgressState],
    period: str = "weekly",
    now: Optional[datetime] = None,
    limit: int = DEFAULT_LIMIT,
) -> List[LeaderboardEntry]:
    """
    Build the ranked leaderboard

    Args:
        all_progress: Every user's progress snapshot
        period: 'weekly', 'monthly' or 'all-time'
        now: Reference time for the period window (defaults to now, UTC)
        limit: Maximum number of rows

    Returns:
        Ranked entries, rank starting at 1
    """
    since = period_start(period, now)

    def last_activity(p: ProgressState) -> datetime:
        return to_utc(p.last_activity_date) if p.last_activity_date else _NEVER

    candidates = [
        p for p in all_progress
        if since is None or (p.last_activity_date is not None and last_activity(p) >= since)
    ]

    candidates.sort(key=lambda p: (p.total_points, last_activity(p)), reverse=True)

    board = [
        LeaderboardEntry(
            rank=index + 1,
            user_id=p.user_id,
            total_points=p.total_points,
            level=p.level,
            streak=p.streak,
            badge_count=len(p.earned_badges),
            challenges_completed=p.statistics.challenges_completed,
            quizzes_completed=p.statistics.quizzes_completed,
            last_activity=p.last_activity_date,
        )
        for index, p in enumerate(candidates[:limit])
    ]

    logger.debug(f"Built {period} leaderboard with {len(board)} of {len(candidates)} users")
    return board
