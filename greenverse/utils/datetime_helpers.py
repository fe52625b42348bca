"""
Standardized Date/Time Handling Utilities

All game-day arithmetic (streaks, "completed today" checks, leaderboard
windows) goes through this module so the day boundary is defined once.

RULES:
- A game day is a UTC calendar day
- Timestamps are stored timezone-aware in UTC (use to_utc())
- Naive datetimes are assumed to already be UTC
- Never mix naive and aware datetimes
"""

import logging
from datetime import datetime, date, timedelta, timezone
from typing import Optional

logger = logging.getLogger(__name__)


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert datetime to UTC

    Args:
        dt: Datetime to convert (naive values are treated as UTC)

    Returns:
        Timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def game_day(dt: datetime) -> date:
    """UTC calendar day a timestamp falls on"""
    return to_utc(dt).date()


def days_between(earlier: datetime, later: datetime) -> int:
    """
    Number of game-day boundaries crossed between two timestamps

    Same UTC day is 0, consecutive days are 1, and so on. The value is
    negative if `earlier` is actually later.
    """
    return (game_day(later) - game_day(earlier)).days


def is_same_game_day(a: Optional[datetime], b: datetime) -> bool:
    """Check if two timestamps fall on the same UTC calendar day"""
    if a is None:
        return False
    return game_day(a) == game_day(b)


def subtract_months(dt: datetime, months: int) -> datetime:
    """
    Step back whole calendar months, clamping the day to the target month

    e.g. 31 March minus one month is 28/29 February
    """
    month_index = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1

    # Last day of the target month
    if month == 12:
        next_month = dt.replace(year=year + 1, month=1, day=1)
    else:
        next_month = dt.replace(year=year, month=month + 1, day=1)
    last_day = (next_month - timedelta(days=1)).day

    return dt.replace(year=year, month=month, day=min(dt.day, last_day))
