"""
Daily Activity Streak Tracking

A streak counts consecutive UTC calendar days with at least one qualifying
action (challenge completion or quiz submission).

Transitions on a qualifying action:
- Last activity today (or later than this action): unchanged
- Last activity yesterday: +1
- Anything else (gap of 2+ days, or first activity ever): reset to 1

Longest streak is tracked in the progress statistics.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
import logging

from greenverse.models.progress import ProgressState
from greenverse.utils.datetime_helpers import days_between, is_same_game_day, now_utc, to_utc

logger = logging.getLogger(__name__)

# Streak lengths that get a celebratory message
STREAK_MILESTONES = (7, 14, 30, 100)


class StreakState(str, Enum):
    """Whether today's qualifying action has happened yet"""
    NO_ACTIVITY_TODAY = "no_activity_today"
    ACTIVE_TODAY = "active_today"


@dataclass(frozen=True)
class StreakUpdate:
    """Outcome of a single streak transition"""
    current_streak: int
    old_streak: int
    longest_streak: int
    continued: bool
    reset: bool
    milestone_reached: bool
    message: str


def get_streak_state(progress: ProgressState, now: Optional[datetime] = None) -> StreakState:
    """Current state of the daily streak machine"""
    if now is None:
        now = now_utc()
    if is_same_game_day(progress.last_activity_date, now):
        return StreakState.ACTIVE_TODAY
    return StreakState.NO_ACTIVITY_TODAY


def update_streak(progress: ProgressState, activity_at: Optional[datetime] = None) -> StreakUpdate:
    """
    Apply a qualifying action to the streak

    Mutates `progress` in place; the engine only ever passes its own
    working copy.

    Args:
        progress: Working copy of the user's progress
        activity_at: Timestamp of the action (defaults to now, UTC)

    Returns:
        StreakUpdate describing the transition
    """
    if activity_at is None:
        activity_at = now_utc()
    activity_at = to_utc(activity_at)

    old_streak = progress.streak
    last_activity = progress.last_activity_date
    continued = False
    reset = False

    # First activity ever
    if last_activity is None:
        progress.streak = 1
        reset = True
        message = "Streak started! Day 1 🌱"

    else:
        gap_days = days_between(last_activity, activity_at)

        # Already counted for today, or an out-of-order timestamp
        if gap_days <= 0:
            message = f"Streak continues! Day {progress.streak} 🔥"

        # Next day, continuing streak
        elif gap_days == 1:
            progress.streak += 1
            continued = True
            message = f"Streak continues! Day {progress.streak} 🔥"

        # Gap, start over
        else:
            progress.streak = 1
            reset = True
            message = f"Streak reset. Previous: {old_streak} days. Starting fresh! Day 1 💪"
            logger.info(
                f"User {progress.user_id} streak broken. "
                f"Was {old_streak}, gap was {gap_days} days"
            )

    if last_activity is None or activity_at > to_utc(last_activity):
        progress.last_activity_date = activity_at

    stats = progress.statistics
    if progress.streak > stats.longest_streak:
        stats.longest_streak = progress.streak

    milestone_reached = progress.streak != old_streak and progress.streak in STREAK_MILESTONES
    if milestone_reached:
        message += f"\n🏆 {progress.streak}-day milestone reached!"

    logger.info(
        f"Updated streak for user {progress.user_id}: "
        f"{old_streak} → {progress.streak} days"
    )

    return StreakUpdate(
        current_streak=progress.streak,
        old_streak=old_streak,
        longest_streak=stats.longest_streak,
        continued=continued,
        reset=reset,
        milestone_reached=milestone_reached,
        message=message,
    )


def format_streak_display(progress: ProgressState, now: Optional[datetime] = None) -> str:
    """
    Format the streak for display

    Returns:
        One-line summary including the longest streak
    """
    if progress.last_activity_date is None:
        return "No streak yet. Complete a challenge or quiz to start one! 💪"

    state = get_streak_state(progress, now)
    line = f"🔥 {progress.streak} day streak"
    best = progress.statistics.longest_streak
    if best > progress.streak:
        line += f" (best: {best})"
    if state == StreakState.NO_ACTIVITY_TODAY:
        line += " - act today to keep it going"
    return line
