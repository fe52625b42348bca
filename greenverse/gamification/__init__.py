"""
Gamification engine for Greenverse

This module implements the game rules behind challenges and quizzes:
- Points and leveling
- Daily activity streaks
- Badge eligibility and awards
- Leaderboard ranking

Everything here is a pure transformation over a ProgressState; persistence
lives in greenverse.store.
"""

from greenverse.gamification.points_system import award_points, calculate_level, points_to_next_level, score_quiz
from greenverse.gamification.streak_system import update_streak, get_streak_state
from greenverse.gamification.badge_system import check_and_award_badges, get_badge_overview
from greenverse.gamification.engine import (
    Action,
    ActionOutcome,
    apply_action,
    award_badge,
    complete_challenge,
    new_progress,
    submit_quiz,
)
from greenverse.gamification.leaderboard import get_leaderboard
from greenverse.gamification.catalog import Catalog, default_catalog

__all__ = [
    "award_points",
    "calculate_level",
    "points_to_next_level",
    "score_quiz",
    "update_streak",
    "get_streak_state",
    "check_and_award_badges",
    "get_badge_overview",
    "Action",
    "ActionOutcome",
    "apply_action",
    "award_badge",
    "complete_challenge",
    "new_progress",
    "submit_quiz",
    "get_leaderboard",
    "Catalog",
    "default_catalog",
]
