"""
Badge System

Evaluates and awards badges after every qualifying action.

Criteria types (badge.criteria['type']):
- action: the triggering action matches (e.g. first quiz)
- quiz_percentage: quiz submitted with at least `value` percent
- challenge_count: total challenges completed
- streak: current daily streak
- level: current level
- total_points: accumulated points

Features:
- Idempotent: earned badges are skipped, never re-scored
- Badge points feed back into the total, so one badge can unlock another
- Progress tracking for locked badges
"""

from typing import Any, Callable, Dict, List, Optional
from datetime import datetime
import logging

from greenverse.gamification.points_system import award_points
from greenverse.models.catalog import Badge
from greenverse.models.progress import EarnedBadge, ProgressState
from greenverse.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)

# Qualifying action names
CHALLENGE_COMPLETE = "challenge-complete"
QUIZ_COMPLETE = "quiz-complete"
BADGE_AWARD = "badge-award"


def check_and_award_badges(
    progress: ProgressState,
    badges: List[Badge],
    action: str,
    context: Optional[Dict[str, Any]] = None,
    earned_at: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Award every badge whose criteria the post-action progress meets

    Mutates `progress` (the engine's working copy). Passes repeat until no
    new badge qualifies, so points from one badge can unlock a level or
    points badge in the same action.

    Args:
        progress: Working copy of the user's progress
        badges: Active badge definitions, in evaluation order
        action: Triggering action ('challenge-complete', 'quiz-complete')
        context: Action details (e.g. {'percentage': 92})
        earned_at: Unlock timestamp (defaults to now, UTC)

    Returns:
        List of newly unlocked badges:
        [
            {
                'id': str,
                'name': str,
                'description': str,
                'icon': str,
                'points': int,
                'earned_at': datetime
            }
        ]
    """
    context = context or {}
    earned_at = earned_at or now_utc()
    newly_unlocked: List[Dict[str, Any]] = []

    while True:
        awarded_this_pass = False

        for badge in badges:
            # Skip if already earned
            if badge.id in progress.earned_badge_ids:
                continue

            if is_badge_earned(badge, progress, action, context):
                newly_unlocked.append(grant_badge(progress, badge, earned_at))
                awarded_this_pass = True

        if not awarded_this_pass:
            break

    return newly_unlocked


def grant_badge(progress: ProgressState, badge: Badge, earned_at: datetime) -> Dict[str, Any]:
    """
    Record a badge and add its points

    Level is recomputed straight away so later criteria in the same pass
    see it.
    """
    result = award_points(progress.total_points, badge.points)

    progress.earned_badges.append(
        EarnedBadge(badge_id=badge.id, points=badge.points, earned_at=earned_at)
    )
    progress.total_points = result["total_points"]
    progress.level = result["new_level"]
    progress.statistics.badges_earned += 1

    logger.info(
        f"User {progress.user_id} unlocked badge: {badge.id} "
        f"({badge.name}) +{badge.points} points"
    )
    if result["leveled_up"]:
        logger.info(
            f"User {progress.user_id} leveled up from {result['old_level']} "
            f"to {result['new_level']} via badge {badge.id}"
        )

    return {
        "id": badge.id,
        "name": badge.name,
        "description": badge.description,
        "icon": badge.icon,
        "points": badge.points,
        "earned_at": earned_at,
    }


def is_badge_earned(
    badge: Badge,
    progress: ProgressState,
    action: str,
    context: Dict[str, Any],
) -> bool:
    """Check one badge's criteria against the post-action progress"""
    criteria = badge.criteria
    check = _CRITERIA_CHECKS.get(criteria.get("type"))

    if check is None:
        # Special badges are only ever granted explicitly
        return False

    return check(criteria, progress, action, context)


# ============================================
# Helper Functions for Badge Criteria
# ============================================

def _check_action(criteria: Dict, progress: ProgressState, action: str, context: Dict) -> bool:
    """Triggering action matches"""
    return action == criteria["action"]


def _check_quiz_percentage(criteria: Dict, progress: ProgressState, action: str, context: Dict) -> bool:
    """Quiz submitted with a high enough score"""
    if action != criteria.get("action", QUIZ_COMPLETE):
        return False
    return context.get("percentage", 0) >= criteria["value"]


def _check_challenge_count(criteria: Dict, progress: ProgressState, action: str, context: Dict) -> bool:
    """Total challenges completed"""
    return progress.statistics.challenges_completed >= criteria["value"]


def _check_streak(criteria: Dict, progress: ProgressState, action: str, context: Dict) -> bool:
    """Current daily streak"""
    return progress.streak >= criteria["value"]


def _check_level(criteria: Dict, progress: ProgressState, action: str, context: Dict) -> bool:
    """Level milestone"""
    return progress.level >= criteria["value"]


def _check_total_points(criteria: Dict, progress: ProgressState, action: str, context: Dict) -> bool:
    """Total points milestone"""
    return progress.total_points >= criteria["value"]


_CRITERIA_CHECKS: Dict[str, Callable[[Dict, ProgressState, str, Dict], bool]] = {
    "action": _check_action,
    "quiz_percentage": _check_quiz_percentage,
    "challenge_count": _check_challenge_count,
    "streak": _check_streak,
    "level": _check_level,
    "total_points": _check_total_points,
}


# ============================================
# Progress toward locked badges
# ============================================

def badge_progress(progress: ProgressState, badge: Badge) -> Dict[str, Any]:
    """
    Calculate progress toward a badge

    Returns:
        {
            'current': int,
            'required': int,
            'percentage': int,
            'description': str
        }
    """
    criteria = badge.criteria
    criteria_type = criteria.get("type")

    current = 0
    required = criteria.get("value", 1)

    if badge.id in progress.earned_badge_ids:
        current = required

    elif criteria_type == "challenge_count":
        current = progress.statistics.challenges_completed

    elif criteria_type == "streak":
        current = progress.streak

    elif criteria_type == "level":
        current = progress.level

    elif criteria_type == "total_points":
        current = progress.total_points

    elif criteria_type == "quiz_percentage":
        current = max((q.percentage for q in progress.completed_quizzes), default=0)

    elif criteria_type == "action":
        # One-off actions are either done or not
        required = 1
        if criteria.get("action") == QUIZ_COMPLETE:
            current = min(progress.statistics.quizzes_completed, 1)
        elif criteria.get("action") == CHALLENGE_COMPLETE:
            current = min(progress.statistics.challenges_completed, 1)

    percentage = min(100, int((current / required * 100)) if required > 0 else 0)

    return {
        "current": current,
        "required": required,
        "percentage": percentage,
        "description": f"{current}/{required}",
    }


def get_badge_overview(progress: ProgressState, badges: List[Badge]) -> Dict[str, Any]:
    """
    Unlocked and locked badges for a user

    Returns:
        {
            'unlocked': [badges with earned_at, newest first],
            'locked': [badges with progress, closest to completion first],
            'total_unlocked': int,
            'total_badges': int,
            'total_points_from_badges': int
        }
    """
    earned = {b.badge_id: b for b in progress.earned_badges}

    unlocked = []
    locked = []
    for badge in badges:
        entry = {
            "id": badge.id,
            "name": badge.name,
            "description": badge.description,
            "icon": badge.icon,
            "category": badge.category.value,
            "points": badge.points,
        }
        if badge.id in earned:
            entry["earned_at"] = earned[badge.id].earned_at
            unlocked.append(entry)
        else:
            entry["progress"] = badge_progress(progress, badge)
            locked.append(entry)

    unlocked.sort(key=lambda x: x["earned_at"], reverse=True)
    locked.sort(key=lambda x: x["progress"]["percentage"], reverse=True)

    return {
        "unlocked": unlocked,
        "locked": locked,
        "total_unlocked": len(unlocked),
        "total_badges": len(badges),
        "total_points_from_badges": sum(b.points for b in progress.earned_badges),
    }


def format_badge_unlock_message(badge: Dict[str, Any]) -> str:
    """
    Format badge unlock message for celebration

    Args:
        badge: Badge data from check_and_award_badges()
    """
    return (
        f"🎉 BADGE UNLOCKED! {badge['icon']} {badge['name']}\n"
        f"{badge['description']}\n"
        f"⭐ +{badge['points']} points"
    )
