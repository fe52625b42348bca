"""
Gamification Engine

Pure state transitions over a single user's ProgressState:

    (progress, action) -> ActionOutcome(progress', points, level-up, badges)

Every operation works on a deep copy of the snapshot it receives. Game-rule
errors (ValidationError, NotFoundError, AlreadyCompletedError,
ConsistencyError) never escape: they come back on ActionOutcome.error with
the untouched input snapshot, so a caller can never persist partial credit.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence
import logging

from greenverse.exceptions import (
    AlreadyCompletedError,
    ConsistencyError,
    GreenverseError,
    NotFoundError,
    ValidationError,
)
from greenverse.gamification.badge_system import (
    BADGE_AWARD,
    CHALLENGE_COMPLETE,
    QUIZ_COMPLETE,
    check_and_award_badges,
    grant_badge,
)
from greenverse.gamification.catalog import DEFAULT_BADGES, Catalog
from greenverse.gamification.points_system import award_points, calculate_level, score_quiz
from greenverse.gamification.streak_system import StreakUpdate, update_streak
from greenverse.models.catalog import Badge, Challenge, Quiz
from greenverse.models.progress import ChallengeCompletion, ProgressState, QuizCompletion
from greenverse.utils.datetime_helpers import is_same_game_day, now_utc, to_utc

logger = logging.getLogger(__name__)


@dataclass
class Action:
    """A game action addressed by catalog id"""
    type: str
    target_id: str
    answers: Optional[List[int]] = None


@dataclass
class ActionOutcome:
    """Result of one engine operation"""
    action: str
    progress: ProgressState
    error: Optional[GreenverseError] = None
    points_awarded: int = 0
    badge_points: int = 0
    old_level: int = 1
    new_level: int = 1
    new_badges: List[Dict[str, Any]] = field(default_factory=list)
    streak: Optional[StreakUpdate] = None
    score: Optional[int] = None
    max_score: Optional[int] = None
    percentage: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level

    @property
    def total_points_awarded(self) -> int:
        return self.points_awarded + self.badge_points


def new_progress(user_id: str) -> ProgressState:
    """Fresh progress for a user's first action"""
    return ProgressState(user_id=user_id)


def verify_snapshot(progress: ProgressState) -> None:
    """
    Reject snapshots that break the progress invariants

    Raises:
        ConsistencyError: Negative counters or a level that does not match
            the point total
    """
    problems = []
    if progress.total_points < 0:
        problems.append(f"total_points={progress.total_points}")
    if progress.streak < 0:
        problems.append(f"streak={progress.streak}")
    expected_level = calculate_level(progress.total_points)
    if progress.level != expected_level:
        problems.append(f"level={progress.level} (expected {expected_level})")
    if len(progress.earned_badge_ids) != len(progress.earned_badges):
        problems.append("duplicate earned badges")
    if len(progress.completed_quiz_ids) != len(progress.completed_quizzes):
        problems.append("duplicate quiz completions")

    if problems:
        raise ConsistencyError(
            f"Corrupt progress snapshot for user {progress.user_id}: {', '.join(problems)}",
            user_id=progress.user_id,
            operation="verify_snapshot",
            context={"problems": problems},
        )


def complete_challenge(
    progress: ProgressState,
    challenge: Challenge,
    badges: Optional[Sequence[Badge]] = None,
    now: Optional[datetime] = None,
) -> ActionOutcome:
    """
    Complete a daily challenge

    Fails with AlreadyCompletedError if the same challenge was already
    completed on the current UTC day.
    """
    def apply(working: ProgressState, at: datetime, outcome: ActionOutcome) -> None:
        if _completed_challenge_on_day(working, challenge.id, at):
            raise AlreadyCompletedError(
                f"Challenge {challenge.id} already completed today",
                record_type="Challenge",
                record_id=challenge.id,
                user_id=working.user_id,
                operation=CHALLENGE_COMPLETE,
            )

        working.completed_challenges.append(
            ChallengeCompletion(challenge_id=challenge.id, points=challenge.points, completed_at=at)
        )
        outcome.points_awarded = _add_points(working, challenge.points)
        outcome.streak = update_streak(working, at)
        working.statistics.challenges_completed += 1
        working.statistics.last_activity = at

        _award_badges(working, badges, CHALLENGE_COMPLETE, {"challenge_id": challenge.id}, at, outcome)

    return _run(CHALLENGE_COMPLETE, progress, apply, now)


def submit_quiz(
    progress: ProgressState,
    quiz: Quiz,
    answers: Sequence[int],
    badges: Optional[Sequence[Badge]] = None,
    now: Optional[datetime] = None,
) -> ActionOutcome:
    """
    Grade a quiz and credit the first attempt

    Fails with AlreadyCompletedError on a repeat attempt, and with
    ValidationError if the answer count does not match the question count.
    """
    def apply(working: ProgressState, at: datetime, outcome: ActionOutcome) -> None:
        if quiz.id in working.completed_quiz_ids:
            raise AlreadyCompletedError(
                f"Quiz {quiz.id} already completed",
                record_type="Quiz",
                record_id=quiz.id,
                user_id=working.user_id,
                operation=QUIZ_COMPLETE,
            )
        if len(answers) != len(quiz.questions):
            raise ValidationError(
                f"Expected {len(quiz.questions)} answers, got {len(answers)}",
                field="answers",
                value=len(answers),
                user_id=working.user_id,
                operation=QUIZ_COMPLETE,
            )

        result = score_quiz(quiz, answers)
        outcome.score = result.score
        outcome.max_score = result.max_score
        outcome.percentage = result.percentage

        working.completed_quizzes.append(
            QuizCompletion(
                quiz_id=quiz.id,
                score=result.score,
                max_score=result.max_score,
                percentage=result.percentage,
                points=result.points_awarded,
                completed_at=at,
            )
        )
        outcome.points_awarded = _add_points(working, result.points_awarded)
        outcome.streak = update_streak(working, at)

        stats = working.statistics
        stats.quizzes_completed += 1
        stats.average_quiz_score = (
            stats.average_quiz_score * (stats.quizzes_completed - 1) + result.percentage
        ) / stats.quizzes_completed
        stats.last_activity = at

        logger.info(
            f"User {working.user_id} scored {result.score}/{result.max_score} "
            f"({result.percentage}%) on quiz {quiz.id}"
        )

        _award_badges(
            working, badges, QUIZ_COMPLETE,
            {"quiz_id": quiz.id, "percentage": result.percentage, "score": result.score},
            at, outcome,
        )

    return _run(QUIZ_COMPLETE, progress, apply, now)


def award_badge(
    progress: ProgressState,
    badge_id: str,
    catalog: Catalog,
    now: Optional[datetime] = None,
) -> ActionOutcome:
    """
    Grant a badge explicitly (e.g. a special badge)

    Already-earned badges are a no-op. Badge points may cascade into
    further level or points badges.
    """
    def apply(working: ProgressState, at: datetime, outcome: ActionOutcome) -> None:
        badge = catalog.get_badge(badge_id)
        if badge.id in working.earned_badge_ids:
            return

        outcome.new_badges.append(grant_badge(working, badge, at))
        outcome.badge_points += badge.points
        _award_badges(working, catalog.badges(), BADGE_AWARD, {"badge_id": badge.id}, at, outcome)

    return _run(BADGE_AWARD, progress, apply, now)


def apply_action(
    progress: ProgressState,
    action: Action,
    catalog: Catalog,
    now: Optional[datetime] = None,
) -> ActionOutcome:
    """
    Dispatch an action by type and catalog id

    Unknown action types and unknown ids come back as NotFoundError.
    """
    try:
        if action.type == CHALLENGE_COMPLETE:
            challenge = catalog.get_challenge(action.target_id)
            return complete_challenge(progress, challenge, catalog.badges(), now)

        if action.type == QUIZ_COMPLETE:
            quiz = catalog.get_quiz(action.target_id)
            return submit_quiz(progress, quiz, action.answers or [], catalog.badges(), now)

        if action.type == BADGE_AWARD:
            return award_badge(progress, action.target_id, catalog, now)

        raise NotFoundError(
            f"Unknown action {action.type}",
            record_type="Action",
            record_id=action.type,
            user_id=progress.user_id,
        )
    except GreenverseError as e:
        level = progress.level
        return ActionOutcome(action=action.type, progress=progress, error=e, old_level=level, new_level=level)


# ============================================
# Internals
# ============================================

def _run(
    action: str,
    progress: ProgressState,
    apply: Callable[[ProgressState, datetime, ActionOutcome], None],
    now: Optional[datetime],
) -> ActionOutcome:
    """Run `apply` on a working copy, converting game errors to outcomes"""
    at = to_utc(now) if now is not None else now_utc()
    old_level = progress.level

    try:
        verify_snapshot(progress)
        working = progress.model_copy(deep=True)
        outcome = ActionOutcome(action=action, progress=working, old_level=old_level)
        apply(working, at, outcome)
    except GreenverseError as e:
        return ActionOutcome(action=action, progress=progress, error=e, old_level=old_level, new_level=old_level)

    outcome.new_level = working.level

    if outcome.leveled_up:
        logger.info(f"User {working.user_id} leveled up from {old_level} to {working.level}!")

    return outcome


def _add_points(working: ProgressState, points: int) -> int:
    result = award_points(working.total_points, points)
    working.total_points = result["total_points"]
    working.level = result["new_level"]

    logger.info(
        f"Awarded {points} points to user {working.user_id}. "
        f"Total: {working.total_points}, Level: {working.level}"
    )
    return points


def _award_badges(
    working: ProgressState,
    badges: Optional[Sequence[Badge]],
    action: str,
    context: Dict[str, Any],
    at: datetime,
    outcome: ActionOutcome,
) -> None:
    unlocked = check_and_award_badges(
        working,
        list(badges) if badges is not None else DEFAULT_BADGES,
        action,
        context,
        earned_at=at,
    )
    outcome.new_badges.extend(unlocked)
    outcome.badge_points += sum(b["points"] for b in unlocked)


def _completed_challenge_on_day(progress: ProgressState, challenge_id: str, at: datetime) -> bool:
    return any(
        c.challenge_id == challenge_id and is_same_game_day(c.completed_at, at)
        for c in progress.completed_challenges
    )
