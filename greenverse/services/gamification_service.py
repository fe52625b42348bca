"""
GamificationService - Gamification Business Logic

Loads a user's progress from the injected store, runs the pure engine and
persists the result. The same service backs online mode (PostgreSQL store)
and offline/demo mode (in-memory store).
"""

import logging
import random
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from greenverse.config import DAILY_CHALLENGE_COUNT, LEADERBOARD_LIMIT
from greenverse.gamification.badge_system import (
    BADGE_AWARD,
    CHALLENGE_COMPLETE,
    QUIZ_COMPLETE,
    get_badge_overview,
)
from greenverse.gamification.catalog import Catalog, public_quiz
from greenverse.gamification.engine import Action, ActionOutcome, apply_action, new_progress
from greenverse.gamification.leaderboard import get_leaderboard
from greenverse.gamification.points_system import level_summary
from greenverse.gamification.streak_system import format_streak_display, get_streak_state
from greenverse.models.catalog import Challenge, PublicQuiz
from greenverse.models.progress import LeaderboardEntry, ProgressState
from greenverse.observability.metrics import record_action_outcome, store_operation_duration_seconds
from greenverse.store.base import ProgressStore
from greenverse.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


class GamificationService:
    """
    Service for gamification features.

    Responsibilities:
    - Challenge completion and quiz submission
    - Lazy creation of per-user progress
    - Badge overview and recent quiz history
    - Leaderboards
    """

    def __init__(
        self,
        store: ProgressStore,
        catalog: Catalog,
        clock: Callable[[], datetime] = now_utc,
        rng: Optional[random.Random] = None,
        daily_challenge_count: int = DAILY_CHALLENGE_COUNT,
        leaderboard_limit: int = LEADERBOARD_LIMIT,
    ):
        """
        Initialize GamificationService.

        Args:
            store: Progress persistence adapter
            catalog: Challenges, quizzes and badges
            clock: Source of the current time (UTC)
            rng: Random source for daily challenge selection
            daily_challenge_count: Challenges offered per day
            leaderboard_limit: Maximum leaderboard rows
        """
        self.store = store
        self.catalog = catalog
        self.clock = clock
        self.rng = rng or random.Random()
        self.daily_challenge_count = daily_challenge_count
        self.leaderboard_limit = leaderboard_limit
        logger.debug("GamificationService initialized")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def complete_challenge(self, user_id: str, challenge_id: str) -> ActionOutcome:
        """Complete a challenge for a user"""
        return await self._apply(user_id, Action(type=CHALLENGE_COMPLETE, target_id=challenge_id))

    async def submit_quiz(self, user_id: str, quiz_id: str, answers: List[int]) -> ActionOutcome:
        """Submit quiz answers (list of selected option indices)"""
        return await self._apply(
            user_id, Action(type=QUIZ_COMPLETE, target_id=quiz_id, answers=list(answers))
        )

    async def award_badge(self, user_id: str, badge_id: str) -> ActionOutcome:
        """Grant a badge explicitly"""
        return await self._apply(user_id, Action(type=BADGE_AWARD, target_id=badge_id))

    async def _apply(self, user_id: str, action: Action) -> ActionOutcome:
        """
        Run one action inside the store's per-user transaction

        Only successful outcomes are persisted.
        """
        start_time = time.time()

        async with self.store.transaction(user_id) as txn:
            progress = txn.progress or new_progress(user_id)
            outcome = apply_action(progress, action, self.catalog, now=self.clock())
            if outcome.success:
                await txn.save(outcome.progress)

        store_operation_duration_seconds.labels(operation=action.type).observe(time.time() - start_time)
        record_action_outcome(outcome)

        if outcome.success:
            logger.info(
                f"User {user_id} {action.type} {action.target_id}: "
                f"+{outcome.total_points_awarded} points, "
                f"{len(outcome.new_badges)} new badges"
            )

        return outcome

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_progress(self, user_id: str) -> ProgressState:
        """Get user's progress, creating it on first access"""
        progress = await self.store.get(user_id)
        if progress is not None:
            return progress

        async with self.store.transaction(user_id) as txn:
            if txn.progress is not None:
                return txn.progress
            progress = new_progress(user_id)
            await txn.save(progress)
            logger.info(f"Created progress for user {user_id}")
            return progress

    async def get_progress_summary(self, user_id: str) -> Dict[str, Any]:
        """
        Progress plus derived display fields

        Returns:
            {
                'progress': ProgressState,
                'level': {...level_summary()},
                'streak_state': str,
                'streak_message': str
            }
        """
        progress = await self.get_progress(user_id)
        now = self.clock()
        return {
            "progress": progress,
            "level": level_summary(progress.total_points),
            "streak_state": get_streak_state(progress, now).value,
            "streak_message": format_streak_display(progress, now),
        }

    def get_daily_challenges(self, category: Optional[str] = None) -> List[Challenge]:
        """Random selection of today's challenges"""
        return self.catalog.daily_challenges(category, size=self.daily_challenge_count, rng=self.rng)

    def list_quizzes(self, category: Optional[str] = None) -> List[PublicQuiz]:
        """Available quizzes, without answers"""
        return [public_quiz(q) for q in self.catalog.quizzes(category)]

    def get_quiz(self, quiz_id: str) -> PublicQuiz:
        """
        Single quiz without answers

        Raises:
            NotFoundError: Unknown or inactive quiz
        """
        return public_quiz(self.catalog.get_quiz(quiz_id))

    async def get_recent_quizzes(self, user_id: str, limit: int = 5) -> List[Dict[str, Any]]:
        """
        Most recent quiz results, newest first

        Deactivated quizzes are still reported; ids missing from the
        catalog entirely are skipped.
        """
        progress = await self.store.get(user_id)
        if progress is None:
            return []

        completions = sorted(progress.completed_quizzes, key=lambda q: q.completed_at, reverse=True)

        recent = []
        for completion in completions:
            if len(recent) >= limit:
                break
            quiz = self.catalog.find_quiz(completion.quiz_id)
            if quiz is None:
                continue
            recent.append({
                "id": quiz.id,
                "title": quiz.title,
                "description": quiz.description,
                "category": quiz.category,
                "score": completion.score,
                "max_score": completion.max_score,
                "percentage": completion.percentage,
                "points": completion.points,
                "completed_at": completion.completed_at,
                "completed": True,
            })
        return recent

    async def get_badges(self, user_id: str) -> Dict[str, Any]:
        """Unlocked and locked badges with progress"""
        progress = await self.get_progress(user_id)
        return get_badge_overview(progress, self.catalog.badges())

    async def get_leaderboard(self, period: str = "weekly") -> List[LeaderboardEntry]:
        """
        Ranked leaderboard for a period

        Raises:
            ValidationError: Unknown period
        """
        all_progress = await self.store.all()
        return get_leaderboard(all_progress, period, now=self.clock(), limit=self.leaderboard_limit)
