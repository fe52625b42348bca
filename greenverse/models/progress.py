"""Per-user progress snapshot"""
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional


class ChallengeCompletion(BaseModel):
    """One completion of a challenge"""
    challenge_id: str
    points: int
    completed_at: datetime


class QuizCompletion(BaseModel):
    """First (and only counted) attempt at a quiz"""
    quiz_id: str
    score: int
    max_score: int
    percentage: int
    points: int
    completed_at: datetime


class EarnedBadge(BaseModel):
    """Badge unlocked by a user"""
    badge_id: str
    points: int
    earned_at: datetime


class ProgressStatistics(BaseModel):
    """Aggregate counters kept alongside the progress snapshot"""
    challenges_completed: int = Field(default=0, ge=0)
    quizzes_completed: int = Field(default=0, ge=0)
    badges_earned: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    average_quiz_score: float = Field(default=0.0, ge=0)
    last_activity: Optional[datetime] = None


class ProgressState(BaseModel):
    """
    Points, level, streak, completions and badges for a single user.

    Created lazily on the first action. Engine functions never mutate an
    instance they receive; they work on a deep copy.
    """
    user_id: str
    total_points: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    streak: int = Field(default=0, ge=0)
    last_activity_date: Optional[datetime] = None
    completed_challenges: list[ChallengeCompletion] = Field(default_factory=list)
    completed_quizzes: list[QuizCompletion] = Field(default_factory=list)
    earned_badges: list[EarnedBadge] = Field(default_factory=list)
    statistics: ProgressStatistics = Field(default_factory=ProgressStatistics)

    @property
    def completed_challenge_ids(self) -> set[str]:
        return {c.challenge_id for c in self.completed_challenges}

    @property
    def completed_quiz_ids(self) -> set[str]:
        return {q.quiz_id for q in self.completed_quizzes}

    @property
    def earned_badge_ids(self) -> set[str]:
        return {b.badge_id for b in self.earned_badges}


class LeaderboardEntry(BaseModel):
    """One ranked row of the leaderboard"""
    rank: int
    user_id: str
    total_points: int
    level: int
    streak: int
    badge_count: int
    challenges_completed: int
    quizzes_completed: int
    last_activity: Optional[datetime] = None
