"""Pydantic models for API request/response validation"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime

from greenverse.models.catalog import Challenge, PublicQuiz
from greenverse.models.progress import LeaderboardEntry, ProgressState


class QuizSubmitRequest(BaseModel):
    """Request to submit quiz answers"""
    answers: List[int] = Field(..., description="Selected option index for each question, in order")


class BadgeUnlock(BaseModel):
    """Badge unlocked by an action"""
    id: str
    name: str
    description: str
    icon: str
    points: int
    earned_at: datetime


class ActionResponse(BaseModel):
    """Common fields for challenge and quiz responses"""
    success: bool = True
    message: str
    points: int = Field(..., description="Points for the action itself")
    badge_points: int = Field(0, description="Points from badges unlocked by the action")
    total_points: int
    level: int
    leveled_up: bool
    streak: int
    new_badges: List[BadgeUnlock] = Field(default_factory=list)


class ChallengeCompleteResponse(ActionResponse):
    """Response for challenge completion"""
    challenge_id: str


class QuizSubmitResponse(ActionResponse):
    """Response for quiz submission"""
    quiz_id: str
    score: int
    max_score: int
    percentage: int


class ChallengeListResponse(BaseModel):
    """Today's challenges"""
    success: bool = True
    challenges: List[Challenge]


class QuizListResponse(BaseModel):
    """Available quizzes (answers hidden)"""
    success: bool = True
    quizzes: List[PublicQuiz]


class QuizResponse(BaseModel):
    """Single quiz (answers hidden)"""
    success: bool = True
    quiz: PublicQuiz


class ProgressResponse(BaseModel):
    """User progress with derived level and streak info"""
    success: bool = True
    progress: ProgressState
    level_info: Dict[str, int]
    streak_state: str
    streak_message: str


class RecentQuizzesResponse(BaseModel):
    """Most recent quiz results"""
    success: bool = True
    recent_quizzes: List[Dict[str, Any]]


class BadgeOverviewResponse(BaseModel):
    """Unlocked and locked badges"""
    success: bool = True
    unlocked: List[Dict[str, Any]]
    locked: List[Dict[str, Any]]
    total_unlocked: int
    total_badges: int
    total_points_from_badges: int


class LeaderboardResponse(BaseModel):
    """Ranked leaderboard"""
    success: bool = True
    period: str
    leaderboard: List[LeaderboardEntry]


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    store: str = Field(..., description="Progress store backend")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response model"""
    success: bool = False
    message: str = Field(..., description="User-facing error message")
    error: str = Field(..., description="Error type")
    request_id: Optional[str] = Field(None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=datetime.now)
