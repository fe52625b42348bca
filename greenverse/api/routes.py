"""API routes for the Greenverse game"""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from greenverse.api.auth import verify_api_key
from greenverse.api.middleware import limiter
from greenverse.api.models import (
    QuizSubmitRequest,
    ChallengeCompleteResponse, QuizSubmitResponse,
    ChallengeListResponse, QuizListResponse, QuizResponse,
    ProgressResponse, RecentQuizzesResponse,
    BadgeOverviewResponse, LeaderboardResponse,
    HealthCheckResponse, ErrorResponse,
)
from greenverse.gamification.badge_system import format_badge_unlock_message
from greenverse.gamification.engine import ActionOutcome
from greenverse.services.gamification_service import GamificationService

logger = logging.getLogger(__name__)

router = APIRouter()

ACTION_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def get_service(request: Request) -> GamificationService:
    """GamificationService from the application's container"""
    return request.app.state.container.gamification_service


def _raise_on_error(outcome: ActionOutcome) -> None:
    """Failed outcomes surface through the GreenverseError handler"""
    if outcome.error is not None:
        raise outcome.error


def _action_fields(outcome: ActionOutcome) -> dict:
    progress = outcome.progress
    return {
        "points": outcome.points_awarded,
        "badge_points": outcome.badge_points,
        "total_points": progress.total_points,
        "level": progress.level,
        "leveled_up": outcome.leveled_up,
        "streak": progress.streak,
        "new_badges": outcome.new_badges,
    }


def _with_badge_messages(message: str, outcome: ActionOutcome) -> str:
    parts = [message]
    parts.extend(format_badge_unlock_message(badge) for badge in outcome.new_badges)
    if outcome.leveled_up:
        parts.append(f"Level up! You reached level {outcome.new_level}")
    return "\n".join(parts)


# ============================================================================
# Challenges
# ============================================================================

@router.get("/api/v1/challenges", response_model=ChallengeListResponse)
@limiter.limit("30/minute")
async def list_daily_challenges(
    request: Request,
    category: Optional[str] = None,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_service),
):
    """Today's random selection of challenges (Rate limit: 30/minute)"""
    return ChallengeListResponse(challenges=service.get_daily_challenges(category))


@router.post(
    "/api/v1/users/{user_id}/challenges/{challenge_id}/complete",
    response_model=ChallengeCompleteResponse,
    responses=ACTION_ERROR_RESPONSES,
)
@limiter.limit("20/minute")
async def complete_challenge(
    request: Request,
    user_id: str,
    challenge_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_service),
):
    """
    Complete a challenge for today

    Rate limit: 20/minute
    """
    outcome = await service.complete_challenge(user_id, challenge_id)
    _raise_on_error(outcome)

    message = _with_badge_messages(
        f"Challenge completed! +{outcome.points_awarded} points", outcome
    )
    return ChallengeCompleteResponse(
        message=message,
        challenge_id=challenge_id,
        **_action_fields(outcome),
    )


# ============================================================================
# Quizzes
# ============================================================================

@router.get("/api/v1/quizzes", response_model=QuizListResponse)
@limiter.limit("30/minute")
async def list_quizzes(
    request: Request,
    category: Optional[str] = None,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_service),
):
    """Available quizzes without answers (Rate limit: 30/minute)"""
    return QuizListResponse(quizzes=service.list_quizzes(category))


@router.get("/api/v1/quizzes/{quiz_id}", response_model=QuizResponse)
@limiter.limit("30/minute")
async def get_quiz(
    request: Request,
    quiz_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_service),
):
    """Single quiz without answers (Rate limit: 30/minute)"""
    return QuizResponse(quiz=service.get_quiz(quiz_id))


@router.post(
    "/api/v1/users/{user_id}/quizzes/{quiz_id}/submit",
    response_model=QuizSubmitResponse,
    responses=ACTION_ERROR_RESPONSES,
)
@limiter.limit("20/minute")
async def submit_quiz(
    request: Request,
    user_id: str,
    quiz_id: str,
    body: QuizSubmitRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_service),
):
    """
    Submit answers for a quiz

    Each quiz can be completed once per user.
    Rate limit: 20/minute
    """
    outcome = await service.submit_quiz(user_id, quiz_id, body.answers)
    _raise_on_error(outcome)

    message = _with_badge_messages(
        f"Quiz completed! {outcome.score}/{outcome.max_score} correct ({outcome.percentage}%)",
        outcome,
    )
    return QuizSubmitResponse(
        message=message,
        quiz_id=quiz_id,
        score=outcome.score,
        max_score=outcome.max_score,
        percentage=outcome.percentage,
        **_action_fields(outcome),
    )


# ============================================================================
# Progress
# ============================================================================

@router.get("/api/v1/users/{user_id}/progress", response_model=ProgressResponse)
@limiter.limit("30/minute")
async def get_progress(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_service),
):
    """User progress, created on first access (Rate limit: 30/minute)"""
    summary = await service.get_progress_summary(user_id)
    return ProgressResponse(
        progress=summary["progress"],
        level_info=summary["level"],
        streak_state=summary["streak_state"],
        streak_message=summary["streak_message"],
    )


@router.get("/api/v1/users/{user_id}/recent-quizzes", response_model=RecentQuizzesResponse)
@limiter.limit("30/minute")
async def get_recent_quizzes(
    request: Request,
    user_id: str,
    limit: int = Query(5, ge=1, le=50),
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_service),
):
    """Most recent quiz results (Rate limit: 30/minute)"""
    recent = await service.get_recent_quizzes(user_id, limit=limit)
    return RecentQuizzesResponse(recent_quizzes=recent)


@router.get("/api/v1/users/{user_id}/badges", response_model=BadgeOverviewResponse)
@limiter.limit("30/minute")
async def get_badges(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_service),
):
    """Unlocked and locked badges (Rate limit: 30/minute)"""
    overview = await service.get_badges(user_id)
    return BadgeOverviewResponse(**overview)


@router.get("/api/v1/leaderboard", response_model=LeaderboardResponse)
@limiter.limit("30/minute")
async def get_leaderboard(
    request: Request,
    period: str = "weekly",
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_service),
):
    """
    Leaderboard for weekly, monthly or all-time

    Rate limit: 30/minute
    """
    entries = await service.get_leaderboard(period)
    return LeaderboardResponse(period=period, leaderboard=entries)


# ============================================================================
# Monitoring
# ============================================================================

@router.get("/api/health", response_model=HealthCheckResponse)
@limiter.limit("60/minute")
async def health_check(request: Request):
    """Health check endpoint (Rate limit: 60/minute for monitoring systems)"""
    store = request.app.state.container.store
    reachable = await store.ping()

    return HealthCheckResponse(
        status="healthy" if reachable else "degraded",
        store=store.backend,
        timestamp=datetime.now(timezone.utc)
    )


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Exposes all application metrics in Prometheus text format.

    Returns:
        Metrics in Prometheus exposition format
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
