"""Unit tests for GamificationService"""
import asyncio
import pytest
from datetime import timedelta

from greenverse.exceptions import AlreadyCompletedError, NotFoundError, ValidationError
from greenverse.gamification.streak_system import StreakState


# ============================================================================
# Action Tests
# ============================================================================

@pytest.mark.asyncio
async def test_complete_challenge_persists(service, store, test_user_id):
    outcome = await service.complete_challenge(test_user_id, "short-shower")

    assert outcome.success
    stored = await store.get(test_user_id)
    assert stored.total_points == 20
    assert stored.statistics.challenges_completed == 1


@pytest.mark.asyncio
async def test_failed_action_not_persisted(service, store, test_user_id):
    await service.complete_challenge(test_user_id, "short-shower")
    outcome = await service.complete_challenge(test_user_id, "short-shower")

    assert isinstance(outcome.error, AlreadyCompletedError)
    stored = await store.get(test_user_id)
    assert stored.total_points == 20
    assert len(stored.completed_challenges) == 1


@pytest.mark.asyncio
async def test_challenge_available_again_next_day(service, clock, test_user_id):
    await service.complete_challenge(test_user_id, "short-shower")
    clock.current += timedelta(days=1)

    outcome = await service.complete_challenge(test_user_id, "short-shower")

    assert outcome.success
    assert outcome.progress.streak == 2


@pytest.mark.asyncio
async def test_concurrent_duplicate_challenge(service, store, test_user_id):
    """Only one of two simultaneous identical completions succeeds"""
    outcomes = await asyncio.gather(
        service.complete_challenge(test_user_id, "lights-off"),
        service.complete_challenge(test_user_id, "lights-off"),
    )

    assert sorted(o.success for o in outcomes) == [False, True]
    assert (await store.get(test_user_id)).total_points == 10


@pytest.mark.asyncio
async def test_submit_quiz(service, test_user_id, perfect_climate_answers):
    outcome = await service.submit_quiz(test_user_id, "climate-change", perfect_climate_answers)

    assert outcome.success
    assert outcome.percentage == 100
    assert outcome.progress.total_points == 570


@pytest.mark.asyncio
async def test_submit_unknown_quiz(service, store, test_user_id):
    outcome = await service.submit_quiz(test_user_id, "no-such-quiz", [1])

    assert isinstance(outcome.error, NotFoundError)
    assert await store.get(test_user_id) is None


@pytest.mark.asyncio
async def test_award_badge(service, test_user_id):
    outcome = await service.award_badge(test_user_id, "level-master")

    assert outcome.success
    assert outcome.progress.total_points == 650


# ============================================================================
# Query Tests
# ============================================================================

@pytest.mark.asyncio
async def test_get_progress_creates_user(service, store, test_user_id):
    progress = await service.get_progress(test_user_id)

    assert progress.user_id == test_user_id
    assert progress.total_points == 0
    assert progress.level == 1
    assert await store.get(test_user_id) is not None


@pytest.mark.asyncio
async def test_get_progress_summary(service, test_user_id):
    await service.complete_challenge(test_user_id, "lights-off")

    summary = await service.get_progress_summary(test_user_id)

    assert summary["progress"].total_points == 10
    assert summary["level"]["points_to_next_level"] == 990
    assert summary["streak_state"] == StreakState.ACTIVE_TODAY.value


def test_daily_challenges(service):
    challenges = service.get_daily_challenges()
    assert len(challenges) == 7
    assert len({c.id for c in challenges}) == 7


def test_daily_challenges_by_category(service):
    challenges = service.get_daily_challenges("water")
    assert {c.category.value for c in challenges} == {"water"}
    assert len(challenges) == 3


def test_list_quizzes_hides_answers(service):
    quizzes = service.list_quizzes()
    assert {q.id for q in quizzes} == {"climate-change", "energy-resources", "eco-coding"}
    for quiz in quizzes:
        for question in quiz.questions:
            assert not hasattr(question, "correct_index")


def test_get_unknown_quiz(service):
    with pytest.raises(NotFoundError):
        service.get_quiz("no-such-quiz")


@pytest.mark.asyncio
async def test_recent_quizzes(service, clock, test_user_id):
    await service.submit_quiz(test_user_id, "energy-resources", [2, 1, 1])
    clock.current += timedelta(hours=1)
    await service.submit_quiz(test_user_id, "eco-coding", [2, 1, 0])

    recent = await service.get_recent_quizzes(test_user_id)

    assert [q["id"] for q in recent] == ["eco-coding", "energy-resources"]
    assert recent[0]["percentage"] == 67
    assert recent[0]["completed"] is True

    assert len(await service.get_recent_quizzes(test_user_id, limit=1)) == 1


@pytest.mark.asyncio
async def test_recent_quizzes_include_deactivated_quiz(service, catalog, test_user_id):
    await service.submit_quiz(test_user_id, "eco-coding", [2, 1, 0])
    catalog.get_quiz("eco-coding").active = False

    recent = await service.get_recent_quizzes(test_user_id)

    assert [q["id"] for q in recent] == ["eco-coding"]
    assert recent[0]["title"] == catalog.find_quiz("eco-coding").title


@pytest.mark.asyncio
async def test_recent_quizzes_unknown_user(service):
    assert await service.get_recent_quizzes("nobody") == []


@pytest.mark.asyncio
async def test_get_badges(service, test_user_id):
    await service.submit_quiz(test_user_id, "energy-resources", [0, 0, 0])

    overview = await service.get_badges(test_user_id)

    assert [b["id"] for b in overview["unlocked"]] == ["first-quiz"]
    assert overview["total_badges"] == 6


@pytest.mark.asyncio
async def test_leaderboard(service):
    await service.complete_challenge("alice", "zero-waste-day")
    await service.complete_challenge("bob", "lights-off")

    board = await service.get_leaderboard("weekly")

    assert [e.user_id for e in board] == ["alice", "bob"]


@pytest.mark.asyncio
async def test_leaderboard_invalid_period(service):
    with pytest.raises(ValidationError):
        await service.get_leaderboard("yearly")
