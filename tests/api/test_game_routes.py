"""Tests for the REST API (challenges, quizzes, progress, badges, leaderboard)"""
import pytest
import httpx

from greenverse.api.middleware import limiter
from greenverse.api.server import create_api_application
from greenverse.services.container import ServiceContainer


@pytest.fixture
def app(store, catalog, test_api_key):
    limiter.enabled = False
    container = ServiceContainer(store=store, catalog=catalog)
    yield create_api_application(container, api_keys=[test_api_key])
    limiter.enabled = True


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def headers(test_api_key):
    return {"Authorization": f"Bearer {test_api_key}"}


# ============================================================================
# Authentication
# ============================================================================

@pytest.mark.asyncio
async def test_missing_api_key(client):
    response = await client.get("/api/v1/quizzes")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_invalid_api_key(client):
    response = await client.get("/api/v1/quizzes", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "AuthenticationError"


@pytest.mark.asyncio
async def test_no_keys_configured(store, catalog):
    limiter.enabled = False
    try:
        app = create_api_application(ServiceContainer(store=store, catalog=catalog), api_keys=[])
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/v1/quizzes", headers={"Authorization": "Bearer any"})
        assert response.status_code == 503
    finally:
        limiter.enabled = True


# ============================================================================
# Challenges
# ============================================================================

@pytest.mark.asyncio
async def test_list_challenges(client, headers):
    response = await client.get("/api/v1/challenges", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert len(data["challenges"]) == 7


@pytest.mark.asyncio
async def test_complete_challenge(client, headers):
    response = await client.post("/api/v1/users/alice/challenges/lights-off/complete", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["points"] == 10
    assert data["total_points"] == 10
    assert data["streak"] == 1
    assert data["level"] == 1


@pytest.mark.asyncio
async def test_complete_challenge_twice_same_day(client, headers):
    url = "/api/v1/users/alice/challenges/lights-off/complete"
    await client.post(url, headers=headers)
    response = await client.post(url, headers=headers)

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "AlreadyCompletedError"
    assert data["message"] == "Challenge already completed today"


@pytest.mark.asyncio
async def test_complete_unknown_challenge(client, headers):
    response = await client.post("/api/v1/users/alice/challenges/nope/complete", headers=headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Challenge not found"


# ============================================================================
# Quizzes
# ============================================================================

@pytest.mark.asyncio
async def test_list_quizzes(client, headers):
    response = await client.get("/api/v1/quizzes", headers=headers)

    assert response.status_code == 200
    quizzes = response.json()["quizzes"]
    assert len(quizzes) == 3
    assert "correct_index" not in quizzes[0]["questions"][0]


@pytest.mark.asyncio
async def test_get_quiz(client, headers):
    response = await client.get("/api/v1/quizzes/climate-change", headers=headers)

    assert response.status_code == 200
    assert response.json()["quiz"]["question_count"] == 6


@pytest.mark.asyncio
async def test_get_unknown_quiz(client, headers):
    response = await client.get("/api/v1/quizzes/nope", headers=headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_submit_quiz(client, headers, perfect_climate_answers):
    response = await client.post(
        "/api/v1/users/alice/quizzes/climate-change/submit",
        json={"answers": perfect_climate_answers},
        headers=headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["score"] == 6
    assert data["percentage"] == 100
    assert data["points"] == 170
    assert data["total_points"] == 570
    assert {b["id"] for b in data["new_badges"]} == {"first-quiz", "quiz-master", "eco-coder"}


@pytest.mark.asyncio
async def test_submit_quiz_twice(client, headers, perfect_climate_answers):
    url = "/api/v1/users/alice/quizzes/climate-change/submit"
    await client.post(url, json={"answers": perfect_climate_answers}, headers=headers)
    response = await client.post(url, json={"answers": perfect_climate_answers}, headers=headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Quiz already completed"


@pytest.mark.asyncio
async def test_submit_quiz_wrong_answer_count(client, headers):
    response = await client.post(
        "/api/v1/users/alice/quizzes/climate-change/submit",
        json={"answers": [1]},
        headers=headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_submit_quiz_malformed_body(client, headers):
    response = await client.post(
        "/api/v1/users/alice/quizzes/climate-change/submit",
        json={"answers": "abc"},
        headers=headers
    )
    assert response.status_code == 422


# ============================================================================
# Progress, Badges, Leaderboard
# ============================================================================

@pytest.mark.asyncio
async def test_get_progress_new_user(client, headers):
    response = await client.get("/api/v1/users/newbie/progress", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["progress"]["user_id"] == "newbie"
    assert data["progress"]["total_points"] == 0
    assert data["progress"]["level"] == 1
    assert data["level_info"]["points_to_next_level"] == 1000
    assert data["streak_state"] == "no_activity_today"


@pytest.mark.asyncio
async def test_recent_quizzes(client, headers):
    await client.post(
        "/api/v1/users/alice/quizzes/energy-resources/submit",
        json={"answers": [2, 1, 1]},
        headers=headers
    )

    response = await client.get("/api/v1/users/alice/recent-quizzes?limit=3", headers=headers)

    assert response.status_code == 200
    recent = response.json()["recent_quizzes"]
    assert [q["id"] for q in recent] == ["energy-resources"]
    assert recent[0]["percentage"] == 100


@pytest.mark.asyncio
async def test_get_badges(client, headers):
    response = await client.get("/api/v1/users/alice/badges", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_unlocked"] == 0
    assert len(data["locked"]) == 6


@pytest.mark.asyncio
async def test_leaderboard(client, headers):
    await client.post("/api/v1/users/alice/challenges/zero-waste-day/complete", headers=headers)
    await client.post("/api/v1/users/bob/challenges/lights-off/complete", headers=headers)

    response = await client.get("/api/v1/leaderboard?period=all-time", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["period"] == "all-time"
    assert [e["user_id"] for e in data["leaderboard"]] == ["alice", "bob"]
    assert data["leaderboard"][0]["rank"] == 1


@pytest.mark.asyncio
async def test_leaderboard_invalid_period(client, headers):
    response = await client.get("/api/v1/leaderboard?period=daily", headers=headers)
    assert response.status_code == 400


# ============================================================================
# Monitoring
# ============================================================================

@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["store"] == "memory"


@pytest.mark.asyncio
async def test_metrics_endpoint(client, headers):
    await client.post("/api/v1/users/alice/challenges/lights-off/complete", headers=headers)

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "greenverse_actions_total" in response.text
