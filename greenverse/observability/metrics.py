"""
Prometheus metrics definitions for greenverse.

Metrics are organized by category:
- HTTP/API metrics: Request counts, latency
- Game metrics: Actions, points, level-ups, badges
- Store metrics: Persistence latency and errors

Metrics are exposed at the /metrics endpoint for Prometheus scraping.
"""

import logging
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# =============================================================================
# HTTP/API Metrics
# =============================================================================

http_requests_total = Counter(
    "greenverse_http_requests_total",
    "Total HTTP requests received",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "greenverse_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
)

# =============================================================================
# Game Metrics
# =============================================================================

actions_total = Counter(
    "greenverse_actions_total",
    "Game actions processed",
    ["action", "status"],  # status: success/rejected/error
)

points_awarded_total = Counter(
    "greenverse_points_awarded_total",
    "Points awarded to players",
    ["source"],  # source: challenge/quiz/badge
)

level_ups_total = Counter(
    "greenverse_level_ups_total",
    "Level-up events",
)

badges_awarded_total = Counter(
    "greenverse_badges_awarded_total",
    "Badges unlocked",
    ["badge_id"],
)

# =============================================================================
# Store Metrics
# =============================================================================

store_operation_duration_seconds = Histogram(
    "greenverse_store_operation_duration_seconds",
    "Progress store read-modify-write latency in seconds",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

errors_total = Counter(
    "greenverse_errors_total",
    "Total errors by type and component",
    ["error_type", "component"],  # component: api/engine/store
)


def record_action_outcome(outcome) -> None:
    """
    Record metrics for one engine ActionOutcome

    Args:
        outcome: greenverse.gamification.engine.ActionOutcome
    """
    if not outcome.success:
        actions_total.labels(action=outcome.action, status="rejected").inc()
        errors_total.labels(error_type=type(outcome.error).__name__, component="engine").inc()
        return

    actions_total.labels(action=outcome.action, status="success").inc()

    source = {
        "challenge-complete": "challenge",
        "quiz-complete": "quiz",
    }.get(outcome.action)
    if source and outcome.points_awarded:
        points_awarded_total.labels(source=source).inc(outcome.points_awarded)

    if outcome.badge_points:
        points_awarded_total.labels(source="badge").inc(outcome.badge_points)
    for badge in outcome.new_badges:
        badges_awarded_total.labels(badge_id=badge["id"]).inc()

    if outcome.leveled_up:
        level_ups_total.inc(outcome.new_level - outcome.old_level)
