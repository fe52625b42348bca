"""
Service Layer Package

Business logic services between the presentation layer (REST API) and the
data access layer (progress stores).

Core Services:
- GamificationService: challenges, quizzes, progress, badges, leaderboards
"""

from greenverse.services.container import ServiceContainer
from greenverse.services.gamification_service import GamificationService

__all__ = [
    "ServiceContainer",
    "GamificationService",
]
