"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.

One container is created per application (see greenverse.api.server) and
kept on app.state; tests build their own.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from greenverse.gamification.catalog import Catalog
from greenverse.store.base import ProgressStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (store, catalog) are injected.
    """

    # Infrastructure dependencies (injected)
    store: ProgressStore
    catalog: Catalog

    # Services (lazy-loaded via properties)
    _gamification_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def gamification_service(self):
        """Get GamificationService instance (lazy-loaded)"""
        if self._gamification_service is None:
            from greenverse.services.gamification_service import GamificationService
            self._gamification_service = GamificationService(self.store, self.catalog)
            logger.debug("GamificationService instantiated")
        return self._gamification_service

    async def startup(self) -> None:
        """Open infrastructure resources"""
        await self.store.open()
        logger.info(f"Progress store opened ({type(self.store).__name__})")

    async def shutdown(self) -> None:
        """Close infrastructure resources"""
        await self.store.close()
        logger.info("Progress store closed")
