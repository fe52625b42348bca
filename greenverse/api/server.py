"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from greenverse.api.routes import router
from greenverse.api.middleware import setup_cors, setup_rate_limiting
from greenverse.config import API_KEYS, LOG_LEVEL
from greenverse.exceptions import (
    AlreadyCompletedError,
    AuthenticationError,
    ConsistencyError,
    DatabaseError,
    GreenverseError,
    NotFoundError,
    ValidationError,
)
from greenverse.gamification.catalog import default_catalog
from greenverse.observability.metrics import errors_total
from greenverse.observability.metrics_middleware import setup_metrics_middleware
from greenverse.services.container import ServiceContainer
from greenverse.store.memory import InMemoryProgressStore

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper())
)

logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS_CODES = [
    (ValidationError, 400),
    (AlreadyCompletedError, 400),
    (NotFoundError, 404),
    (AuthenticationError, 401),
    (ConsistencyError, 409),
    (DatabaseError, 503),
]


def status_code_for(error: GreenverseError) -> int:
    """HTTP status for a domain error"""
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    await app.state.container.startup()

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    await app.state.container.shutdown()


def create_api_application(
    container: Optional[ServiceContainer] = None,
    api_keys: Optional[list[str]] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        container: Services and store (defaults to in-memory demo mode)
        api_keys: Accepted bearer keys (defaults to API_KEYS from config)
    """
    app = FastAPI(
        title="Greenverse API",
        description="REST API for the Greenverse sustainability game",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.container = container or ServiceContainer(
        store=InMemoryProgressStore(),
        catalog=default_catalog(),
    )
    app.state.api_keys = list(API_KEYS if api_keys is None else api_keys)

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)
    setup_metrics_middleware(app)

    # Include routes
    app.include_router(router)

    @app.exception_handler(GreenverseError)
    async def greenverse_exception_handler(request: Request, exc: GreenverseError):
        status_code = status_code_for(exc)
        errors_total.labels(error_type=type(exc).__name__, component="api").inc()
        return JSONResponse(
            status_code=status_code,
            content={**exc.to_dict(), "success": False, "message": exc.user_message}
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        errors_total.labels(error_type=type(exc).__name__, component="api").inc()
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error", "message": str(exc)}
        )

    logger.info("FastAPI application created")

    return app
