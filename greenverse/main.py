"""Main entry point for the Greenverse API server"""
import logging
import uvicorn

from greenverse.config import (
    validate_config, LOG_LEVEL, STORE_BACKEND, DATABASE_URL, API_HOST, API_PORT
)
from greenverse.api.server import create_api_application
from greenverse.gamification.catalog import default_catalog
from greenverse.services.container import ServiceContainer
from greenverse.store import create_store

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper())
)

logger = logging.getLogger(__name__)


def main() -> None:
    """Main application entry point"""
    # Validate configuration
    logger.info("Validating configuration...")
    validate_config()

    logger.info(f"Using '{STORE_BACKEND}' progress store")
    container = ServiceContainer(
        store=create_store(STORE_BACKEND, DATABASE_URL),
        catalog=default_catalog(),
    )

    app = create_api_application(container)

    logger.info(f"Starting API server on {API_HOST}:{API_PORT}")
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
