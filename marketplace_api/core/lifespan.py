"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from marketplace_shared.infrastructure.db import engine
from marketplace_shared.config.settings import settings
from marketplace_shared.config.logging import setup_logging, api_logger as logger
from marketplace_api.models import Base


def check_configuration() -> None:
    """
    Validate configuration before serving requests.

    Raises:
        RuntimeError: In production, when the configuration is unsafe.
    """
    config_errors = settings.validate_production_config()
    if not config_errors:
        return

    for error in config_errors:
        logger.error("Configuration error", error=error)
    if settings.environment == "production":
        raise RuntimeError(
            f"Production configuration errors: {'; '.join(config_errors)}. "
            "Server will not start with insecure configuration."
        )
    logger.warning("Running with insecure defaults (acceptable for development only)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    setup_logging()
    check_configuration()

    logger.info("Starting REST API", port=settings.rest_api_port, env=settings.environment)

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    logger.info("Shutting down REST API")
    engine.dispose()
