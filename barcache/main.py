"""
FastAPI application setup with dependency injection.
"""

from fastapi import FastAPI, Request
from typing import Optional
import logging
import time
import uuid
from contextlib import asynccontextmanager

from barcache.config import Settings, get_settings
from barcache.core.logging import configure_logging
from barcache.core.dependencies import ServiceContainer
from barcache.core.error_handlers import setup_error_handlers
from barcache.api import bars_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the service container on startup and dispose it on shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    service_container = ServiceContainer(settings)
    await service_container.initialize_services()
    app.state.service_container = service_container
    logger.info("Application startup complete")

    try:
        yield
    finally:
        logger.info("Shutting down application")
        await service_container.cleanup_services()
        logger.info("Application shutdown complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings to use instead of the global instance

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level.value, settings.log_format)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan
    )
    app.state.settings = settings

    setup_error_handlers(app)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log requests and responses with timing information."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} in {duration_ms:.1f}ms",
            extra={"request_id": request_id},
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(bars_router)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment.value,
        }

    return app


app = create_app()
