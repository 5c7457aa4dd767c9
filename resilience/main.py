"""
FastAPI application exposing the operator surface.

Following Sandi Metz:
- Single Responsibility: Application setup and lifecycle
- Clear naming: Descriptive function names
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from resilience import __version__
from resilience.api.routes import admin
from resilience.config import AppConfig, config
from resilience.state import ResilienceState
from resilience.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(
    settings: Optional[AppConfig] = None,
    state: Optional[ResilienceState] = None,
) -> FastAPI:
    """
    Create the application.

    Args:
        settings: Configuration (module config if None)
        state: Prebuilt components (built from settings if None)

    Returns:
        FastAPI application
    """
    settings = settings or config
    state = state or ResilienceState.from_config(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        logger.info("Starting resilience layer", env=settings.app_env)
        await state.startup()
        try:
            yield
        finally:
            await state.shutdown()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.resilience = state
    app.include_router(admin.router)
    return app


def build_app() -> FastAPI:
    """Entry point for ASGI servers (``uvicorn --factory``)."""
    setup_logging(config.log_level)
    return create_app()
