"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from biolink.api import admin_router, public_router, redirect_router
from biolink.core.config import Settings, get_settings
from biolink.core.observability import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    setup_observability,
)
from biolink.core.rate_limit import limiter
from biolink.core.storage import JsonStore
from biolink.services.click_recorder import ClickRecorder
from biolink.services.geoip import GeoIPService

# Get logger (will be configured by setup_observability)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting Biolink",
        version=settings.app_version,
        data_dir=str(app.state.store.data_dir),
    )
    yield
    logger.info("Shutting down Biolink")
    app.state.geoip.close()
    logger.info("GeoIP service closed")


def create_app(
    settings: Settings | None = None,
    recorder: ClickRecorder | None = None,
    geoip: GeoIPService | None = None,
) -> FastAPI:
    """Build a configured application instance.

    Args:
        settings: Defaults to the environment-derived settings.
        recorder: Click recorder; defaults to one over ``settings.data_dir``.
        geoip: GeoIP service; defaults to one built from settings.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Link-in-bio landing page with click analytics",
        lifespan=lifespan,
    )

    store = recorder.store if recorder else JsonStore(settings.data_dir)
    app.state.settings = settings
    app.state.store = store
    app.state.recorder = recorder or ClickRecorder(store)
    app.state.geoip = geoip or GeoIPService(
        geoip_database_path=settings.geoip_database_path,
        api_enabled=settings.geoip_api_enabled,
    )

    # Set up observability (logging, tracing, metrics, Sentry)
    setup_observability(app, settings)

    # Rate limiter state and exception handler
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Middleware stack (first added = outermost = runs last on request, first on response)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.include_router(public_router)
    app.include_router(admin_router)
    app.include_router(redirect_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "biolink"}

    return app


app = create_app()
