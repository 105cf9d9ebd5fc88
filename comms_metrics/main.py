"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from comms_metrics import __version__
from comms_metrics.core.config import get_settings
from comms_metrics.core.database import dispose_engine
from comms_metrics.core.exceptions import register_exception_handlers
from comms_metrics.core.health import router as health_router
from comms_metrics.core.logging import configure_logging, get_logger
from comms_metrics.core.middleware import RequestIdMiddleware
from comms_metrics.features.analytics.routes import router as analytics_router
from comms_metrics.features.ingest.routes import router as ingest_router
from comms_metrics.features.query.routes import router as metrics_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown.

    Args:
        _app: FastAPI application instance (unused, required by lifespan protocol).

    Yields:
        None after startup, cleans up on shutdown.
    """
    settings = get_settings()

    # Startup
    configure_logging()
    logger.info(
        "app.startup_started",
        app_name=settings.app_name,
        app_env=settings.app_env,
        debug=settings.debug,
    )

    yield

    # Shutdown
    await dispose_engine()
    logger.info("app.shutdown_completed")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Communications metrics storage, filtering and aggregation",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Middleware (first added = innermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    # Exception handlers
    register_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(analytics_router)
    app.include_router(ingest_router)

    return app


app = create_app()
