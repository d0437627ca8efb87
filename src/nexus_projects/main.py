from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.nexus_projects.api.middlewares import setup_middlewares
from src.nexus_projects.api.v1.router import api_router
from src.nexus_projects.core.config import get_settings
from src.nexus_projects.core.db import dispose_engine
from src.nexus_projects.core.exceptions import setup_exception_handlers
from src.nexus_projects.core.health import setup_health_endpoint, setup_metrics
from src.nexus_projects.core.logging import get_logger, setup_logging
from src.nexus_projects.core.realtime import get_registry
from src.nexus_projects.core.redis import close_redis
from src.nexus_projects.core.shutdown import request_tracker

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info("Starting service", app_name=settings.app_name, env=settings.app_env)

    yield

    grace_period = settings.shutdown_grace_period
    logger.info("Shutdown initiated", in_flight=request_tracker.in_flight_count)

    # Stop tracking new requests, then wait for the in-flight ones
    await request_tracker.start_shutdown()
    drained = await request_tracker.wait_for_drain(timeout=grace_period)
    if not drained:
        logger.warning(
            "Shutdown timeout, some requests may not have completed",
            grace_period=grace_period,
            in_flight=request_tracker.in_flight_count,
        )

    logger.info("Closing connections")
    await get_registry().drain()
    await close_redis()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "projects", "description": "Project listings, marketplace and owner edits"},
    {"name": "applications", "description": "Applying to projects and deciding applications"},
    {"name": "collaboration", "description": "Tasks, attachments and comments for members"},
    {"name": "admin", "description": "Moderation, overrides, analytics and audit trail"},
    {"name": "realtime", "description": "WebSocket event stream"},
    {"name": "health", "description": "Liveness and dependency checks"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant project collaboration API",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_openapi else None,
        redoc_url="/redoc" if settings.enable_openapi else None,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    setup_exception_handlers(app)
    setup_middlewares(app, settings)
    app.include_router(api_router)
    setup_metrics(app)
    setup_health_endpoint(app)

    return app


app = create_app()
