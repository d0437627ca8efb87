"""Health check and metrics endpoints."""

import secrets
import time
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from src.nexus_projects.core.config import get_settings
from src.nexus_projects.core.db import get_session
from src.nexus_projects.core.realtime import get_registry
from src.nexus_projects.core.redis import get_redis
from src.nexus_projects.core.shutdown import request_tracker

_health_cache: dict[str, Any] | None = None
_health_cache_time: float = 0
HEALTH_CACHE_TTL = 10  # seconds


def reset_health_cache() -> None:
    """Reset health cache (for testing)."""
    global _health_cache, _health_cache_time
    _health_cache = None
    _health_cache_time = 0


async def check_dependencies() -> dict[str, Any]:
    """Probe the database (required) and Redis (optional)."""
    result: dict[str, Any] = {
        "status": "healthy",
        "database": "unknown",
        "redis": "not_configured",
        "realtime": get_registry().metrics(),
    }

    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
        result["database"] = "healthy"
    except Exception as e:
        result["database"] = f"unhealthy: {e!s}"
        result["status"] = "unhealthy"

    # Redis only backs the scope cache, so losing it degrades rather than fails
    redis = await get_redis()
    if redis:
        try:
            await redis.ping()  # type: ignore[misc]
            result["redis"] = "healthy"
        except Exception as e:
            result["redis"] = f"unhealthy: {e!s}"
            if result["status"] == "healthy":
                result["status"] = "degraded"

    return result


def setup_health_endpoint(app: FastAPI) -> None:
    """Configure the health check endpoint."""

    @app.get("/health", tags=["health"])
    async def health() -> JSONResponse:
        """Health check with dependency validation and caching."""
        global _health_cache, _health_cache_time

        now = time.time()

        if request_tracker.is_shutting_down:
            return JSONResponse(
                content={
                    "status": "draining",
                    "in_flight_requests": request_tracker.in_flight_count,
                    "message": "Server is shutting down",
                },
                status_code=503,
            )

        if _health_cache and (now - _health_cache_time) < HEALTH_CACHE_TTL:
            cached_response = _health_cache.copy()
            cached_response["cached"] = True
            cached_response["cache_age_seconds"] = round(now - _health_cache_time, 1)
            status_code = 503 if cached_response["status"] == "unhealthy" else 200
            return JSONResponse(content=cached_response, status_code=status_code)

        health_status = await check_dependencies()
        health_status["cached"] = False
        health_status["timestamp"] = now

        _health_cache = health_status
        _health_cache_time = now

        status_code = 503 if health_status["status"] == "unhealthy" else 200
        return JSONResponse(content=health_status, status_code=status_code)


def setup_metrics(app: FastAPI) -> None:
    """Configure Prometheus metrics with optional API key protection."""
    settings = get_settings()
    instrumentator = Instrumentator(excluded_handlers=["/health", "/metrics"]).instrument(app)

    if settings.metrics_api_key:
        api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

        async def verify_metrics_key(
            api_key: str | None = Depends(api_key_header),
        ) -> None:
            if (
                api_key is None
                or settings.metrics_api_key is None
                or not secrets.compare_digest(api_key, settings.metrics_api_key)
            ):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid or missing metrics API key",
                )

        instrumentator.expose(app, endpoint="/metrics", dependencies=[Depends(verify_metrics_key)])
    else:
        instrumentator.expose(app, endpoint="/metrics")
