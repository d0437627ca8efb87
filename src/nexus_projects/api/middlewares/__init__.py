"""Application middlewares."""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.nexus_projects.core.config import Settings

from .logging_context import logging_context_middleware
from .request_context import RequestContextMiddleware
from .request_tracking import request_tracking_middleware
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "setup_middlewares",
    "RequestContextMiddleware",
    "SecurityHeadersMiddleware",
    "logging_context_middleware",
    "request_tracking_middleware",
]


def setup_middlewares(app: FastAPI, settings: Settings) -> None:
    """Configure all application middlewares.

    Starlette wraps in reverse order: the last middleware added is the
    outermost, so the correlation ID is added last and is available to
    every middleware below it.
    """
    # Request tracking - for graceful shutdown (innermost)
    @app.middleware("http")
    async def _request_tracking(request, call_next):  # type: ignore[no-untyped-def]
        return await request_tracking_middleware(request, call_next)

    # Audit context - IP, user agent, request ID
    app.add_middleware(RequestContextMiddleware)

    # Logging context - binds request_id to structlog context
    @app.middleware("http")
    async def _logging_context(request, call_next):  # type: ignore[no-untyped-def]
        return await logging_context_middleware(request, call_next)

    # Security headers (Helmet-style); stricter CSP when docs are disabled
    csp = None
    if not settings.enable_openapi and settings.csp_production:
        csp = settings.csp_production
    app.add_middleware(SecurityHeadersMiddleware, content_security_policy=csp)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    # Correlation ID - generates/propagates X-Request-ID (outermost)
    app.add_middleware(CorrelationIdMiddleware)
