"""Domain errors and the exception handlers that render them with request_id."""

from typing import Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.nexus_projects.core.config import get_settings
from src.nexus_projects.core.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP rejection."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request rejected"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_content(self) -> dict[str, Any]:
        return {"detail": self.detail}


class Unauthorized(AppError):
    """Missing or invalid credential. Never carries details."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"

    def __init__(self, detail: str | None = None):
        # The reason is kept for logs only
        super().__init__(detail)
        self.reason = self.detail
        self.detail = self.default_detail


class Forbidden(AppError):
    """Authenticated, but the action on a known entity is not allowed."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFound(AppError):
    """Entity is absent, or its existence is concealed from the caller."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(AppError):
    """The request violates a state invariant (duplicate, capacity, transition)."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class ValidationFailed(AppError):
    """Malformed input detected by business rules."""

    status_code = 422
    default_detail = "Validation failed"

    def __init__(self, detail: str | None = None, fields: list[str] | None = None):
        super().__init__(detail)
        self.fields = fields or []

    def to_content(self) -> dict[str, Any]:
        return {"detail": self.detail, "fields": self.fields}


class DependencyUnavailable(AppError):
    """An upstream service could not be reached and no fallback remained."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Upstream service unavailable"


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if isinstance(exc, Unauthorized):
            logger.info("Request unauthorized", path=request.url.path, reason=exc.reason)
        content = exc.to_content()
        content["request_id"] = correlation_id.get()
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        content: dict[str, Any] = {
            "detail": "Internal server error",
            "request_id": request_id,
        }
        if get_settings().debug:
            content["error"] = str(exc)
        return JSONResponse(status_code=500, content=content)
