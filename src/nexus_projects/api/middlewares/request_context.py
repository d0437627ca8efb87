"""Request context middleware - captures request metadata for the audit trail."""

from asgi_correlation_id import correlation_id
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.nexus_projects.core.audit_context import (
    clear_audit_context,
    get_client_ip,
    set_audit_context,
)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Initializes the audit context (IP, user agent, request ID) per request.

    Context is cleared after the response is produced.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        clear_audit_context()
        try:
            forwarded_for = request.headers.get("x-forwarded-for")
            client_host = request.client.host if request.client else None
            set_audit_context(
                ip_address=get_client_ip(forwarded_for, client_host),
                user_agent=request.headers.get("user-agent"),
                request_id=correlation_id.get(),
            )
            return await call_next(request)
        finally:
            clear_audit_context()
