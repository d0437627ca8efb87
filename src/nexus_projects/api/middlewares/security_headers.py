"""Security headers middleware (Helmet-style)."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

# Responses on these prefixes carry per-user data and must not be cached
_NO_CACHE_PREFIXES = ("/v1/admin", "/v1/applications/mine", "/v1/projects/mine")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds a fixed set of security headers to every HTTP response."""

    # Swagger UI needs inline scripts and CDN assets
    DEFAULT_CSP = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' cdn.jsdelivr.net; "
        "img-src 'self' data: cdn.jsdelivr.net; "
        "frame-ancestors 'none'"
    )

    def __init__(
        self,
        app: ASGIApp,
        content_security_policy: str | None = None,
        strict_transport_security: str = "max-age=31536000; includeSubDomains",
        referrer_policy: str = "strict-origin-when-cross-origin",
    ):
        super().__init__(app)
        csp = content_security_policy if content_security_policy is not None else self.DEFAULT_CSP
        self.headers: dict[str, str] = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "X-Permitted-Cross-Domain-Policies": "none",
        }
        if csp:
            self.headers["Content-Security-Policy"] = csp
        if strict_transport_security:
            self.headers["Strict-Transport-Security"] = strict_transport_security
        if referrer_policy:
            self.headers["Referrer-Policy"] = referrer_policy

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for header, value in self.headers.items():
            response.headers[header] = value
        if request.url.path.startswith(_NO_CACHE_PREFIXES):
            response.headers["Cache-Control"] = "no-store"
        return response
