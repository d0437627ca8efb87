"""Request metadata captured for the audit trail, held in a contextvar."""

from contextvars import ContextVar
from dataclasses import dataclass

_audit_context: ContextVar["AuditContext | None"] = ContextVar("audit_context", default=None)


@dataclass(frozen=True)
class AuditContext:
    """Immutable audit context for the current request."""

    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None


def set_audit_context(
    ip_address: str | None = None,
    user_agent: str | None = None,
    request_id: str | None = None,
) -> None:
    ctx = AuditContext(
        ip_address=ip_address,
        user_agent=user_agent[:500] if user_agent and len(user_agent) > 500 else user_agent,
        request_id=request_id,
    )
    _audit_context.set(ctx)


def get_audit_context() -> AuditContext | None:
    return _audit_context.get()


def clear_audit_context() -> None:
    _audit_context.set(None)


def get_client_ip(forwarded_for: str | None, client_host: str | None) -> str | None:
    """Pick the originating client IP.

    X-Forwarded-For lists "client, proxy1, proxy2"; the first entry wins,
    otherwise the direct peer address is used.
    """
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return client_host
