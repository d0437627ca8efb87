"""Audit logging service - append-only record of privileged admin actions."""

import contextlib
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.nexus_projects.core.audit_context import get_audit_context
from src.nexus_projects.core.logging import get_logger
from src.nexus_projects.models import AuditAction, AuditLog
from src.nexus_projects.repositories import AuditLogRepository
from src.nexus_projects.schemas.pagination import PageParams
from src.nexus_projects.services.identity_service import Actor, snapshot_identity

logger = get_logger(__name__)


class AuditService:
    """Service for recording audit logs.

    Uses its own session so entries commit independently of the business
    transaction. Fire-and-forget: logging failures never block the action.
    """

    def __init__(self, audit_repo: AuditLogRepository, session: AsyncSession):
        self.audit_repo = audit_repo
        self.session = session

    async def record(
        self,
        actor: Actor,
        action: AuditAction | str,
        entity_type: str,
        entity_id: UUID | None = None,
        tenant_id: str | None = None,
        old: dict[str, Any] | None = None,
        new: dict[str, Any] | None = None,
        reason: str | None = None,
    ) -> AuditLog | None:
        """Append an audit entry.

        Request metadata (IP, user agent, request id) comes from the request
        context. Failures are logged and None is returned.
        """
        action_value = action.value if isinstance(action, AuditAction) else action
        try:
            ctx = get_audit_context()
            audit_log = AuditLog(
                tenant_id=tenant_id,
                actor_id=actor.id,
                actor_name=snapshot_identity(actor).name or "Unknown Admin",
                action=action_value,
                entity_type=entity_type,
                entity_id=entity_id,
                changes={"old": old or {}, "new": new or {}},
                reason=reason[:1000] if reason else None,
                ip_address=ctx.ip_address if ctx else None,
                user_agent=ctx.user_agent if ctx else None,
                request_id=ctx.request_id if ctx else None,
            )
            self.audit_repo.add(audit_log)
            await self.session.commit()

            logger.debug(
                "Audit log recorded",
                action=action_value,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id else None,
            )
            return audit_log

        except Exception as e:
            logger.warning(
                "Failed to record audit log",
                action=action_value,
                entity_type=entity_type,
                error=str(e),
            )
            # Only the isolated audit session is rolled back
            with contextlib.suppress(Exception):
                await self.session.rollback()
            return None

    async def list_logs(
        self,
        params: PageParams,
        tenant_id: str | None,
        action: str | None = None,
        actor_id: str | None = None,
        entity_id: UUID | None = None,
    ) -> tuple[list[AuditLog], int]:
        return await self.audit_repo.list_logs(
            params,
            tenant_id=tenant_id,
            action=action,
            actor_id=actor_id,
            entity_id=entity_id,
        )
