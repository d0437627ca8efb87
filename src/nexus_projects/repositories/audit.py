"""Repository for AuditLog entity."""

from uuid import UUID

from sqlmodel import select

from src.nexus_projects.models import AuditLog
from src.nexus_projects.repositories.base import BaseRepository
from src.nexus_projects.schemas.pagination import PageParams


class AuditLogRepository(BaseRepository[AuditLog]):
    """Append-only access: insert and read, never update or delete."""

    model = AuditLog

    async def list_logs(
        self,
        params: PageParams,
        tenant_id: str | None = None,
        action: str | None = None,
        actor_id: str | None = None,
        entity_id: UUID | None = None,
    ) -> tuple[list[AuditLog], int]:
        """List audit logs, newest first.

        Args:
            params: Page and page size
            tenant_id: Restrict to one tenant; None lists every tenant
            action: Optional action type filter
            actor_id: Optional acting admin filter
            entity_id: Optional affected entity filter

        Returns:
            Tuple of (logs, total)
        """
        query = select(AuditLog)
        if tenant_id is not None:
            query = query.where(AuditLog.tenant_id == tenant_id)
        if action:
            query = query.where(AuditLog.action == action)
        if actor_id:
            query = query.where(AuditLog.actor_id == actor_id)
        if entity_id:
            query = query.where(AuditLog.entity_id == entity_id)

        return await self.paginate(
            query,
            params,
            [AuditLog.created_at.desc(), AuditLog.id.desc()],  # type: ignore[attr-defined]
        )
