"""Admin service - moderation, overrides and analytics for HEAD_ADMIN/SUPER_ADMIN.

A SUPER_ADMIN works across every tenant. A HEAD_ADMIN is confined to their
own tenant: listings are filtered to it and single-entity actions outside it
are rejected with Forbidden.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.nexus_projects.core.exceptions import Conflict, Forbidden, NotFound
from src.nexus_projects.core.logging import get_logger
from src.nexus_projects.models import (
    Application,
    AuditAction,
    ModerationAction,
    ModerationStatus,
    Project,
)
from src.nexus_projects.models.base import utc_now
from src.nexus_projects.repositories import ApplicationRepository, ProjectRepository
from src.nexus_projects.repositories.project import has_department_filter, text_search_filter
from src.nexus_projects.schemas.admin import (
    AnalyticsDistributions,
    AnalyticsMetrics,
    AnalyticsResponse,
    AuditLogRead,
    BulkModerateResponse,
)
from src.nexus_projects.schemas.application import (
    AdminApplicationRead,
    ApplicationProjectSummary,
    ApplicationRead,
)
from src.nexus_projects.schemas.pagination import Page, PageParams
from src.nexus_projects.schemas.project import AdminProjectRead, ProjectRead
from src.nexus_projects.services import policies
from src.nexus_projects.services.application_service import change_application_status
from src.nexus_projects.services.audit_service import AuditService
from src.nexus_projects.services.identity_service import Actor
from src.nexus_projects.services.notifier import EventType, Notifier

logger = get_logger(__name__)


def apply_moderation(project: Project, action: ModerationAction, now: datetime) -> EventType:
    """Apply a moderation action to ``project`` in place.

    Returns:
        The realtime event describing the change.

    Raises:
        Conflict: The action is not valid from the project's current state.
    """
    if action in (ModerationAction.APPROVE, ModerationAction.REJECT):
        if project.archived_at is not None:
            raise Conflict("Archived projects must be reopened first")
        if project.moderation_status != ModerationStatus.PENDING_APPROVAL.value:
            raise Conflict("Only projects pending approval can be approved or rejected")
        target = (
            ModerationStatus.APPROVED
            if action == ModerationAction.APPROVE
            else ModerationStatus.REJECTED
        )
        project.moderation_status = target.value
        event = EventType.PROJECT_UPDATED
    elif action == ModerationAction.ARCHIVE:
        if project.archived_at is not None:
            raise Conflict("Project is already archived")
        project.archived_at = now
        event = EventType.PROJECT_ARCHIVED
    else:
        project.moderation_status = ModerationStatus.PENDING_APPROVAL.value
        project.archived_at = None
        event = EventType.PROJECT_UPDATED

    project.updated_at = now
    return event


def _moderation_state(project: Project) -> dict[str, str | None]:
    return {
        "moderation_status": project.moderation_status,
        "archived_at": project.archived_at.isoformat() if project.archived_at else None,
    }


class AdminService:
    """Service for admin console operations.

    Every mutation writes an audit entry through ``AuditService``.
    """

    def __init__(
        self,
        project_repo: ProjectRepository,
        application_repo: ApplicationRepository,
        session: AsyncSession,
        audit_service: AuditService,
        notifier: Notifier,
    ):
        self.project_repo = project_repo
        self.application_repo = application_repo
        self.session = session
        self.audit_service = audit_service
        self.notifier = notifier

    async def _load_project(self, actor: Actor, project_id: UUID) -> Project:
        policies.ensure_admin(actor)
        project = await self.project_repo.get_by_id(project_id)
        if project is None:
            raise NotFound("Project not found")
        policies.ensure_admin_scope(actor, project.tenant_id)
        return project

    async def _with_counts(self, projects: list[Project]) -> list[AdminProjectRead]:
        counts = await self.application_repo.counts_by_status(p.id for p in projects)
        items = []
        for project in projects:
            by_status = counts.get(project.id, {})
            read = AdminProjectRead.from_project(project)
            read.application_count = sum(by_status.values())
            read.pending_applications = by_status.get("PENDING", 0)
            read.accepted_applications = by_status.get("ACCEPTED", 0)
            read.rejected_applications = by_status.get("REJECTED", 0)
            items.append(read)
        return items

    async def list_projects(
        self,
        actor: Actor,
        params: PageParams,
        q: str | None = None,
        department: str | None = None,
        moderation_status: str | None = None,
        progress_status: str | None = None,
        project_type: str | None = None,
    ) -> Page[AdminProjectRead]:
        """List projects in the admin's scope, archived ones included."""
        tenant_id = policies.admin_tenant_filter(actor)
        conditions = []
        if tenant_id is not None:
            conditions.append(Project.tenant_id == tenant_id)
        if q:
            conditions.append(
                text_search_filter(q, Project.title, Project.description, Project.author_name)
            )
        if department:
            conditions.append(has_department_filter(department))
        if moderation_status:
            conditions.append(Project.moderation_status == moderation_status)
        if progress_status:
            conditions.append(Project.progress_status == progress_status)
        if project_type:
            conditions.append(Project.project_type == project_type)

        projects, total = await self.project_repo.list_filtered(conditions, params)
        return Page.build(await self._with_counts(projects), params, total)

    async def get_project(self, actor: Actor, project_id: UUID) -> AdminProjectRead:
        project = await self._load_project(actor, project_id)
        return (await self._with_counts([project]))[0]

    async def moderate(
        self,
        actor: Actor,
        project_id: UUID,
        action: ModerationAction,
        reason: str | None = None,
    ) -> ProjectRead:
        project = await self._load_project(actor, project_id)
        old = _moderation_state(project)
        event = apply_moderation(project, action, utc_now())
        await self.session.commit()
        await self.project_repo.refresh(project)

        logger.info(
            "Project moderated",
            project_id=str(project.id),
            action=action.value,
            tenant_id=project.tenant_id,
        )
        await self.audit_service.record(
            actor,
            AuditAction.for_moderation(action.value),
            entity_type="project",
            entity_id=project.id,
            tenant_id=project.tenant_id,
            old=old,
            new=_moderation_state(project),
            reason=reason,
        )
        read = ProjectRead.from_project(project)
        self.notifier.project_event(event, project, read.model_dump(mode="json"))
        return read

    async def bulk_moderate(
        self,
        actor: Actor,
        project_ids: list[UUID],
        action: ModerationAction,
        reason: str | None = None,
    ) -> BulkModerateResponse:
        """Moderate several projects at once.

        Projects outside the admin's scope, missing ones and those whose state
        does not allow the action are skipped and counted.

        Raises:
            Forbidden: None of the requested projects is in the admin's scope.
        """
        policies.ensure_admin(actor)
        ids = list(dict.fromkeys(project_ids))
        projects = [
            p
            for p in await self.project_repo.get_many(ids)
            if policies.can_access_tenant(actor, p.tenant_id)
        ]
        if not projects:
            raise Forbidden("None of the requested projects are accessible")

        now = utc_now()
        changed: list[tuple[Project, EventType, dict[str, str | None]]] = []
        for project in projects:
            old = _moderation_state(project)
            try:
                event = apply_moderation(project, action, now)
            except Conflict:
                continue
            changed.append((project, event, old))
        await self.session.commit()

        skipped = len(ids) - len(changed)
        logger.info(
            "Bulk moderation applied",
            action=action.value,
            processed=len(changed),
            skipped=skipped,
        )
        audit_action = AuditAction.for_moderation(action.value, bulk=True)
        for project, event, old in changed:
            await self.project_repo.refresh(project)
            await self.audit_service.record(
                actor,
                audit_action,
                entity_type="project",
                entity_id=project.id,
                tenant_id=project.tenant_id,
                old=old,
                new=_moderation_state(project),
                reason=reason,
            )
            read = ProjectRead.from_project(project)
            self.notifier.project_event(event, project, read.model_dump(mode="json"))

        return BulkModerateResponse(
            message=f"{action.value} applied to {len(changed)} project(s)",
            processed_count=len(changed),
            skipped_count=skipped,
        )

    async def list_applications(
        self,
        actor: Actor,
        params: PageParams,
        q: str | None = None,
        status: str | None = None,
        project_id: UUID | None = None,
    ) -> Page[AdminApplicationRead]:
        tenant_id = policies.admin_tenant_filter(actor)
        conditions = []
        if tenant_id is not None:
            conditions.append(Project.tenant_id == tenant_id)
        if q:
            conditions.append(
                text_search_filter(q, Application.student_name, Application.student_department)
            )
        if status:
            conditions.append(Application.status == status)
        if project_id:
            conditions.append(Application.project_id == project_id)

        rows, total = await self.application_repo.list_admin(conditions, params)
        items = [
            AdminApplicationRead(
                **ApplicationRead.model_validate(application).model_dump(),
                project=ApplicationProjectSummary.model_validate(project),
            )
            for application, project in rows
        ]
        return Page.build(items, params, total)

    async def override_application_status(
        self,
        actor: Actor,
        application_id: UUID,
        new_status: str,
        reason: str | None = None,
    ) -> ApplicationRead:
        """Force an application into any status. Forcing ACCEPTED still needs a free seat."""
        policies.ensure_admin(actor)
        row = await self.application_repo.get_with_project(application_id)
        if row is None:
            raise NotFound("Application not found")
        application, project = row
        policies.ensure_admin_scope(actor, project.tenant_id)

        old_status = application.status
        await change_application_status(
            self.session, self.project_repo, self.application_repo, application, new_status
        )

        logger.info(
            "Application status overridden",
            application_id=str(application.id),
            old_status=old_status,
            new_status=new_status,
        )
        await self.audit_service.record(
            actor,
            AuditAction.UPDATE_APPLICATION_STATUS,
            entity_type="application",
            entity_id=application.id,
            tenant_id=project.tenant_id,
            old={"status": old_status},
            new={"status": new_status},
            reason=reason,
        )
        read = ApplicationRead.model_validate(application)
        self.notifier.application_event(
            EventType.APPLICATION_STATUS_CHANGED,
            project,
            application.student_id,
            read.model_dump(mode="json"),
        )
        return read

    async def analytics(self, actor: Actor) -> AnalyticsResponse:
        tenant_id = policies.admin_tenant_filter(actor)
        return AnalyticsResponse(
            metrics=AnalyticsMetrics(
                total_projects=await self.project_repo.total(tenant_id),
                total_applications=await self.application_repo.total(tenant_id),
            ),
            distributions=AnalyticsDistributions(
                projects_by_status=await self.project_repo.count_by(
                    Project.moderation_status, tenant_id
                ),
                projects_by_type=await self.project_repo.count_by(Project.project_type, tenant_id),
                applications_by_status=await self.application_repo.count_by_status(tenant_id),
            ),
        )

    async def list_audit_logs(
        self,
        actor: Actor,
        params: PageParams,
        action: str | None = None,
        actor_id: str | None = None,
        entity_id: UUID | None = None,
    ) -> Page[AuditLogRead]:
        tenant_id = policies.admin_tenant_filter(actor)
        logs, total = await self.audit_service.list_logs(
            params, tenant_id, action=action, actor_id=actor_id, entity_id=entity_id
        )
        return Page.build([AuditLogRead.model_validate(log) for log in logs], params, total)
