"""Admin console endpoints (HEAD_ADMIN / SUPER_ADMIN)."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from src.nexus_projects.api.dependencies import AdminActor, AdminServiceDep, Pagination
from src.nexus_projects.models import (
    ApplicationStatus,
    AuditAction,
    ModerationAction,
    ModerationStatus,
    ProgressStatus,
    ProjectType,
)
from src.nexus_projects.schemas.admin import (
    AnalyticsResponse,
    ApplicationOverrideRequest,
    ApplicationOverrideResponse,
    AuditLogRead,
    BulkModerateRequest,
    BulkModerateResponse,
    ModerateProjectRequest,
    ModerateProjectResponse,
)
from src.nexus_projects.schemas.application import AdminApplicationRead
from src.nexus_projects.schemas.pagination import Page
from src.nexus_projects.schemas.project import AdminProjectRead

router = APIRouter(prefix="/admin", tags=["admin"])

_MODERATION_PAST_TENSE = {
    ModerationAction.APPROVE: "approved",
    ModerationAction.REJECT: "rejected",
    ModerationAction.ARCHIVE: "archived",
    ModerationAction.REOPEN: "reopened",
}


@router.get(
    "/projects",
    response_model=Page[AdminProjectRead],
    summary="List projects (admin)",
    description="All projects in the admin's scope, including archived ones.",
)
async def list_projects(
    actor: AdminActor,
    service: AdminServiceDep,
    params: Pagination,
    q: Annotated[str | None, Query(max_length=200)] = None,
    department: Annotated[str | None, Query(max_length=100)] = None,
    moderation_status: ModerationStatus | None = None,
    progress_status: ProgressStatus | None = None,
    project_type: ProjectType | None = None,
) -> Page[AdminProjectRead]:
    return await service.list_projects(
        actor,
        params,
        q=q,
        department=department,
        moderation_status=moderation_status.value if moderation_status else None,
        progress_status=progress_status.value if progress_status else None,
        project_type=project_type.value if project_type else None,
    )


@router.post(
    "/projects/bulk-moderate",
    response_model=BulkModerateResponse,
    summary="Moderate several projects",
    responses={403: {"description": "No requested project is in scope"}},
)
async def bulk_moderate(
    data: BulkModerateRequest, actor: AdminActor, service: AdminServiceDep
) -> BulkModerateResponse:
    """Out-of-scope or ineligible projects are skipped and counted."""
    return await service.bulk_moderate(actor, data.project_ids, data.action, data.reason)


@router.get(
    "/projects/{project_id}",
    response_model=AdminProjectRead,
    summary="Get project (admin)",
    responses={403: {"description": "Outside admin scope"}, 404: {"description": "Not found"}},
)
async def get_project(
    project_id: UUID, actor: AdminActor, service: AdminServiceDep
) -> AdminProjectRead:
    return await service.get_project(actor, project_id)


@router.put(
    "/projects/{project_id}/moderate",
    response_model=ModerateProjectResponse,
    summary="Moderate project",
    responses={
        403: {"description": "Outside admin scope"},
        404: {"description": "Not found"},
        409: {"description": "Action not valid from the current state"},
    },
)
async def moderate_project(
    project_id: UUID,
    data: ModerateProjectRequest,
    actor: AdminActor,
    service: AdminServiceDep,
) -> ModerateProjectResponse:
    project = await service.moderate(actor, project_id, data.action, data.reason)
    return ModerateProjectResponse(
        message=f"Project {_MODERATION_PAST_TENSE[data.action]}", project=project
    )


@router.get(
    "/applications",
    response_model=Page[AdminApplicationRead],
    summary="List applications (admin)",
)
async def list_applications(
    actor: AdminActor,
    service: AdminServiceDep,
    params: Pagination,
    q: Annotated[str | None, Query(max_length=200, description="Student name/department")] = None,
    status_filter: Annotated[ApplicationStatus | None, Query(alias="status")] = None,
    project_id: UUID | None = None,
) -> Page[AdminApplicationRead]:
    return await service.list_applications(
        actor,
        params,
        q=q,
        status=status_filter.value if status_filter else None,
        project_id=project_id,
    )


@router.put(
    "/applications/{application_id}/status",
    response_model=ApplicationOverrideResponse,
    summary="Override application status",
    responses={
        403: {"description": "Outside admin scope"},
        404: {"description": "Not found"},
        409: {"description": "Project full or concurrent change"},
    },
)
async def override_application_status(
    application_id: UUID,
    data: ApplicationOverrideRequest,
    actor: AdminActor,
    service: AdminServiceDep,
) -> ApplicationOverrideResponse:
    application = await service.override_application_status(
        actor, application_id, data.status.value, data.reason
    )
    return ApplicationOverrideResponse(
        message=f"Application status set to {data.status.value}", application=application
    )


@router.get("/analytics", response_model=AnalyticsResponse, summary="Platform analytics")
async def analytics(actor: AdminActor, service: AdminServiceDep) -> AnalyticsResponse:
    return await service.analytics(actor)


@router.get(
    "/audit-logs",
    response_model=Page[AuditLogRead],
    summary="List audit logs",
    description="Newest first. A HEAD_ADMIN sees only their college's entries.",
)
async def list_audit_logs(
    actor: AdminActor,
    service: AdminServiceDep,
    params: Pagination,
    action: AuditAction | None = None,
    actor_id: Annotated[str | None, Query(max_length=100)] = None,
    entity_id: UUID | None = None,
) -> Page[AuditLogRead]:
    return await service.list_audit_logs(
        actor,
        params,
        action=action.value if action else None,
        actor_id=actor_id,
        entity_id=entity_id,
    )
