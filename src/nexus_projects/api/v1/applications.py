"""Application endpoints - apply, decide, withdraw."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from src.nexus_projects.api.dependencies import ApplicationServiceDep, CurrentActor, Pagination
from src.nexus_projects.models import ApplicationStatus
from src.nexus_projects.schemas.application import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationRead,
    ApplicationWithdrawn,
    ApplicationWithProject,
)
from src.nexus_projects.schemas.pagination import Page

router = APIRouter(tags=["applications"])


@router.post(
    "/projects/{project_id}/applications",
    response_model=ApplicationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to project",
    responses={
        403: {"description": "Caller is not a student"},
        404: {"description": "Project not found or not visible"},
        409: {"description": "Duplicate, full, closed or past deadline"},
    },
)
async def apply_to_project(
    project_id: UUID,
    actor: CurrentActor,
    service: ApplicationServiceDep,
    data: ApplicationCreate | None = None,
) -> ApplicationRead:
    return await service.apply(actor, project_id, data or ApplicationCreate())


@router.get(
    "/projects/{project_id}/applications",
    response_model=list[ApplicationRead],
    summary="List applications for a project",
    responses={404: {"description": "Project not found or not owned by caller"}},
)
async def list_project_applications(
    project_id: UUID,
    actor: CurrentActor,
    service: ApplicationServiceDep,
    status_filter: Annotated[ApplicationStatus | None, Query(alias="status")] = None,
) -> list[ApplicationRead]:
    """Owner only."""
    return await service.list_for_project(
        actor, project_id, status_filter.value if status_filter else None
    )


@router.get(
    "/applications/mine",
    response_model=Page[ApplicationWithProject],
    summary="My applications",
)
async def list_my_applications(
    actor: CurrentActor,
    service: ApplicationServiceDep,
    params: Pagination,
    status_filter: Annotated[ApplicationStatus | None, Query(alias="status")] = None,
) -> Page[ApplicationWithProject]:
    return await service.list_mine(
        actor, params, status_filter.value if status_filter else None
    )


@router.put(
    "/applications/{application_id}/status",
    response_model=ApplicationRead,
    summary="Accept or reject an application",
    responses={
        404: {"description": "Application not found"},
        409: {"description": "Not pending, or project full"},
    },
)
async def decide_application(
    application_id: UUID,
    data: ApplicationDecision,
    actor: CurrentActor,
    service: ApplicationServiceDep,
) -> ApplicationRead:
    return await service.decide(actor, application_id, data.status.value)


@router.delete(
    "/applications/{application_id}",
    response_model=ApplicationWithdrawn,
    summary="Withdraw application",
    responses={
        403: {"description": "Not the applicant"},
        409: {"description": "Application is no longer pending"},
    },
)
async def withdraw_application(
    application_id: UUID, actor: CurrentActor, service: ApplicationServiceDep
) -> ApplicationWithdrawn:
    await service.withdraw(actor, application_id)
    return ApplicationWithdrawn()
