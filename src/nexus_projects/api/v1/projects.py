"""Project endpoints - visibility-filtered reads and owner edits."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from src.nexus_projects.api.dependencies import CurrentActor, Pagination, ProjectServiceDep
from src.nexus_projects.models import ProgressStatus, ProjectType
from src.nexus_projects.schemas.pagination import Page
from src.nexus_projects.schemas.project import (
    ProjectCreate,
    ProjectDeleted,
    ProjectRead,
    ProjectUpdate,
)

router = APIRouter(prefix="/projects", tags=["projects"])


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


@router.get(
    "",
    response_model=Page[ProjectRead],
    summary="List projects",
    description="Projects visible to the caller within their college.",
)
async def list_projects(
    actor: CurrentActor,
    service: ProjectServiceDep,
    params: Pagination,
    q: Annotated[str | None, Query(max_length=200, description="Search title/description")] = None,
    project_type: ProjectType | None = None,
    progress_status: ProgressStatus | None = None,
) -> Page[ProjectRead]:
    return await service.list_projects(
        actor,
        params,
        q=q,
        project_type=project_type.value if project_type else None,
        progress_status=progress_status.value if progress_status else None,
    )


@router.get(
    "/marketplace",
    response_model=Page[ProjectRead],
    summary="Browse open projects",
    description="Open, approved projects a student can apply to.",
    responses={403: {"description": "Caller is not a student"}},
)
async def marketplace(
    actor: CurrentActor,
    service: ProjectServiceDep,
    params: Pagination,
    q: Annotated[str | None, Query(max_length=200)] = None,
    project_type: ProjectType | None = None,
    department: Annotated[str | None, Query(max_length=100)] = None,
    skills: Annotated[str | None, Query(description="Comma-separated, any match")] = None,
    tags: Annotated[str | None, Query(description="Comma-separated, any match")] = None,
) -> Page[ProjectRead]:
    return await service.marketplace(
        actor,
        params,
        q=q,
        project_type=project_type.value if project_type else None,
        department=department,
        skills=_split_csv(skills),
        tags=_split_csv(tags),
    )


@router.get(
    "/mine",
    response_model=list[ProjectRead],
    summary="My projects",
    responses={403: {"description": "Caller is not faculty"}},
)
async def list_my_projects(actor: CurrentActor, service: ProjectServiceDep) -> list[ProjectRead]:
    """Non-archived projects authored by the caller."""
    return await service.list_mine(actor)


@router.get(
    "/mine/accepted",
    response_model=list[ProjectRead],
    summary="Projects I was accepted to",
    responses={403: {"description": "Caller is not a student"}},
)
async def list_accepted_projects(
    actor: CurrentActor, service: ProjectServiceDep
) -> list[ProjectRead]:
    return await service.list_accepted(actor)


@router.post(
    "",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    responses={
        201: {"description": "Project created"},
        403: {"description": "Caller is not faculty"},
        422: {"description": "Invalid input or incomplete profile"},
    },
)
async def create_project(
    data: ProjectCreate, actor: CurrentActor, service: ProjectServiceDep
) -> ProjectRead:
    return await service.create_project(actor, data)


@router.get(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Get project",
    responses={404: {"description": "Project not found or not visible"}},
)
async def get_project(
    project_id: UUID, actor: CurrentActor, service: ProjectServiceDep
) -> ProjectRead:
    return await service.get_project(actor, project_id)


@router.put(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Update project",
    responses={
        404: {"description": "Project not found or not owned by caller"},
        409: {"description": "Capacity below accepted count"},
    },
)
async def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    actor: CurrentActor,
    service: ProjectServiceDep,
) -> ProjectRead:
    """Partial update by the author. Progress can only move forward."""
    return await service.update_project(actor, project_id, data)


@router.delete(
    "/{project_id}",
    response_model=ProjectDeleted,
    summary="Delete project",
    description="Soft delete: the project is archived and disappears from listings.",
    responses={404: {"description": "Project not found or not owned by caller"}},
)
async def delete_project(
    project_id: UUID, actor: CurrentActor, service: ProjectServiceDep
) -> ProjectDeleted:
    await service.delete_project(actor, project_id)
    return ProjectDeleted()
