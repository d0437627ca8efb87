"""Collaboration endpoints - tasks, attachments and comments for project members."""

from uuid import UUID

from fastapi import APIRouter, status

from src.nexus_projects.api.dependencies import CollaborationServiceDep, CurrentActor
from src.nexus_projects.schemas.collaboration import (
    AttachmentCreate,
    AttachmentRead,
    CommentCreate,
    CommentRead,
    Deleted,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)

router = APIRouter(tags=["collaboration"])

_MEMBER_RESPONSES: dict[int | str, dict[str, str]] = {
    403: {"description": "Caller is not a project member"},
    404: {"description": "Project not found"},
}


# --- Tasks ---


@router.get(
    "/projects/{project_id}/tasks",
    response_model=list[TaskRead],
    summary="List tasks",
    responses=_MEMBER_RESPONSES,
)
async def list_tasks(
    project_id: UUID, actor: CurrentActor, service: CollaborationServiceDep
) -> list[TaskRead]:
    return await service.list_tasks(actor, project_id)


@router.post(
    "/projects/{project_id}/tasks",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create task",
    responses={**_MEMBER_RESPONSES, 422: {"description": "Assignee is not an accepted member"}},
)
async def create_task(
    project_id: UUID,
    data: TaskCreate,
    actor: CurrentActor,
    service: CollaborationServiceDep,
) -> TaskRead:
    """Project author only."""
    return await service.create_task(actor, project_id, data)


@router.put(
    "/tasks/{task_id}",
    response_model=TaskRead,
    summary="Update task",
    responses=_MEMBER_RESPONSES,
)
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    actor: CurrentActor,
    service: CollaborationServiceDep,
) -> TaskRead:
    """The author may change anything; the assignee may change only the status."""
    return await service.update_task(actor, task_id, data)


@router.delete(
    "/tasks/{task_id}",
    response_model=Deleted,
    summary="Delete task",
    responses=_MEMBER_RESPONSES,
)
async def delete_task(
    task_id: UUID, actor: CurrentActor, service: CollaborationServiceDep
) -> Deleted:
    await service.delete_task(actor, task_id)
    return Deleted()


# --- Attachments ---


@router.get(
    "/projects/{project_id}/attachments",
    response_model=list[AttachmentRead],
    summary="List attachments",
    responses=_MEMBER_RESPONSES,
)
async def list_attachments(
    project_id: UUID, actor: CurrentActor, service: CollaborationServiceDep
) -> list[AttachmentRead]:
    return await service.list_attachments(actor, project_id)


@router.post(
    "/projects/{project_id}/attachments",
    response_model=AttachmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add attachment",
    description="Registers an already uploaded file by URL.",
    responses=_MEMBER_RESPONSES,
)
async def add_attachment(
    project_id: UUID,
    data: AttachmentCreate,
    actor: CurrentActor,
    service: CollaborationServiceDep,
) -> AttachmentRead:
    return await service.add_attachment(actor, project_id, data)


@router.delete(
    "/attachments/{attachment_id}",
    response_model=Deleted,
    summary="Delete attachment",
    responses={403: {"description": "Not the uploader or project author"}},
)
async def delete_attachment(
    attachment_id: UUID, actor: CurrentActor, service: CollaborationServiceDep
) -> Deleted:
    await service.delete_attachment(actor, attachment_id)
    return Deleted()


# --- Comments ---


@router.get(
    "/projects/{project_id}/comments",
    response_model=list[CommentRead],
    summary="List comments",
    responses=_MEMBER_RESPONSES,
)
async def list_comments(
    project_id: UUID,
    actor: CurrentActor,
    service: CollaborationServiceDep,
    task_id: UUID | None = None,
) -> list[CommentRead]:
    return await service.list_comments(actor, project_id, task_id)


@router.post(
    "/projects/{project_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add comment",
    responses=_MEMBER_RESPONSES,
)
async def add_comment(
    project_id: UUID,
    data: CommentCreate,
    actor: CurrentActor,
    service: CollaborationServiceDep,
) -> CommentRead:
    return await service.add_comment(actor, project_id, data)
