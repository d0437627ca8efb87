"""Repositories for member-gated collaboration entities."""

from typing import Any, cast
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.nexus_projects.models import ProjectAttachment, ProjectComment, ProjectTask
from src.nexus_projects.models.base import utc_now
from src.nexus_projects.repositories.base import BaseRepository


class TaskRepository(BaseRepository[ProjectTask]):
    model = ProjectTask

    async def list_for_project(self, project_id: UUID) -> list[ProjectTask]:
        result = await self.session.execute(
            select(ProjectTask)
            .where(ProjectTask.project_id == project_id)
            .order_by(ProjectTask.created_at.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def unassign(self, project_id: UUID, user_id: str) -> int:
        """Clear ``user_id`` from every task on the project. Returns tasks changed."""
        result = await self.session.execute(
            update(ProjectTask)
            .where(
                ProjectTask.project_id == project_id,  # type: ignore[arg-type]
                ProjectTask.assigned_to_id == user_id,  # type: ignore[arg-type]
            )
            .values(assigned_to_id=None, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return cast(CursorResult[Any], result).rowcount


class AttachmentRepository(BaseRepository[ProjectAttachment]):
    model = ProjectAttachment

    async def list_for_project(self, project_id: UUID) -> list[ProjectAttachment]:
        result = await self.session.execute(
            select(ProjectAttachment)
            .where(ProjectAttachment.project_id == project_id)
            .order_by(ProjectAttachment.created_at.desc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())


class CommentRepository(BaseRepository[ProjectComment]):
    model = ProjectComment

    async def list_for_project(
        self, project_id: UUID, task_id: UUID | None = None
    ) -> list[ProjectComment]:
        query = select(ProjectComment).where(ProjectComment.project_id == project_id)
        if task_id is not None:
            query = query.where(ProjectComment.task_id == task_id)
        result = await self.session.execute(
            query.order_by(ProjectComment.created_at.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())
