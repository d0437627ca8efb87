"""Derived project membership: the author, or a student with an ACCEPTED application."""

from uuid import UUID

from sqlalchemy import exists, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from src.nexus_projects.models import Application, ApplicationStatus, Project


class MembershipRepository:
    """Answers membership questions with a single query; nothing is stored."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def is_member(self, project_id: UUID, user_id: str) -> bool:
        accepted = exists(
            select(Application.id).where(
                Application.project_id == Project.id,
                Application.student_id == user_id,
                Application.status == ApplicationStatus.ACCEPTED.value,
            )
        )
        result = await self.session.execute(
            select(Project.id).where(
                Project.id == project_id,
                or_(Project.author_id == user_id, accepted),
            )
        )
        return result.first() is not None

    async def member_ids(self, project: Project) -> list[str]:
        """Author first, then accepted students."""
        result = await self.session.execute(
            select(Application.student_id).where(
                Application.project_id == project.id,
                Application.status == ApplicationStatus.ACCEPTED.value,
            )
        )
        students = [sid for sid in result.scalars().all() if sid != project.author_id]
        return [project.author_id, *students]

    async def accepted_project_ids(self, user_id: str) -> list[UUID]:
        result = await self.session.execute(
            select(Application.project_id).where(
                Application.student_id == user_id,
                Application.status == ApplicationStatus.ACCEPTED.value,
            )
        )
        return list(result.scalars().all())
