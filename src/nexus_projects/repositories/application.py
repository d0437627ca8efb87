"""Application repository."""

from collections.abc import Iterable
from typing import Any, cast
from uuid import UUID

from sqlalchemy import ColumnElement, delete, func, update
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.nexus_projects.models import Application, ApplicationStatus, Project
from src.nexus_projects.models.base import utc_now
from src.nexus_projects.repositories.base import BaseRepository
from src.nexus_projects.schemas.pagination import PageParams


class ApplicationRepository(BaseRepository[Application]):
    model = Application

    async def get_with_project(self, id: UUID) -> tuple[Application, Project] | None:
        result = await self.session.execute(
            select(Application, Project)
            .join(Project, Project.id == Application.project_id)  # type: ignore[arg-type]
            .where(Application.id == id)
        )
        row = result.first()
        return (row[0], row[1]) if row else None

    async def get_for_student(self, project_id: UUID, student_id: str) -> Application | None:
        result = await self.session.execute(
            select(Application).where(
                Application.project_id == project_id,
                Application.student_id == student_id,
            )
        )
        return result.scalar_one_or_none()

    async def statuses_for_student(
        self, project_ids: Iterable[UUID], student_id: str
    ) -> dict[UUID, str]:
        ids = list(project_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(Application.project_id, Application.status).where(
                Application.project_id.in_(ids),  # type: ignore[attr-defined]
                Application.student_id == student_id,
            )
        )
        return {project_id: status for project_id, status in result.all()}

    async def list_for_project(self, project_id: UUID, status: str | None = None) -> list[Application]:
        query = select(Application).where(Application.project_id == project_id)
        if status:
            query = query.where(Application.status == status)
        result = await self.session.execute(
            query.order_by(Application.applied_at.desc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def list_for_student(
        self,
        student_id: str,
        tenant_id: str,
        params: PageParams,
        status: str | None = None,
    ) -> tuple[list[tuple[Application, Project]], int]:
        query = (
            select(Application, Project)
            .join(Project, Project.id == Application.project_id)  # type: ignore[arg-type]
            .where(
                Application.student_id == student_id,
                Project.tenant_id == tenant_id,
                Project.archived_at.is_(None),  # type: ignore[union-attr]
            )
        )
        if status:
            query = query.where(Application.status == status)
        total = await self.count(query)
        result = await self.session.execute(
            query.order_by(Application.applied_at.desc())  # type: ignore[attr-defined]
            .offset(params.offset)
            .limit(params.limit)
        )
        return [(a, p) for a, p in result.all()], total

    async def list_admin(
        self,
        conditions: list[ColumnElement[bool]],
        params: PageParams,
    ) -> tuple[list[tuple[Application, Project]], int]:
        query = (
            select(Application, Project)
            .join(Project, Project.id == Application.project_id)  # type: ignore[arg-type]
            .where(*conditions)
        )
        total = await self.count(query)
        result = await self.session.execute(
            query.order_by(Application.applied_at.desc())  # type: ignore[attr-defined]
            .offset(params.offset)
            .limit(params.limit)
        )
        return [(a, p) for a, p in result.all()], total

    async def is_accepted(self, project_id: UUID, student_id: str) -> bool:
        result = await self.session.execute(
            select(Application.id).where(
                Application.project_id == project_id,
                Application.student_id == student_id,
                Application.status == ApplicationStatus.ACCEPTED.value,
            )
        )
        return result.first() is not None

    async def accepted_student_ids(self, project_id: UUID) -> list[str]:
        result = await self.session.execute(
            select(Application.student_id).where(
                Application.project_id == project_id,
                Application.status == ApplicationStatus.ACCEPTED.value,
            )
        )
        return list(result.scalars().all())

    async def transition(self, id: UUID, expected: str, new_status: str) -> bool:
        """Compare-and-swap on status. False when the row is no longer ``expected``."""
        result = await self.session.execute(
            update(Application)
            .where(
                Application.id == id,  # type: ignore[arg-type]
                Application.status == expected,  # type: ignore[arg-type]
            )
            .values(status=new_status, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return cast(CursorResult[Any], result).rowcount == 1

    async def delete_if_status(self, id: UUID, expected: str) -> bool:
        """Delete only while the row still has status ``expected``."""
        result = await self.session.execute(
            delete(Application)
            .where(
                Application.id == id,  # type: ignore[arg-type]
                Application.status == expected,  # type: ignore[arg-type]
            )
            .execution_options(synchronize_session=False)
        )
        return cast(CursorResult[Any], result).rowcount == 1

    async def counts_by_status(self, project_ids: Iterable[UUID]) -> dict[UUID, dict[str, int]]:
        ids = list(project_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(Application.project_id, Application.status, func.count())
            .where(Application.project_id.in_(ids))  # type: ignore[attr-defined]
            .group_by(Application.project_id, Application.status)
        )
        counts: dict[UUID, dict[str, int]] = {}
        for project_id, status, n in result.all():
            counts.setdefault(project_id, {})[status] = int(n)
        return counts

    async def count_by_status(self, tenant_id: str | None) -> dict[str, int]:
        query = select(Application.status, func.count()).group_by(Application.status)
        if tenant_id is not None:
            query = query.join(Project, Project.id == Application.project_id).where(  # type: ignore[arg-type]
                Project.tenant_id == tenant_id
            )
        result = await self.session.execute(query)
        return {str(status): int(n) for status, n in result.all()}

    async def total(self, tenant_id: str | None) -> int:
        query = select(Application)
        if tenant_id is not None:
            query = query.join(Project, Project.id == Application.project_id).where(  # type: ignore[arg-type]
                Project.tenant_id == tenant_id
            )
        return await self.count(query)
