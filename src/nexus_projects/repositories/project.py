"""Project repository."""

from typing import Any, cast
from uuid import UUID

from sqlalchemy import ColumnElement, func, or_, update
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.nexus_projects.models import Project, ProjectDepartment
from src.nexus_projects.models.base import utc_now
from src.nexus_projects.repositories.base import BaseRepository
from src.nexus_projects.schemas.pagination import PageParams


def text_search_filter(q: str, *columns: Any) -> ColumnElement[bool]:
    """Case-insensitive substring match over ``columns``."""
    pattern = f"%{q.lower()}%"
    return or_(*(func.lower(col).like(pattern) for col in columns))


def has_department_filter(department: str) -> ColumnElement[bool]:
    return Project.departments.any(ProjectDepartment.name == department)  # type: ignore[attr-defined]


class ProjectRepository(BaseRepository[Project]):
    model = Project

    async def list_filtered(
        self,
        conditions: list[ColumnElement[bool]],
        params: PageParams,
    ) -> tuple[list[Project], int]:
        query = select(Project).where(*conditions)
        return await self.paginate(
            query,
            params,
            [Project.created_at.desc(), Project.id.desc()],  # type: ignore[attr-defined]
        )

    async def list_all(self, conditions: list[ColumnElement[bool]]) -> list[Project]:
        result = await self.session.execute(
            select(Project)
            .where(*conditions)
            .order_by(Project.created_at.desc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def get_many(self, ids: list[UUID]) -> list[Project]:
        if not ids:
            return []
        result = await self.session.execute(
            select(Project).where(Project.id.in_(ids))  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def try_reserve_seat(self, project_id: UUID) -> bool:
        """Atomically take one accepted seat if capacity remains.

        The check and the increment are a single conditional UPDATE, so two
        concurrent accepts can never both succeed for the last seat.
        """
        result = await self.session.execute(
            update(Project)
            .where(
                Project.id == project_id,  # type: ignore[arg-type]
                Project.accepted_count < Project.max_students,  # type: ignore[arg-type]
            )
            .values(accepted_count=Project.accepted_count + 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return cast(CursorResult[Any], result).rowcount == 1

    async def release_seat(self, project_id: UUID) -> bool:
        result = await self.session.execute(
            update(Project)
            .where(
                Project.id == project_id,  # type: ignore[arg-type]
                Project.accepted_count > 0,  # type: ignore[arg-type]
            )
            .values(accepted_count=Project.accepted_count - 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return cast(CursorResult[Any], result).rowcount == 1

    async def set_max_students(self, project_id: UUID, max_students: int) -> bool:
        """Change capacity only if it stays at or above the accepted count."""
        result = await self.session.execute(
            update(Project)
            .where(
                Project.id == project_id,  # type: ignore[arg-type]
                Project.accepted_count <= max_students,  # type: ignore[arg-type]
            )
            .values(max_students=max_students, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return cast(CursorResult[Any], result).rowcount == 1

    async def refresh(self, project: Project) -> Project:
        await self.session.refresh(project)
        return project

    async def count_by(self, column: Any, tenant_id: str | None) -> dict[str, int]:
        query = select(column, func.count()).group_by(column)
        if tenant_id is not None:
            query = query.where(Project.tenant_id == tenant_id)
        result = await self.session.execute(query)
        return {str(key): int(n) for key, n in result.all()}

    async def total(self, tenant_id: str | None) -> int:
        query = select(Project)
        if tenant_id is not None:
            query = query.where(Project.tenant_id == tenant_id)
        return await self.count(query)
