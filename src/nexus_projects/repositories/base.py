"""Base repository with common CRUD operations."""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from src.nexus_projects.schemas.pagination import PageParams


ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """Base repository providing common database operations.

    Repositories handle data access only. Transaction control (commit)
    should be done in the service layer.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, id: UUID) -> ModelType | None:
        """Get a record by its primary key."""
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()

    def add(self, entity: ModelType) -> None:
        """Add entity to session (no flush/commit)."""
        self.session.add(entity)

    async def delete(self, entity: ModelType) -> None:
        await self.session.delete(entity)

    async def count(self, query: Any) -> int:
        """Count rows matched by ``query`` (a select over this model)."""
        result = await self.session.execute(
            select(func.count()).select_from(query.order_by(None).subquery())
        )
        return int(result.scalar_one())

    async def paginate(
        self,
        query: Any,  # SelectOfScalar or Select - SQLModel/SQLAlchemy query
        params: PageParams,
        order_by: Any,
    ) -> tuple[list[ModelType], int]:
        """Execute offset pagination on a query.

        Args:
            query: The base query to paginate, already filtered
            params: Requested page and page size
            order_by: Ordering clause(s) applied before slicing

        Returns:
            Tuple of (items, total) where total counts every matching row.
        """
        total = await self.count(query)
        if not isinstance(order_by, (list, tuple)):
            order_by = [order_by]
        result = await self.session.execute(
            query.order_by(*order_by).offset(params.offset).limit(params.limit)
        )
        return list(result.scalars().all()), total
