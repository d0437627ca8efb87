"""Database session dependency."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from src.nexus_projects.core.db import get_session
from src.nexus_projects.core.exceptions import DependencyUnavailable
from src.nexus_projects.core.logging import get_logger

logger = get_logger(__name__)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; uncommitted work is rolled back on error.

    Raises:
        DependencyUnavailable: The database could not be reached.
    """
    async with get_session() as session:
        try:
            yield session
        except (OperationalError, InterfaceError) as e:
            logger.error("Database unavailable", error=str(e.orig or e))
            raise DependencyUnavailable("Database unavailable") from e


DBSession = Annotated[AsyncSession, Depends(get_db_session)]
