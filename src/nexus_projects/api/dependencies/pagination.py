"""Page/limit query parameters."""

from typing import Annotated

from fastapi import Depends, Query

from src.nexus_projects.schemas.pagination import MAX_PAGE_SIZE, PageParams


def get_page_params(
    page: Annotated[int, Query(ge=1, description="1-based page number")] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE, description="Items per page")] = 20,
) -> PageParams:
    return PageParams(page=page, limit=limit)


Pagination = Annotated[PageParams, Depends(get_page_params)]
