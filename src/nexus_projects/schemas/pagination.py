"""Pagination schemas for page/limit listings."""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

MAX_PAGE_SIZE = 100


class PageParams(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Page(BaseModel, Generic[T]):
    """One page of a listing plus the totals needed to render pagers."""

    items: list[T]
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, items: list[T], params: PageParams, total: int) -> "Page[T]":
        return cls(
            items=items,
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=math.ceil(total / params.limit) if total else 0,
        )
