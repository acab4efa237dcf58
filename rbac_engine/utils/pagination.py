"""
Offset pagination.

Usage:
    page = await paginate_offset(db, select(Policy).order_by(Policy.created_at), page=2, limit=20)
    page.items, page.total, page.has_next
"""

from typing import TypeVar, Generic

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class OffsetPage(BaseModel, Generic[T]):
    """One page of rows plus the row count across all pages."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


async def paginate_offset(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    limit: int = 20,
) -> OffsetPage:
    """
    Run one page of a query.

    The query should carry its own ORDER BY for stable pages.
    """
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be >= 1")

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await db.scalar(count_query) or 0

    rows = await db.scalars(query.offset((page - 1) * limit).limit(limit))
    return OffsetPage(items=list(rows), total=total, page=page, limit=limit)
