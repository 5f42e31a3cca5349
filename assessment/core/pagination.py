"""Offset pagination over SQLAlchemy selects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from assessment.core.errors import BadRequestError

T = TypeVar("T")

MAX_PAGE_SIZE = 100


@dataclass
class Page(Generic[T]):
    """One page of results: {data, total, page, page_size}."""

    data: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10


def check_page_args(page: int, page_size: int) -> None:
    if page < 1:
        raise BadRequestError("page must be >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise BadRequestError(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")


async def paginate(
    session: AsyncSession,
    stmt: Select,
    page: int,
    page_size: int,
    transform: Callable[[Any], T] | None = None,
    scalars: bool = True,
) -> Page[T]:
    """
    Run a select for one page and count the full result set.

    Args:
        session: Async database session
        stmt: Ordered select
        page: 1-based page number
        page_size: Rows per page
        transform: Optional mapper applied to each row
        scalars: Yield the first column only (False yields full rows)

    Returns:
        Page with data, total, page, page_size
    """
    check_page_args(page, page_size)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await session.execute(count_stmt)).scalar_one()

    result = await session.execute(stmt.offset((page - 1) * page_size).limit(page_size))
    rows = result.scalars().all() if scalars else result.all()
    data = [transform(row) for row in rows] if transform else list(rows)
    return Page(data=data, total=total, page=page, page_size=page_size)
