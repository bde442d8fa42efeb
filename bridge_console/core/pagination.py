import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


def total_pages(total_count: int, limit: int) -> int:
    if limit <= 0:
        raise ValueError("limit must be positive")
    return max(1, math.ceil(total_count / limit))


def page_range(page: int, limit: int) -> tuple:
    """Inclusive (start, end) row range for PostgREST .range()."""
    offset = (page - 1) * limit
    return offset, offset + limit - 1


class Page(BaseModel, Generic[T]):
    items: List[T]
    total_count: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, items: List[T], total_count: int, page: int, limit: int) -> "Page[T]":
        return cls(
            items=items,
            total_count=total_count,
            page=page,
            limit=limit,
            total_pages=total_pages(total_count, limit),
        )

    @classmethod
    def empty(cls, page: int = 1, limit: int = 10) -> "Page[T]":
        return cls.build([], 0, page, limit)


class PaginationState:
    """Client-side page/limit cursor for consumers that walk a paginated list."""

    def __init__(self, initial_page: int = 1, initial_limit: int = 10):
        self.initial_page = initial_page
        self.initial_limit = initial_limit
        self.page = initial_page
        self.limit = initial_limit

    def go_to_page(self, page: int) -> None:
        self.page = page

    def next_page(self) -> None:
        self.page += 1

    def previous_page(self) -> None:
        self.page = max(1, self.page - 1)

    def change_limit(self, limit: int) -> None:
        self.limit = limit
        self.page = 1

    def reset(self) -> None:
        self.page = self.initial_page
        self.limit = self.initial_limit

    def range(self) -> tuple:
        return page_range(self.page, self.limit)
