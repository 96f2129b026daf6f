"""Pagination helpers for admin listings and transaction history."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

DEFAULT_LIMIT = 100
MAX_LIMIT = 500


class Page(BaseModel, Generic[T]):
    items: list[T]
    limit: int
    offset: int
    total: int | None = None


def paginate(limit: int | None, offset: int | None, max_limit: int = MAX_LIMIT) -> tuple[int, int]:
    """Clamp limit/offset; return (limit, offset)."""
    limit = DEFAULT_LIMIT if limit is None else limit
    limit = max(1, min(limit, max_limit))
    offset = max(0, offset or 0)
    return limit, offset
