"""
Pagination and list query schemas.
"""

from __future__ import annotations

from typing import Any, Generic, List, Literal, Optional, TypeVar

from pydantic import Field

from backoffice.schemas.common.base import BaseSchema

T = TypeVar("T")

__all__ = [
    "ListParams",
    "PaginatedResponse",
]


class ListParams(BaseSchema):
    """Common list query parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(default=10, ge=1, le=100, description="Items per page")
    sort_by: Optional[str] = Field(default=None, description="Sort field (camelCase or snake_case)")
    sort_order: Literal["asc", "desc"] = Field(default="desc", description="Sort direction")
    search: Optional[str] = Field(default=None, description="Free-text search")

    def paging(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "sort_by": self.sort_by,
            "sort_order": self.sort_order,
        }


class PaginatedResponse(BaseSchema, Generic[T]):
    """List envelope: count, total, totalPages, currentPage, data."""

    success: bool = True
    count: int = Field(..., ge=0, description="Items on this page")
    total: int = Field(..., ge=0, description="Total number of items")
    total_pages: int = Field(..., ge=0, description="Total number of pages")
    current_page: int = Field(..., ge=1, description="Current page")
    data: List[T] = Field(default_factory=list)
    summary: Optional[Any] = None
