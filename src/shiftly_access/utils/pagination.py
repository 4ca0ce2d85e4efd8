"""Pagination, search and sort helpers for list endpoints."""

import math
from dataclasses import dataclass
from typing import Any, Generic, List, Mapping, Optional, TypeVar

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

T = TypeVar("T")


@dataclass
class PaginationParams:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: str = "asc"
    role_id: Optional[str] = None
    team_id: Optional[str] = None


@dataclass
class PaginatedResponse(Generic[T]):
    data: List[T]
    page: int
    page_size: int
    total: int
    total_pages: int


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_pagination_params(raw: Mapping[str, Any]) -> PaginationParams:
    """Build PaginationParams from raw query values, clamping out-of-range input."""
    page = max(1, _to_int(raw.get("page"), DEFAULT_PAGE))
    page_size = min(max(1, _to_int(raw.get("page_size"), DEFAULT_PAGE_SIZE)), MAX_PAGE_SIZE)
    search = (raw.get("search") or "").strip() or None
    return PaginationParams(
        page=page,
        page_size=page_size,
        search=search,
        sort_by=raw.get("sort_by") or None,
        sort_order="desc" if raw.get("sort_order") == "desc" else "asc",
        role_id=raw.get("role_id") or None,
        team_id=raw.get("team_id") or None,
    )


def calculate_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def build_paginated_response(
    data: List[T], total: int, params: PaginationParams
) -> PaginatedResponse[T]:
    page = params.page or DEFAULT_PAGE
    page_size = params.page_size or DEFAULT_PAGE_SIZE
    return PaginatedResponse(
        data=data,
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size),
    )
