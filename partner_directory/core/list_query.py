# partner_directory/core/list_query.py
"""
Pagination, filtering, search and sorting parameters shared by the
listing endpoints.

    query = ListQuery.parse({"page": "2", "page_size": "25", "sort_by": "name"})
    rows = q.order_by(...).offset(query.offset).limit(query.limit).all()
    return ListResult(data=rows, pagination=query.pagination(total))
"""

import math
from typing import Any, Generic, Literal, Mapping, TypeVar

from pydantic import BaseModel, Field

from partner_directory.core.config import get_settings

T = TypeVar("T")

SortOrder = Literal["asc", "desc"]


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool


class ListResult(BaseModel, Generic[T]):
    data: list[T]
    pagination: Pagination


def _positive_int(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class ListQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1)
    search: str | None = None
    filters: dict[str, str | list[str]] = Field(default_factory=dict)
    sort_by: str | None = None
    sort_order: SortOrder | None = None

    @property
    def offset(self) -> int:
        return self.page_size * (self.page - 1)

    @property
    def limit(self) -> int:
        return self.page_size

    def pagination(self, total: int) -> Pagination:
        total_pages = math.ceil(total / self.page_size)
        return Pagination(
            page=self.page,
            page_size=self.page_size,
            total=total,
            total_pages=total_pages,
            has_next=self.page < total_pages,
            has_previous=self.page > 1,
        )

    def filter_value(self, key: str) -> str | None:
        """First value of a filter, or None when it is not set."""
        value = self.filters.get(key)
        if isinstance(value, list):
            return value[0] if value else None
        return value or None

    @classmethod
    def parse(cls, raw: Mapping[str, Any]) -> "ListQuery":
        """
        Build a query from loosely typed input (e.g. query-string values).

        Out-of-range or unparsable values fall back to defaults instead of
        failing the request.
        """
        settings = get_settings()

        page = _positive_int(raw.get("page")) or 1

        page_size = _positive_int(raw.get("page_size"))
        if page_size is None or page_size > settings.max_page_size:
            page_size = settings.default_page_size

        search = raw.get("search")
        search = search.strip() if isinstance(search, str) and search.strip() else None

        sort_by = raw.get("sort_by")
        sort_by = sort_by if isinstance(sort_by, str) and sort_by else None

        sort_order = raw.get("sort_order")
        sort_order = sort_order if sort_order in ("asc", "desc") else None

        filters: dict[str, str | list[str]] = {}
        raw_filters = raw.get("filters")
        if isinstance(raw_filters, Mapping):
            for key, value in raw_filters.items():
                if isinstance(value, str) and value:
                    filters[key] = value
                elif isinstance(value, list):
                    filters[key] = [str(v) for v in value]

        return cls(
            page=page,
            page_size=page_size,
            search=search,
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
        )

    @classmethod
    def default(cls) -> "ListQuery":
        return cls.parse({})
