"""
Pagination, sorting and search for list endpoints.

A list endpoint validates its raw query string into a ``PaginationQuery``
and hands it to ``paginate`` together with two data-access callables: one
counting the matching rows and one fetching a single page of them. Both
callables receive the same conditions and the same search filter, so the
reported ``total_items`` always describes the population the page is cut
from.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationInfo,
    field_validator,
)

from todo_api.core.result import Result, validate

__all__ = [
    "FetchOptions",
    "Order",
    "PaginationMeta",
    "PaginationQuery",
    "PaginationResult",
    "SearchOptions",
    "SortOrder",
    "build_pagination_meta",
    "compute_offset",
    "escape_like",
    "paginate",
    "validate_pagination_query",
]

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
MAX_SEARCH_LENGTH = 255

# Characters with special meaning inside a LIKE/ILIKE pattern, plus the
# escape character itself.
LIKE_ESCAPE = "\\"
_LIKE_SPECIAL = str.maketrans({"\\": "\\\\", "%": "\\%", "_": "\\_"})


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


class PaginationQuery(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    page: int = Field(default=DEFAULT_PAGE, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    sort_by: str | None = Field(default=None, validate_default=True)
    sort_order: SortOrder = SortOrder.DESC
    search: Annotated[
        str, StringConstraints(strip_whitespace=True, max_length=MAX_SEARCH_LENGTH)
    ] = ""

    @field_validator("sort_by")
    @classmethod
    def check_sort_by(cls, value: str | None, info: ValidationInfo) -> str:
        columns = tuple((info.context or {}).get("sortable_columns", ()))
        if not columns:
            raise ValueError("no sortable columns declared")
        if value is None:
            return columns[0]
        if value not in columns:
            raise ValueError(f"must be one of [{', '.join(columns)}]")
        return value


class PaginationMeta(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_previous_page: bool
    next_page: int | None
    previous_page: int | None


@dataclass(frozen=True, slots=True)
class SearchOptions:
    """Already-escaped search term and the columns it is matched against."""

    search: str = ""
    columns: tuple[str, ...] = ()

    @property
    def active(self) -> bool:
        return bool(self.search and self.columns)


@dataclass(frozen=True, slots=True)
class Order:
    column: str
    order: SortOrder = SortOrder.DESC


@dataclass(frozen=True, slots=True)
class FetchOptions:
    limit: int = DEFAULT_LIMIT
    offset: int = 0
    orders: tuple[Order, ...] = ()
    search: SearchOptions = field(default_factory=SearchOptions)


@dataclass(slots=True)
class PaginationResult[T]:
    data: Sequence[T]
    pagination: PaginationMeta


type CountFn = Callable[[Mapping[str, Any], SearchOptions], Awaitable[int | str]]
type FetchFn[T] = Callable[[Mapping[str, Any], FetchOptions], Awaitable[Sequence[T]]]


def validate_pagination_query(
    raw: Mapping[str, Any], sortable_columns: Sequence[str]
) -> Result[PaginationQuery]:
    """Validate list query parameters.

    ``sort_by`` must be one of ``sortable_columns`` and defaults to the
    first of them.
    """
    return validate(
        PaginationQuery,
        dict(raw),
        context={"sortable_columns": tuple(sortable_columns)},
    )


def escape_like(text: str) -> str:
    r"""Escape ``%``, ``_`` and ``\`` so ``text`` is matched literally."""
    return text.translate(_LIKE_SPECIAL)


def compute_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def build_pagination_meta(page: int, limit: int, total_items: int) -> PaginationMeta:
    total_pages = math.ceil(total_items / limit)
    has_next_page = page < total_pages
    has_previous_page = page > 1

    return PaginationMeta(
        current_page=page,
        total_pages=total_pages,
        total_items=total_items,
        items_per_page=limit,
        has_next_page=has_next_page,
        has_previous_page=has_previous_page,
        next_page=page + 1 if has_next_page else None,
        previous_page=page - 1 if has_previous_page else None,
    )


async def paginate[T](
    count_fn: CountFn,
    fetch_fn: FetchFn[T],
    conditions: Mapping[str, Any],
    query: PaginationQuery,
    searchable_columns: Sequence[str] = (),
) -> PaginationResult[T]:
    """Count and fetch one page concurrently and assemble the result."""
    offset = compute_offset(query.page, query.limit)

    search = SearchOptions()
    if query.search and searchable_columns:
        search = SearchOptions(
            search=escape_like(query.search), columns=tuple(searchable_columns)
        )

    options = FetchOptions(
        limit=query.limit,
        offset=offset,
        orders=(Order(column=query.sort_by, order=query.sort_order),),
        search=search,
    )

    total, data = await asyncio.gather(
        count_fn(conditions, search),
        fetch_fn(conditions, options),
    )

    pagination = build_pagination_meta(query.page, query.limit, int(total))
    return PaginationResult(data=data, pagination=pagination)
