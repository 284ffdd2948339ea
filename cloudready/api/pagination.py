"""Resolve raw pagination query parameters into a PageRequest."""

from typing import Optional

from fastapi import Depends, Query

from cloudready.config import PaginationSettings, Settings, get_settings
from cloudready.errors import ValidationFailedError
from cloudready.models.constants import SORTABLE_USER_FIELDS
from cloudready.models.page import PageRequest, Sort, SortDirection


def resolve_page_request(
    page: Optional[int],
    size: Optional[int],
    sort: Optional[str],
    direction: Optional[str],
    pagination: PaginationSettings,
) -> PageRequest:
    """Build a canonical PageRequest.

    - page defaults to 0; a negative page is rejected.
    - size defaults to the configured default and is clamped to the configured maximum.
    - sort orders by a known user attribute; "desc" (any case) sorts descending.

    Raises:
        ValidationFailedError: For a negative page, a size below 1 or an unknown sort field
    """
    page_index = 0 if page is None else page
    if page_index < 0:
        raise ValidationFailedError.for_field("page", page, "Page index must not be negative")

    if size is None:
        page_size = pagination.default_page_size
    elif size < 1:
        raise ValidationFailedError.for_field("size", size, "Page size must be at least 1")
    else:
        page_size = min(size, pagination.max_page_size)

    order = None
    if sort is not None and sort.strip():
        field = SORTABLE_USER_FIELDS.get(sort.strip())
        if field is None:
            raise ValidationFailedError.for_field("sort", sort, f"Unknown sort field: {sort}")
        order = Sort(field=field, direction=SortDirection.parse(direction))

    return PageRequest(page=page_index, size=page_size, sort=order)


def page_request_params(
    page: Optional[int] = Query(None, description="Page number (0-based)"),
    size: Optional[int] = Query(None, description="Page size"),
    sort: Optional[str] = Query(None, description="Sort field"),
    direction: Optional[str] = Query("asc", description="Sort direction (asc/desc)"),
    settings: Settings = Depends(get_settings),
) -> PageRequest:
    """FastAPI dependency wrapping `resolve_page_request`."""
    return resolve_page_request(page, size, sort, direction, settings.pagination)
