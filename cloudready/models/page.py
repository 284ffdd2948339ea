"""Pagination models: page requests and the page envelope."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class SortDirection(str, Enum):
    """Sort direction enumeration."""
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortDirection":
        """Exactly "desc" (any case) is descending; anything else is ascending."""
        if value is not None and value.lower() == "desc":
            return cls.DESC
        return cls.ASC


@dataclass(frozen=True)
class Sort:
    """Ordering by one model attribute."""
    field: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class PageRequest:
    """Canonical pagination request (zero-based page index)."""
    page: int
    size: int
    sort: Optional[Sort] = None

    @property
    def offset(self) -> int:
        return self.page * self.size


class Page(BaseModel, Generic[T]):
    """A bounded slice of an ordered result set plus its position metadata."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content: List[T] = Field(default_factory=list, description="Items on this page")
    page: int = Field(..., description="Current page number (0-based)")
    size: int = Field(..., description="Requested page size")
    total_elements: int = Field(..., description="Total number of elements")
    total_pages: int = Field(..., description="Total number of pages")
    first: bool = Field(..., description="Whether this is the first page")
    last: bool = Field(..., description="Whether this is the last page")
    number_of_elements: int = Field(..., description="Number of elements on this page")
    empty: bool = Field(..., description="Whether this page is empty")

    @classmethod
    def build(cls, content: List[T], page_request: PageRequest, total_elements: int) -> "Page[T]":
        total_pages = math.ceil(total_elements / page_request.size) if page_request.size > 0 else 0
        return cls(
            content=content,
            page=page_request.page,
            size=page_request.size,
            total_elements=total_elements,
            total_pages=total_pages,
            first=page_request.page == 0,
            last=page_request.page >= total_pages - 1,
            number_of_elements=len(content),
            empty=len(content) == 0,
        )
