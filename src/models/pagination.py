"""Pydantic models for cursor-based pagination."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.models.email import FetchOptions


class PageResult(BaseModel):
    """One page returned by a provider fetch.

    ``next_cursor`` is None when the provider has no further results.
    Cursors are opaque and never parsed by the engine.
    """

    items: list[Any] = Field(default_factory=list, description="Items in provider order")
    next_cursor: str | None = Field(default=None, description="Cursor of the following page")
    total_count_estimate: int | None = Field(
        default=None, ge=0, description="Provider estimate of the total result size"
    )

    @property
    def has_next_page(self) -> bool:
        """Check if the provider reported another page."""
        return self.next_cursor is not None


class PaginationState(BaseModel):
    """Navigation state owned by a single pagination controller."""

    current_cursor: str | None = Field(default=None, description="Cursor of the current page")
    cursor_history: list[str | None] = Field(
        default_factory=list, description="Stack of cursors of previously visited pages"
    )
    current_page: int = Field(default=1, ge=1, description="One-based page number")
    page_size: int = Field(default=20, gt=0, description="Items requested per page")
    total_fetched: int = Field(default=0, ge=0, description="Items on pages navigated past")
    filter_options: FetchOptions = Field(
        default_factory=FetchOptions, description="Filters applied to every fetch"
    )


class PaginationMetadata(BaseModel):
    """Derived navigation metadata for one page."""

    current_page: int = Field(default=..., ge=1)
    page_size: int = Field(default=..., gt=0)
    total_count: int | None = Field(default=None, ge=0)
    estimated_total_pages: int | None = Field(default=None, ge=0)
    next_cursor: str | None = None
    previous_cursor: str | None = None
    has_next_page: bool = False
    has_previous_page: bool = False
    is_first_page: bool = True
    is_last_page: bool = True


class PaginatedResponse(BaseModel):
    """One page of data together with its navigation metadata."""

    data: list[Any] = Field(default_factory=list, description="Items on this page")
    pagination: PaginationMetadata
    query: str | None = Field(default=None, description="Query the page was fetched with")
    total_fetched: int = Field(default=0, ge=0, description="Number of items in data")
    fetch_time: datetime = Field(default=..., description="When the fetch started")
