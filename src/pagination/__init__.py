"""Cursor pagination over provider page fetchers."""

from src.pagination.pagination_controller import (
    PaginationController,
    calculate_pagination_metadata,
)

__all__ = ["PaginationController", "calculate_pagination_metadata"]
