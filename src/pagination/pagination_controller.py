"""Stateful cursor navigation over a provider page fetcher."""

import math
from datetime import datetime, timezone
from typing import Any, Callable, Iterator

import structlog

from src.exceptions import ConfigError, NoNextPageError, NoPreviousPageError
from src.models.email import FetchOptions
from src.models.pagination import (
    PageResult,
    PaginatedResponse,
    PaginationMetadata,
    PaginationState,
)
from src.providers.base import PageFetcher

log = structlog.stdlib.get_logger()

DEFAULT_PAGE_SIZE = 20


def calculate_pagination_metadata(
    current_page: int,
    page_size: int,
    total_count: int | None = None,
    has_next_page: bool | None = None,
    has_previous_page: bool | None = None,
) -> PaginationMetadata:
    """
    Calculate pagination metadata from basic parameters.

    When a total count is known, the last page is derived from it; otherwise
    it falls back to the has_next_page flag.

    Args:
        current_page: One-based page number
        page_size: Items per page
        total_count: Total number of items, if known
        has_next_page: Whether a following page exists
        has_previous_page: Whether a preceding page exists

    Returns:
        PaginationMetadata for the described page
    """
    estimated_total_pages = math.ceil(total_count / page_size) if total_count else None
    if estimated_total_pages:
        is_last_page = current_page >= estimated_total_pages
    else:
        is_last_page = not has_next_page

    return PaginationMetadata(
        current_page=current_page,
        page_size=page_size,
        total_count=total_count,
        estimated_total_pages=estimated_total_pages,
        has_next_page=bool(has_next_page),
        has_previous_page=bool(has_previous_page),
        is_first_page=current_page == 1,
        is_last_page=is_last_page,
    )


class PaginationController:
    """Navigates one logical query page by page.

    The controller owns its PaginationState exclusively. The cursor history
    grows only when moving forward and is popped strictly LIFO when moving
    back, so a forward step followed by a backward step always lands on the
    same cursor and page number.

    Navigation errors (NoNextPageError, NoPreviousPageError) leave the state
    untouched. Errors raised by the page fetcher propagate unchanged, and the
    navigation step that triggered the fetch is rolled back, so a failed
    go_to_next_page() can be retried as is.

    Example usage:
        controller = PaginationController(provider.fetch_page, FetchOptions(query="invoice"))
        first = controller.fetch_current_page()
        while first.pagination.has_next_page:
            first = controller.go_to_next_page()
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        filter_options: FetchOptions | None = None,
        page_size: int | None = None,
    ):
        """
        Initialize the pagination controller.

        Args:
            fetch_page: Provider page fetcher, called as
                fetch_page(cursor, page_size, filters)
            filter_options: Filters applied to every fetch
            page_size: Items per page. Defaults to filter_options.page_size,
                then to 20.

        Raises:
            ConfigError: If page_size is not positive
        """
        filter_options = filter_options or FetchOptions()
        page_size = page_size or filter_options.page_size or DEFAULT_PAGE_SIZE
        if page_size <= 0:
            raise ConfigError(f"page_size must be greater than 0, got {page_size}")

        self._fetch_page = fetch_page
        self._state = PaginationState(page_size=page_size, filter_options=filter_options)
        self._last_page: PageResult | None = None

        log.debug("pagination_controller_initialized", page_size=page_size)

    @property
    def state(self) -> PaginationState:
        """Access the live pagination state."""
        return self._state

    def current_state(self) -> PaginationState:
        """Get a snapshot copy of the pagination state."""
        return self._state.model_copy(deep=True)

    def update_options(self, **changes: Any) -> None:
        """
        Merge new filter options into the state.

        The navigation position is kept; call go_to_first_page() afterwards if
        the new filters define a different result set.

        Args:
            **changes: FetchOptions fields to replace

        Raises:
            ConfigError: If a page_size change is not positive
        """
        page_size = changes.get("page_size")
        if page_size is not None and page_size <= 0:
            raise ConfigError(f"page_size must be greater than 0, got {page_size}")

        merged = self._state.filter_options.model_dump()
        merged.update(changes)
        self._state.filter_options = FetchOptions(**merged)
        if page_size is not None:
            self._state.page_size = page_size

        log.debug("pagination_options_updated", fields=sorted(changes))

    def fetch_current_page(self) -> PaginatedResponse:
        """
        Fetch the page at the current cursor.

        Does not change the navigation history.

        Returns:
            PaginatedResponse for the current page
        """
        fetch_time = datetime.now(timezone.utc)

        try:
            page = self._fetch_page(
                self._state.current_cursor,
                self._state.page_size,
                self._state.filter_options,
            )
        except Exception as e:
            log.error(
                "pagination_fetch_failed",
                current_page=self._state.current_page,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        self._last_page = page

        log.debug(
            "pagination_page_fetched",
            current_page=self._state.current_page,
            size=len(page.items),
            has_next_page=page.has_next_page,
        )

        return PaginatedResponse(
            data=page.items,
            pagination=self._create_pagination_metadata(page),
            query=self._state.filter_options.query,
            total_fetched=len(page.items),
            fetch_time=fetch_time,
        )

    def go_to_next_page(self) -> PaginatedResponse:
        """
        Advance to the next page and fetch it.

        Uses the next cursor reported by the last fetch, fetching the current
        page first if nothing has been fetched yet.

        Returns:
            PaginatedResponse for the new current page

        Raises:
            NoNextPageError: If the last fetch reported no next page
        """
        if self._last_page is None:
            self.fetch_current_page()

        return self._move_and_fetch(self._advance)

    def go_to_previous_page(self) -> PaginatedResponse:
        """
        Step back to the previous page and fetch it.

        Returns:
            PaginatedResponse for the new current page

        Raises:
            NoPreviousPageError: If there is no navigation history
        """
        if not self._state.cursor_history:
            raise NoPreviousPageError(self._state.current_page)

        return self._move_and_fetch(self._retreat)

    def go_to_first_page(self) -> PaginatedResponse:
        """
        Reset navigation to page 1 and fetch it.

        Returns:
            PaginatedResponse for page 1
        """
        return self._move_and_fetch(self._reset)

    def fetch_next_page(self) -> PaginatedResponse | None:
        """
        Fetch the next page, or return None when there is none.

        Returns:
            PaginatedResponse for the next page, or None
        """
        if self._last_page is None:
            self.fetch_current_page()

        if not self._last_page or not self._last_page.has_next_page:
            return None

        return self.go_to_next_page()

    def fetch_previous_page(self) -> PaginatedResponse | None:
        """
        Fetch the previous page, or return None when there is none.

        Returns:
            PaginatedResponse for the previous page, or None
        """
        if not self._state.cursor_history:
            return None

        return self.go_to_previous_page()

    def fetch_all_pages(self, max_items: int | None = None) -> PaginatedResponse:
        """
        Fetch every page from page 1, up to an optional item limit.

        The aggregate is truncated to exactly max_items. The returned metadata
        always reports no further pages, even when the provider had more.

        Args:
            max_items: Optional upper bound on the number of items

        Returns:
            PaginatedResponse holding all fetched items

        Raises:
            ConfigError: If max_items is not positive
        """
        if max_items is not None and max_items <= 0:
            raise ConfigError(f"max_items must be greater than 0, got {max_items}")

        fetch_time = datetime.now(timezone.utc)
        all_items: list[Any] = []
        total_pages = 0

        log.info("fetch_all_pages_started", max_items=max_items, page_size=self._state.page_size)

        response = self._move_and_fetch(self._reset)
        while True:
            all_items.extend(response.data)
            total_pages += 1

            if max_items is not None and len(all_items) >= max_items:
                break

            if not response.pagination.has_next_page:
                break

            response = self._move_and_fetch(self._advance)

        final_items = all_items[:max_items] if max_items is not None else all_items

        log.info(
            "fetch_all_pages_completed",
            pages=total_pages,
            items=len(final_items),
            truncated=len(final_items) < len(all_items),
        )

        return PaginatedResponse(
            data=final_items,
            pagination=PaginationMetadata(
                current_page=total_pages,
                page_size=self._state.page_size,
                total_count=None,
                estimated_total_pages=total_pages,
                has_next_page=False,
                has_previous_page=False,
                is_first_page=True,
                is_last_page=True,
            ),
            query=self._state.filter_options.query,
            total_fetched=len(final_items),
            fetch_time=fetch_time,
        )

    def iterate_all_pages(self) -> Iterator[PaginatedResponse]:
        """
        Lazily iterate pages from the current position to the last page.

        The generator advances the controller as it goes. To iterate again
        from the start, call go_to_first_page() and create a new iterator.

        Yields:
            PaginatedResponse for each page
        """
        response = self.fetch_current_page()
        while True:
            yield response

            if not response.pagination.has_next_page:
                break

            response = self._move_and_fetch(self._advance)

    def _advance(self) -> None:
        """Push the current cursor and move to the last fetch's next cursor."""
        if self._last_page is None or self._last_page.next_cursor is None:
            raise NoNextPageError(self._state.current_page)

        self._state.cursor_history.append(self._state.current_cursor)
        self._state.current_cursor = self._last_page.next_cursor
        self._state.current_page += 1
        self._state.total_fetched += len(self._last_page.items)

        log.debug("pagination_moved_forward", current_page=self._state.current_page)

    def _retreat(self) -> None:
        """Pop the previous cursor from the history."""
        self._state.current_cursor = self._state.cursor_history.pop()
        self._state.current_page -= 1

        log.debug("pagination_moved_back", current_page=self._state.current_page)

    def _reset(self) -> None:
        """Clear history and return to page 1 without fetching."""
        self._state.current_cursor = None
        self._state.cursor_history = []
        self._state.current_page = 1
        self._state.total_fetched = 0
        self._last_page = None

    def _move_and_fetch(self, move: Callable[[], None]) -> PaginatedResponse:
        """
        Apply a navigation step and fetch the new current page.

        If the fetch raises, the step is rolled back so the controller stays
        on the page it was on and the same call can simply be repeated.
        """
        saved_state = self._state.model_copy(deep=True)
        saved_page = self._last_page

        move()
        try:
            return self.fetch_current_page()
        except Exception:
            self._state.current_cursor = saved_state.current_cursor
            self._state.cursor_history = saved_state.cursor_history
            self._state.current_page = saved_state.current_page
            self._state.total_fetched = saved_state.total_fetched
            self._last_page = saved_page

            log.debug("pagination_move_rolled_back", current_page=self._state.current_page)
            raise

    def _create_pagination_metadata(self, page: PageResult) -> PaginationMetadata:
        """Create pagination metadata from a fetched page."""
        estimated_total_pages = None
        if page.total_count_estimate:
            estimated_total_pages = math.ceil(page.total_count_estimate / self._state.page_size)

        history = self._state.cursor_history
        has_next_page = page.next_cursor is not None

        return PaginationMetadata(
            current_page=self._state.current_page,
            page_size=self._state.page_size,
            total_count=page.total_count_estimate,
            estimated_total_pages=estimated_total_pages,
            next_cursor=page.next_cursor,
            previous_cursor=history[-1] if history else None,
            has_next_page=has_next_page,
            has_previous_page=bool(history),
            is_first_page=self._state.current_page == 1,
            is_last_page=not has_next_page,
        )
