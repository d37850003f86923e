"""Bounded-memory batch streaming over a provider page fetcher."""

from datetime import datetime, timezone
from typing import Generator

import structlog

from src.exceptions import ConfigError
from src.providers.base import PageFetcher
from src.streaming.models import (
    BatchProgress,
    StreamBatch,
    StreamCallbacks,
    StreamOptions,
    StreamSummary,
)

log = structlog.stdlib.get_logger()

# Batches above this size are allowed but usually hold too much in memory
LARGE_BATCH_WARNING_THRESHOLD = 1000


def validate_stream_options(options: StreamOptions) -> None:
    """
    Validate streaming options.

    Args:
        options: Options to validate

    Raises:
        ConfigError: If batch_size or max_items is not positive
    """
    if options.batch_size <= 0:
        raise ConfigError(f"batch_size must be greater than 0, got {options.batch_size}")

    if options.max_items is not None and options.max_items <= 0:
        raise ConfigError(f"max_items must be greater than 0, got {options.max_items}")

    if options.batch_size > LARGE_BATCH_WARNING_THRESHOLD:
        log.warning(
            "large_batch_size",
            batch_size=options.batch_size,
            threshold=LARGE_BATCH_WARNING_THRESHOLD,
        )


def calculate_estimated_remaining(total: int | None, processed: int) -> int | None:
    """
    Estimate how many items are still to come.

    Args:
        total: Provider total estimate, if known
        processed: Items processed so far

    Returns:
        Remaining item estimate, or None if unknown or already exceeded
    """
    if not total or total <= processed:
        return None
    return total - processed


class StreamEngine:
    """Turns a page fetcher into a lazy, pull-based sequence of batches.

    Exactly one fetch is in flight at a time: the next page is only requested
    when the consumer pulls the next batch. Fetch failures propagate to the
    consumer unchanged and are never retried here.

    Example usage:
        engine = StreamEngine(provider.fetch_page)
        for batch in engine.stream(StreamOptions(batch_size=25, max_items=100)):
            store(batch.items)
    """

    def __init__(self, fetch_page: PageFetcher):
        """
        Initialize the stream engine.

        Args:
            fetch_page: Provider page fetcher, called as
                fetch_page(cursor, page_size, filters)
        """
        self._fetch_page = fetch_page

    def stream(self, options: StreamOptions | None = None) -> Generator[StreamBatch, None, None]:
        """
        Create a lazy sequence of batches.

        Options are validated immediately; the first fetch happens when the
        first batch is pulled. The returned iterator is not restartable.

        Args:
            options: Streaming options (defaults to batch_size=50, no limit)

        Returns:
            Iterator yielding one StreamBatch per non-empty provider page

        Raises:
            ConfigError: If options are invalid
        """
        options = options or StreamOptions()
        validate_stream_options(options)
        return self._generate_batches(options)

    def _generate_batches(self, options: StreamOptions) -> Generator[StreamBatch, None, None]:
        cursor = options.cursor
        delivered = 0
        batch_number = 0

        log.info(
            "stream_started",
            batch_size=options.batch_size,
            max_items=options.max_items,
            resumed=cursor is not None,
        )

        try:
            while True:
                request_size = options.batch_size
                if options.max_items is not None:
                    request_size = min(request_size, options.max_items - delivered)

                if request_size <= 0:
                    break

                try:
                    page = self._fetch_page(cursor, request_size, options.filters)
                except Exception as e:
                    log.error(
                        "stream_fetch_failed",
                        batch_number=batch_number + 1,
                        delivered=delivered,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise

                if not page.items:
                    log.debug("stream_empty_page", batch_number=batch_number + 1)
                    break

                items = page.items
                if options.max_items is not None:
                    # Providers may over-deliver; never exceed the caller's limit
                    items = items[: options.max_items - delivered]

                batch_number += 1
                delivered += len(items)
                cursor = page.next_cursor
                reached_limit = options.max_items is not None and delivered >= options.max_items

                progress = BatchProgress(
                    current=delivered,
                    total=page.total_count_estimate,
                    batch_count=batch_number,
                    estimated_remaining=calculate_estimated_remaining(
                        page.total_count_estimate, delivered
                    ),
                )

                log.debug(
                    "stream_batch_fetched",
                    batch_number=batch_number,
                    size=len(items),
                    delivered=delivered,
                    has_next_page=cursor is not None,
                )

                yield StreamBatch(
                    items=items,
                    batch_number=batch_number,
                    progress=progress,
                    is_last_batch=cursor is None or reached_limit,
                )

                if cursor is None or reached_limit:
                    break
        finally:
            log.info("stream_finished", batches=batch_number, delivered=delivered)

    def run_with_callbacks(
        self,
        options: StreamOptions | None,
        callbacks: StreamCallbacks,
    ) -> StreamSummary:
        """
        Drive the stream to completion, reporting through callbacks.

        For every batch, on_batch then on_progress are invoked. If either
        raises and no on_error is registered, the failure re-raises and the
        run stops. With on_error registered, the failure is handed to it, the
        batch is dropped from total_processed, and the run continues.
        on_complete is invoked exactly once, even after an unrecovered failure.

        Args:
            options: Streaming options
            callbacks: Listener callbacks

        Returns:
            StreamSummary with the accumulated statistics

        Raises:
            ConfigError: If options are invalid (no callbacks are invoked)
            Exception: Any fetch failure, or a batch failure without on_error
        """
        batches = self.stream(options)

        start_time = datetime.now(timezone.utc)
        total_processed = 0
        total_batches = 0
        errors = 0

        try:
            for batch in batches:
                total_batches += 1
                progress = BatchProgress(
                    current=total_processed + len(batch),
                    total=batch.progress.total,
                    batch_count=total_batches,
                    estimated_remaining=calculate_estimated_remaining(
                        batch.progress.total, total_processed + len(batch)
                    ),
                )

                try:
                    if callbacks.on_batch is not None:
                        callbacks.on_batch(batch.items, progress)
                    if callbacks.on_progress is not None:
                        callbacks.on_progress(progress)
                except Exception as e:
                    errors += 1
                    log.error(
                        "stream_batch_failed",
                        batch_number=batch.batch_number,
                        size=len(batch),
                        error=str(e),
                        recovered=callbacks.on_error is not None,
                    )
                    if callbacks.on_error is None:
                        raise
                    callbacks.on_error(e, progress)
                    continue

                total_processed += len(batch)

        finally:
            batches.close()
            end_time = datetime.now(timezone.utc)
            summary = StreamSummary(
                total_processed=total_processed,
                total_batches=total_batches,
                errors=errors,
                start_time=start_time,
                end_time=end_time,
                duration_seconds=(end_time - start_time).total_seconds(),
            )

            log.info(
                "stream_run_completed",
                total_processed=total_processed,
                total_batches=total_batches,
                errors=errors,
                duration_seconds=summary.duration_seconds,
            )

            if callbacks.on_complete is not None:
                callbacks.on_complete(summary)

        return summary


def stream(
    fetch_page: PageFetcher, options: StreamOptions | None = None
) -> Generator[StreamBatch, None, None]:
    """
    Stream batches from a page fetcher.

    Convenience wrapper around ``StreamEngine(fetch_page).stream(options)``.
    """
    return StreamEngine(fetch_page).stream(options)
