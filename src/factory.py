"""Wiring of engine components from application configuration.

Each builder takes the loaded AppConfig and a provider strategy and returns a
ready-to-use component. Nothing here holds state; callers own the returned
objects and the checkpoints and cursors they produce.
"""

from typing import Any, Callable, Iterator

import structlog

from src.models.config import AppConfig
from src.models.email import FetchOptions
from src.pagination.pagination_controller import PaginationController
from src.providers.base import MailProvider
from src.providers.registry import get_provider
from src.streaming.models import StreamOptions
from src.streaming.stream_engine import StreamEngine
from src.sync.models import SyncOptions, SyncResult
from src.sync.sync_orchestrator import SyncOrchestrator
from src.utils.retry import with_retry

log = structlog.stdlib.get_logger()


def build_provider(config: AppConfig, **kwargs: Any) -> MailProvider:
    """Create the provider named by ``config.provider``.

    Raises:
        ConfigError: If the provider is not registered
    """
    return get_provider(config.provider, **kwargs)


def _maybe_retry(
    fetch_fn: Callable,
    retries: int,
    give_up: Callable[[Exception], bool] | None = None,
) -> Callable:
    if retries <= 0:
        return fetch_fn
    return with_retry(fetch_fn, max_retries=retries, give_up=give_up)


def build_stream_engine(provider: MailProvider, retries: int = 0) -> StreamEngine:
    """
    Build a StreamEngine over a provider's page fetcher.

    Args:
        provider: Provider strategy
        retries: If positive, wrap the fetcher with exponential backoff retry

    Returns:
        StreamEngine instance
    """
    log.debug("building_stream_engine", provider=provider.name, retries=retries)
    return StreamEngine(_maybe_retry(provider.fetch_page, retries))


def build_stream_options(
    config: AppConfig, filters: FetchOptions | None = None, cursor: str | None = None
) -> StreamOptions:
    """Build StreamOptions from the ``stream`` section of AppConfig."""
    return StreamOptions(
        batch_size=config.stream.batch_size,
        max_items=config.stream.max_items,
        cursor=cursor,
        filters=filters or FetchOptions(),
    )


def build_pagination_controller(
    config: AppConfig,
    provider: MailProvider,
    filter_options: FetchOptions | None = None,
    retries: int = 0,
) -> PaginationController:
    """
    Build a PaginationController using the configured page size.

    An explicit ``filter_options.page_size`` takes precedence over the
    configured ``pagination.page_size``.

    Args:
        config: Application configuration
        provider: Provider strategy
        filter_options: Filters applied to every fetch
        retries: If positive, wrap the fetcher with exponential backoff retry

    Returns:
        PaginationController instance
    """
    filter_options = filter_options or FetchOptions()
    page_size = filter_options.page_size or config.pagination.page_size

    log.debug("building_pagination_controller", provider=provider.name, page_size=page_size)
    return PaginationController(
        _maybe_retry(provider.fetch_page, retries),
        filter_options=filter_options,
        page_size=page_size,
    )


def build_sync_orchestrator(provider: MailProvider, retries: int = 0) -> SyncOrchestrator:
    """
    Build a SyncOrchestrator wired to all of a provider's sync contracts.

    Retry only wraps the change-feed fetch. Errors the provider classifies as
    stale checkpoints are never retried, including provider-specific ones
    that are not StaleCheckpointError instances.

    Args:
        provider: Provider strategy
        retries: If positive, wrap the change-feed fetcher with retry

    Returns:
        SyncOrchestrator instance
    """
    log.debug("building_sync_orchestrator", provider=provider.name, retries=retries)
    return SyncOrchestrator(
        fetch_change_feed_page=_maybe_retry(
            provider.fetch_change_feed_page, retries, give_up=provider.is_stale_checkpoint
        ),
        get_entity_by_id=provider.get_entity_by_id,
        is_stale_checkpoint=provider.is_stale_checkpoint,
    )


def build_sync_options(config: AppConfig, filters: FetchOptions | None = None) -> SyncOptions:
    """Build SyncOptions from the ``sync`` section of AppConfig."""
    return SyncOptions(
        max_results=config.sync.max_results,
        filters=filters or FetchOptions(),
    )


def drain_sync(
    config: AppConfig,
    orchestrator: SyncOrchestrator,
    start_checkpoint: str | None,
    filters: FetchOptions | None = None,
) -> Iterator[SyncResult]:
    """
    Drain the change feed using the ``sync`` section of AppConfig.

    Each pass requests ``sync.max_results`` records and draining stops after
    ``sync.max_passes`` passes when that is set.

    Args:
        config: Application configuration
        orchestrator: Orchestrator to run the passes
        start_checkpoint: Caller-persisted checkpoint to start from
        filters: Change feed filters

    Returns:
        Iterator yielding one SyncResult per pass

    Raises:
        MissingCheckpointError: If start_checkpoint is empty
    """
    log.debug(
        "draining_sync_from_config",
        max_results=config.sync.max_results,
        max_passes=config.sync.max_passes,
    )
    return orchestrator.drain(
        start_checkpoint,
        build_sync_options(config, filters),
        max_passes=config.sync.max_passes,
    )
