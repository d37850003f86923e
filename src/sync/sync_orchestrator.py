"""Synchronization orchestrator driving incremental sync passes."""

from datetime import datetime, timezone
from typing import Iterator

import structlog

from src.exceptions import ConfigError, MissingCheckpointError, StaleCheckpointError
from src.models.changes import ChangeFeedPage
from src.providers.base import ChangeFeedFetcher, EntityHydrator, StaleCheckpointDetector
from src.sync.change_reconciler import ChangeFeedReconciler
from src.sync.models import SyncOptions, SyncResult

log = structlog.stdlib.get_logger()


class SyncOrchestrator:
    """Orchestrates incremental sync passes over a provider change feed.

    One pass fetches a single change-feed page, reconciles it, hydrates the
    added and updated ids, and returns the result together with the
    checkpoint the caller should persist. The checkpoint always comes from
    the change-feed page itself.

    Passes are strictly sequential and nothing is retried. A checkpoint the
    provider can no longer resolve surfaces as StaleCheckpointError so the
    caller can re-baseline instead of retrying.
    """

    def __init__(
        self,
        fetch_change_feed_page: ChangeFeedFetcher,
        get_entity_by_id: EntityHydrator,
        is_stale_checkpoint: StaleCheckpointDetector | None = None,
        reconciler: ChangeFeedReconciler | None = None,
    ):
        """
        Initialize sync orchestrator.

        Args:
            fetch_change_feed_page: Change feed fetcher, called as
                fetch(start_checkpoint, max_results, filters)
            get_entity_by_id: Hydrator for added and updated ids
            is_stale_checkpoint: Optional predicate classifying fetch
                exceptions that mean the checkpoint expired
            reconciler: Optional reconciler instance (a new one if None)
        """
        self._fetch_change_feed_page = fetch_change_feed_page
        self._get_entity_by_id = get_entity_by_id
        self._is_stale_checkpoint = is_stale_checkpoint
        self._reconciler = reconciler or ChangeFeedReconciler()

    def process_sync(
        self, start_checkpoint: str | None, options: SyncOptions | None = None
    ) -> SyncResult:
        """
        Run one incremental sync pass.

        Args:
            start_checkpoint: Caller-persisted checkpoint to start from
            options: Pass options (max_results defaults to 100)

        Returns:
            SyncResult with hydrated changes and the next checkpoint

        Raises:
            MissingCheckpointError: If start_checkpoint is empty
            ConfigError: If max_results is not positive
            StaleCheckpointError: If the provider cannot resolve the checkpoint
            HydrationError: If hydrating a changed entity fails
        """
        if not start_checkpoint:
            raise MissingCheckpointError()

        options = options or SyncOptions()
        if options.max_results <= 0:
            raise ConfigError(f"max_results must be greater than 0, got {options.max_results}")

        start_time = datetime.now(timezone.utc)
        log.info(
            "sync_pass_started",
            start_checkpoint=start_checkpoint,
            max_results=options.max_results,
        )

        page = self._fetch_page(start_checkpoint, options)

        change_set = self._reconciler.reconcile(page.records)
        hydrated = self._reconciler.hydrate(change_set, self._get_entity_by_id)

        # The page may report no checkpoint when the feed had nothing new
        new_checkpoint = page.next_checkpoint or start_checkpoint

        end_time = datetime.now(timezone.utc)
        result = SyncResult(
            start_checkpoint=start_checkpoint,
            new_checkpoint=new_checkpoint,
            has_more=page.has_more,
            added=hydrated.added,
            deleted_ids=change_set.deleted_ids,
            updated=hydrated.updated,
            dropped_ids=hydrated.dropped_ids,
            records_seen=change_set.records_seen,
            duplicates_skipped=change_set.duplicates_skipped,
            duration_seconds=(end_time - start_time).total_seconds(),
        )

        log.info(
            "sync_pass_completed",
            start_checkpoint=start_checkpoint,
            new_checkpoint=new_checkpoint,
            added=len(result.added),
            deleted=len(result.deleted_ids),
            updated=len(result.updated),
            dropped=len(result.dropped_ids),
            has_more=result.has_more,
            duration_seconds=result.duration_seconds,
        )

        return result

    def drain(
        self,
        start_checkpoint: str | None,
        options: SyncOptions | None = None,
        max_passes: int | None = None,
    ) -> Iterator[SyncResult]:
        """
        Run consecutive sync passes until the feed is caught up.

        Each pass starts from the previous pass's new_checkpoint. The caller
        should persist every yielded checkpoint before pulling the next pass;
        stopping iteration early is safe.

        Args:
            start_checkpoint: Caller-persisted checkpoint to start from
            options: Pass options applied to every pass
            max_passes: Optional upper bound on the number of passes

        Yields:
            SyncResult for each pass

        Raises:
            MissingCheckpointError: If start_checkpoint is empty
            ConfigError: If max_passes is not positive
        """
        if not start_checkpoint:
            raise MissingCheckpointError()
        if max_passes is not None and max_passes <= 0:
            raise ConfigError(f"max_passes must be greater than 0, got {max_passes}")

        return self._drain(start_checkpoint, options, max_passes)

    def _drain(
        self, checkpoint: str, options: SyncOptions | None, max_passes: int | None
    ) -> Iterator[SyncResult]:
        passes = 0
        while True:
            result = self.process_sync(checkpoint, options)
            passes += 1
            yield result

            if not result.has_more:
                log.info("sync_drain_caught_up", passes=passes, checkpoint=result.new_checkpoint)
                break

            if max_passes is not None and passes >= max_passes:
                log.info("sync_drain_pass_limit_reached", passes=passes)
                break

            checkpoint = result.new_checkpoint

    def _fetch_page(self, start_checkpoint: str, options: SyncOptions) -> ChangeFeedPage:
        """Fetch one change-feed page, classifying expired checkpoints."""
        try:
            return self._fetch_change_feed_page(
                start_checkpoint, options.max_results, options.filters
            )
        except StaleCheckpointError:
            log.warning("stale_checkpoint", checkpoint=start_checkpoint)
            raise
        except Exception as e:
            if self._is_stale_checkpoint is not None and self._is_stale_checkpoint(e):
                log.warning("stale_checkpoint", checkpoint=start_checkpoint, error=str(e))
                raise StaleCheckpointError(start_checkpoint, reason=str(e)) from e

            log.error(
                "change_feed_fetch_failed",
                checkpoint=start_checkpoint,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
