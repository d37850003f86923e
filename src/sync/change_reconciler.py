"""Change feed reconciliation into added, deleted and updated buckets."""

from typing import Iterable

import structlog

from src.exceptions import HydrationError
from src.models.changes import AddedRecord, ChangeRecord, DeletedRecord, UpdatedRecord
from src.providers.base import EntityHydrator
from src.sync.models import ChangeSet, HydratedChanges

log = structlog.stdlib.get_logger()


class ChangeFeedReconciler:
    """Classifies change records and hydrates the surviving ids.

    Within one pass the first record seen for an id decides its bucket; any
    later record for the same id is skipped. An Added followed by an Updated
    therefore yields only "added", and reconciling the same sequence twice
    yields identical buckets.
    """

    def reconcile(self, records: Iterable[ChangeRecord]) -> ChangeSet:
        """
        Classify change records in feed order.

        Args:
            records: Change records ordered by checkpoint

        Returns:
            ChangeSet with each id in exactly one bucket
        """
        seen: set[str] = set()
        added_ids: list[str] = []
        deleted_ids: list[str] = []
        updated_ids: list[str] = []
        records_seen = 0
        duplicates_skipped = 0

        for record in records:
            records_seen += 1

            if record.entity_id in seen:
                duplicates_skipped += 1
                log.debug(
                    "duplicate_change_skipped",
                    entity_id=record.entity_id,
                    kind=record.kind,
                    checkpoint=record.checkpoint,
                )
                continue

            if isinstance(record, AddedRecord):
                added_ids.append(record.entity_id)
            elif isinstance(record, DeletedRecord):
                deleted_ids.append(record.entity_id)
            elif isinstance(record, UpdatedRecord):
                updated_ids.append(record.entity_id)
            else:
                raise TypeError(f"Unknown change record type: {type(record).__name__}")

            seen.add(record.entity_id)

        change_set = ChangeSet(
            added_ids=added_ids,
            deleted_ids=deleted_ids,
            updated_ids=updated_ids,
            records_seen=records_seen,
            duplicates_skipped=duplicates_skipped,
        )

        log.info(
            "changes_reconciled",
            records_seen=records_seen,
            added=len(added_ids),
            deleted=len(deleted_ids),
            updated=len(updated_ids),
            duplicates_skipped=duplicates_skipped,
        )

        return change_set

    def hydrate(self, change_set: ChangeSet, get_entity_by_id: EntityHydrator) -> HydratedChanges:
        """
        Resolve added and updated ids to full entities.

        Added ids are hydrated first, then updated ids, each in feed order.
        An added id that resolves to None is dropped silently (it may have
        been deleted again since the record was written). An updated id that
        resolves to None, or any hydrator exception, aborts the remaining
        hydration with HydrationError. Nothing is retried here.

        Args:
            change_set: Output of reconcile()
            get_entity_by_id: Hydrator returning the entity or None

        Returns:
            HydratedChanges with entities and dropped ids

        Raises:
            HydrationError: If an updated entity is missing or the hydrator fails
        """
        added = []
        dropped_ids: list[str] = []

        for entity_id in change_set.added_ids:
            entity = self._resolve(entity_id, "added", get_entity_by_id)
            if entity is None:
                log.debug("added_entity_dropped", entity_id=entity_id)
                dropped_ids.append(entity_id)
                continue
            added.append(entity)

        updated = []
        for entity_id in change_set.updated_ids:
            entity = self._resolve(entity_id, "updated", get_entity_by_id)
            if entity is None:
                log.error("updated_entity_missing", entity_id=entity_id)
                raise HydrationError(entity_id, "updated", "entity no longer exists")
            updated.append(entity)

        log.info(
            "changes_hydrated",
            added=len(added),
            updated=len(updated),
            dropped=len(dropped_ids),
        )

        return HydratedChanges(added=added, updated=updated, dropped_ids=dropped_ids)

    def _resolve(self, entity_id: str, bucket: str, get_entity_by_id: EntityHydrator):
        try:
            return get_entity_by_id(entity_id)
        except Exception as e:
            log.error(
                "hydration_failed",
                entity_id=entity_id,
                bucket=bucket,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise HydrationError(entity_id, bucket, str(e)) from e
