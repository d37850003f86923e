"""Property-based tests for change feed reconciliation.

Feature: mail-sync-engine
"""

import pytest
import structlog
from hypothesis import given, settings
from hypothesis import strategies as st

from src.exceptions import HydrationError
from src.models.changes import AddedRecord, ChangeRecord, DeletedRecord, UpdatedRecord
from src.sync import ChangeFeedReconciler

log = structlog.stdlib.get_logger()

RECORD_TYPES = (AddedRecord, DeletedRecord, UpdatedRecord)


@st.composite
def change_records_strategy(draw: st.DrawFn) -> list[ChangeRecord]:
    """Generate a change record sequence with repeated ids across kinds."""
    ids = draw(st.lists(st.sampled_from("ABCDEFGH"), min_size=0, max_size=30))
    records = []
    for position, entity_id in enumerate(ids, start=1):
        record_type = draw(st.sampled_from(RECORD_TYPES))
        records.append(record_type(entity_id=entity_id, checkpoint=str(position)))
    return records


class TestReconciliation:
    """Test classification of change records into buckets."""

    def test_added_then_updated_is_added_only(self) -> None:
        """Added(A), Updated(A), Deleted(B) reconciles to added=[A], deleted=[B]."""
        records = [
            AddedRecord(entity_id="A"),
            UpdatedRecord(entity_id="A"),
            DeletedRecord(entity_id="B"),
        ]

        change_set = ChangeFeedReconciler().reconcile(records)

        assert change_set.added_ids == ["A"]
        assert change_set.updated_ids == []
        assert change_set.deleted_ids == ["B"]
        assert change_set.records_seen == 3
        assert change_set.duplicates_skipped == 1

    @given(records=change_records_strategy())
    @settings(max_examples=200)
    def test_every_id_in_exactly_one_bucket(self, records: list[ChangeRecord]) -> None:
        """Property 1: Every id with a record lands in exactly one bucket."""
        log.info("test_every_id_in_exactly_one_bucket", records=len(records))

        change_set = ChangeFeedReconciler().reconcile(records)

        buckets = change_set.added_ids + change_set.deleted_ids + change_set.updated_ids
        assert len(buckets) == len(set(buckets)), "An id appears in more than one bucket"
        assert set(buckets) == {record.entity_id for record in records}
        assert change_set.records_seen == len(records)
        assert change_set.duplicates_skipped == len(records) - len(buckets)

    @given(records=change_records_strategy())
    @settings(max_examples=200)
    def test_first_record_decides_bucket(self, records: list[ChangeRecord]) -> None:
        """Property 2: The first record seen for an id decides its bucket."""
        change_set = ChangeFeedReconciler().reconcile(records)

        first_kind: dict[str, str] = {}
        for record in records:
            first_kind.setdefault(record.entity_id, record.kind)

        for entity_id, kind in first_kind.items():
            assert change_set.bucket_of(entity_id) == kind

    @given(records=change_records_strategy())
    @settings(max_examples=100)
    def test_reconcile_is_idempotent(self, records: list[ChangeRecord]) -> None:
        """Property 3: Reconciling the same sequence twice yields identical buckets."""
        reconciler = ChangeFeedReconciler()

        assert reconciler.reconcile(records) == reconciler.reconcile(records)

    @given(records=change_records_strategy())
    def test_buckets_keep_feed_order(self, records: list[ChangeRecord]) -> None:
        """Ids in each bucket keep the order of their first record."""
        change_set = ChangeFeedReconciler().reconcile(records)

        order: list[str] = []
        for record in records:
            if record.entity_id not in order:
                order.append(record.entity_id)

        for bucket in (change_set.added_ids, change_set.deleted_ids, change_set.updated_ids):
            assert bucket == [entity_id for entity_id in order if entity_id in bucket]

    def test_empty_feed(self) -> None:
        """An empty sequence yields empty buckets."""
        change_set = ChangeFeedReconciler().reconcile([])

        assert not change_set.has_changes
        assert change_set.total_changes == 0

    def test_unknown_record_type_rejected(self) -> None:
        """Records outside the three known kinds raise TypeError."""

        class MovedRecord:
            kind = "moved"
            entity_id = "M"
            checkpoint = "1"

        with pytest.raises(TypeError):
            ChangeFeedReconciler().reconcile([MovedRecord()])


class TestHydration:
    """Test resolving added and updated ids to entities."""

    def test_missing_added_entity_is_dropped(self) -> None:
        """An added id that no longer exists is dropped, not an error."""
        reconciler = ChangeFeedReconciler()
        change_set = reconciler.reconcile(
            [AddedRecord(entity_id="A"), AddedRecord(entity_id="B")]
        )

        hydrated = reconciler.hydrate(change_set, {"A": {"id": "A"}}.get)

        assert hydrated.added == [{"id": "A"}]
        assert hydrated.dropped_ids == ["B"]

    def test_missing_updated_entity_raises(self) -> None:
        """An updated id that no longer exists aborts with HydrationError."""
        reconciler = ChangeFeedReconciler()
        change_set = reconciler.reconcile([UpdatedRecord(entity_id="U")])

        with pytest.raises(HydrationError) as exc_info:
            reconciler.hydrate(change_set, {}.get)

        assert exc_info.value.entity_id == "U"
        assert exc_info.value.bucket == "updated"

    def test_hydrator_failure_is_chained(self) -> None:
        """Hydrator exceptions are wrapped with the original as cause."""
        reconciler = ChangeFeedReconciler()
        change_set = reconciler.reconcile([AddedRecord(entity_id="A")])
        cause = ConnectionError("reset by peer")

        def hydrator(entity_id: str):
            raise cause

        with pytest.raises(HydrationError) as exc_info:
            reconciler.hydrate(change_set, hydrator)

        assert exc_info.value.__cause__ is cause
        assert exc_info.value.bucket == "added"

    def test_failure_aborts_remaining_hydration(self) -> None:
        """No entity is resolved after the first failure."""
        reconciler = ChangeFeedReconciler()
        change_set = reconciler.reconcile(
            [
                UpdatedRecord(entity_id="U1"),
                AddedRecord(entity_id="A1"),
                UpdatedRecord(entity_id="U2"),
            ]
        )
        requested: list[str] = []

        def hydrator(entity_id: str):
            requested.append(entity_id)
            return None if entity_id == "U1" else {"id": entity_id}

        with pytest.raises(HydrationError):
            reconciler.hydrate(change_set, hydrator)

        assert requested == ["A1", "U1"]

    def test_deleted_ids_are_not_hydrated(self) -> None:
        """Deleted ids never reach the hydrator."""
        reconciler = ChangeFeedReconciler()
        change_set = reconciler.reconcile([DeletedRecord(entity_id="D")])
        requested: list[str] = []

        hydrated = reconciler.hydrate(change_set, lambda entity_id: requested.append(entity_id))

        assert requested == []
        assert hydrated.added == [] and hydrated.updated == []
