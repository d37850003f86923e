"""Property-based tests for the in-memory provider.

Feature: mail-sync-engine
"""

from datetime import datetime, timedelta, timezone

import pytest
import structlog
from hypothesis import given, settings
from hypothesis import strategies as st

from src.exceptions import FetchError, StaleCheckpointError
from src.models.changes import DeletedRecord
from src.models.email import Attachment, FetchOptions, NormalizedEmail
from src.providers import InMemoryMailProvider, MailProvider

log = structlog.stdlib.get_logger()

BASE_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_email(index: int, **fields) -> NormalizedEmail:
    defaults = {
        "id": f"m{index}",
        "sender": "alice@example.com",
        "subject": f"Report {index}",
        "body_text": f"Body of report {index}",
        "attachments": [Attachment(filename=f"report-{index}.pdf", size=1024)],
        "date": BASE_DATE + timedelta(days=index),
    }
    defaults.update(fields)
    return NormalizedEmail(**defaults)


def read_all(provider: InMemoryMailProvider, page_size: int, filters: FetchOptions) -> list[str]:
    ids: list[str] = []
    cursor = None
    while True:
        page = provider.fetch_page(cursor, page_size, filters)
        ids.extend(email.id for email in page.items)
        if page.next_cursor is None:
            return ids
        cursor = page.next_cursor


class TestPageFetching:
    """Test page fetching and filtering."""

    def test_satisfies_provider_protocol(self) -> None:
        """The in-memory provider is a MailProvider."""
        assert isinstance(InMemoryMailProvider(), MailProvider)

    @given(
        count=st.integers(min_value=0, max_value=50),
        page_size=st.integers(min_value=1, max_value=12),
    )
    @settings(max_examples=100)
    def test_pages_cover_mailbox_in_order(self, count: int, page_size: int) -> None:
        """Property 1: Following cursors visits every email once, in listing order."""
        provider = InMemoryMailProvider([make_email(i) for i in range(count)])

        assert read_all(provider, page_size, FetchOptions()) == [f"m{i}" for i in range(count)]

    def test_fetch_is_deterministic(self) -> None:
        """The same cursor and filters yield the same page."""
        provider = InMemoryMailProvider([make_email(i) for i in range(5)])
        first = provider.fetch_page(None, 2, FetchOptions())

        assert provider.fetch_page(first.next_cursor, 2, FetchOptions()) == provider.fetch_page(
            first.next_cursor, 2, FetchOptions()
        )
        assert first.total_count_estimate == 5

    def test_filters(self) -> None:
        """Query, unread, label and date filters narrow the result set."""
        provider = InMemoryMailProvider(
            [
                make_email(0, labels=["INBOX", "UNREAD"]),
                make_email(1, labels=["INBOX"], subject="Invoice 1"),
                make_email(2, labels=["WORK", "UNREAD"], subject="Invoice 2"),
            ]
        )

        assert read_all(provider, 10, FetchOptions(unread_only=True)) == ["m0", "m2"]
        assert read_all(provider, 10, FetchOptions(labels=["WORK"])) == ["m2"]
        assert read_all(provider, 10, FetchOptions(query="invoice")) == ["m1", "m2"]
        assert read_all(provider, 10, FetchOptions(since=BASE_DATE + timedelta(days=1))) == [
            "m1",
            "m2",
        ]
        assert read_all(provider, 10, FetchOptions(before=BASE_DATE)) == ["m0"]

    def test_minimal_strategy_strips_content(self) -> None:
        """Metadata format drops bodies and attachments."""
        provider = InMemoryMailProvider([make_email(0, body_html="<p>hi</p>")])

        email = provider.fetch_page(None, 1, FetchOptions(format="metadata")).items[0]

        assert email.body_text is None
        assert email.body_html is None
        assert email.attachments == []
        assert email.subject == "Report 0"

    def test_standard_strategy_keeps_body(self) -> None:
        """Bodies without attachments keep the text but drop attachments."""
        provider = InMemoryMailProvider([make_email(0)])

        email = provider.fetch_page(None, 1, FetchOptions(include_attachments=False)).items[0]

        assert email.body_text == "Body of report 0"
        assert email.attachments == []

    def test_projection_does_not_modify_mailbox(self) -> None:
        """Projected copies leave the stored email untouched."""
        provider = InMemoryMailProvider([make_email(0)])
        provider.fetch_page(None, 1, FetchOptions(format="metadata"))

        assert provider.get_entity_by_id("m0").body_text == "Body of report 0"

    @pytest.mark.parametrize("cursor", ["garbage", "mem:abc"])
    def test_foreign_cursor_rejected(self, cursor: str) -> None:
        """Cursors not issued by the provider raise FetchError."""
        with pytest.raises(FetchError):
            InMemoryMailProvider().fetch_page(cursor, 10, FetchOptions())


class TestChangeFeed:
    """Test the change log and checkpoints."""

    def test_change_log_records_mutations(self) -> None:
        """Add, update and delete each append one record."""
        provider = InMemoryMailProvider([make_email(0)])
        baseline = provider.current_checkpoint
        provider.add_email(make_email(1))
        provider.update_email("m0", labels=["STARRED"])
        provider.delete_email("m1")

        page = provider.fetch_change_feed_page(baseline, 10, FetchOptions())

        assert [(record.kind, record.entity_id) for record in page.records] == [
            ("added", "m1"),
            ("updated", "m0"),
            ("deleted", "m1"),
        ]
        assert page.records[1].changed_fields == ["labels"]
        assert page.next_checkpoint == provider.current_checkpoint
        assert not page.has_more
        assert provider.get_entity_by_id("m1") is None

    @given(
        change_count=st.integers(min_value=0, max_value=30),
        max_results=st.integers(min_value=1, max_value=10),
    )
    @settings(max_examples=100)
    def test_checkpoints_resume_without_gaps(self, change_count: int, max_results: int) -> None:
        """Property 2: Resuming from each next_checkpoint reads every record exactly once."""
        provider = InMemoryMailProvider()
        checkpoint = provider.current_checkpoint
        for index in range(change_count):
            provider.record_change(DeletedRecord(entity_id=f"d{index}"))

        seen: list[str] = []
        while True:
            page = provider.fetch_change_feed_page(checkpoint, max_results, FetchOptions())
            assert len(page.records) <= max_results
            seen.extend(record.entity_id for record in page.records)
            checkpoint = page.next_checkpoint
            if not page.has_more:
                break

        assert seen == [f"d{index}" for index in range(change_count)]

    def test_compaction_makes_old_checkpoints_stale(self) -> None:
        """Checkpoints before the compaction point are rejected."""
        provider = InMemoryMailProvider()
        first = provider.add_email(make_email(0))
        second = provider.add_email(make_email(1))
        provider.add_email(make_email(2))

        provider.compact(keep_after=second)

        with pytest.raises(StaleCheckpointError) as exc_info:
            provider.fetch_change_feed_page(first, 10, FetchOptions())
        assert provider.is_stale_checkpoint(exc_info.value)

        page = provider.fetch_change_feed_page(second, 10, FetchOptions())
        assert [record.entity_id for record in page.records] == ["m2"]

    @pytest.mark.parametrize("checkpoint", ["not-a-number", "99"])
    def test_unknown_checkpoint_is_stale(self, checkpoint: str) -> None:
        """Checkpoints the provider never issued are stale."""
        with pytest.raises(StaleCheckpointError):
            InMemoryMailProvider().fetch_change_feed_page(checkpoint, 10, FetchOptions())

    def test_other_errors_are_not_stale(self) -> None:
        """Only StaleCheckpointError is classified as stale."""
        assert not InMemoryMailProvider().is_stale_checkpoint(FetchError("boom"))
