"""In-memory provider strategy.

A deterministic provider over a list of normalized emails and an append-only
change log. It implements all three external contracts and is used to
exercise the engine without any remote API. Cursors and checkpoints are
tokens this provider issues itself; the engine treats them as opaque.
"""

from typing import Any, Iterable, Optional

import structlog

from src.exceptions import FetchError, StaleCheckpointError
from src.models.changes import (
    AddedRecord,
    ChangeFeedPage,
    ChangeRecord,
    DeletedRecord,
    UpdatedRecord,
)
from src.models.email import FetchOptions, NormalizedEmail
from src.models.pagination import PageResult
from src.providers.strategy import STRATEGY_FIELDS, FetchStrategy, select_fetch_strategy

log = structlog.stdlib.get_logger()

CURSOR_PREFIX = "mem:"


class InMemoryMailProvider:
    """Provider strategy backed by in-process lists.

    Example usage:
        provider = InMemoryMailProvider(emails)
        baseline = provider.current_checkpoint
        provider.add_email(new_email)
        page = provider.fetch_change_feed_page(baseline, 100, FetchOptions())
    """

    def __init__(
        self,
        emails: Iterable[NormalizedEmail] = (),
        name: str = "memory",
    ):
        """
        Initialize the provider.

        Args:
            emails: Initial mailbox contents, in listing order
            name: Provider name reported in logs and errors
        """
        self._name = name
        self._emails: dict[str, NormalizedEmail] = {email.id: email for email in emails}
        self._changes: list[ChangeRecord] = []
        self._sequence = 0
        self._compacted_through = 0

        log.info("in_memory_provider_initialized", name=name, emails=len(self._emails))

    @property
    def name(self) -> str:
        """Provider name."""
        return self._name

    @property
    def current_checkpoint(self) -> str:
        """Checkpoint of the most recent change; a baseline for new syncs."""
        return str(self._sequence)

    def fetch_page(
        self, cursor: Optional[str], page_size: int, filters: FetchOptions
    ) -> PageResult:
        """
        Fetch one page of emails matching the filters.

        Args:
            cursor: Cursor issued by a previous fetch, or None for the start
            page_size: Maximum number of emails to return
            filters: Fetch filters

        Returns:
            PageResult with projected emails and the next cursor

        Raises:
            FetchError: If the cursor was not issued by this provider
        """
        offset = self._decode_cursor(cursor)
        matching = [email for email in self._emails.values() if self._matches(email, filters)]
        strategy = select_fetch_strategy(filters)

        window = matching[offset : offset + page_size]
        next_offset = offset + len(window)
        next_cursor = self._encode_cursor(next_offset) if next_offset < len(matching) else None

        log.debug(
            "in_memory_page_served",
            offset=offset,
            size=len(window),
            strategy=strategy.value,
            has_next_page=next_cursor is not None,
        )

        return PageResult(
            items=[self._project(email, strategy) for email in window],
            next_cursor=next_cursor,
            total_count_estimate=len(matching),
        )

    def fetch_change_feed_page(
        self, start_checkpoint: str, max_results: int, filters: FetchOptions
    ) -> ChangeFeedPage:
        """
        Fetch change records written after a checkpoint.

        Filters are accepted for contract compatibility; the in-memory feed
        is not filtered.

        Args:
            start_checkpoint: Checkpoint issued by this provider
            max_results: Maximum number of records to return
            filters: Change feed filters (unused)

        Returns:
            ChangeFeedPage with records, next checkpoint and has_more

        Raises:
            StaleCheckpointError: If the checkpoint is unknown or compacted away
        """
        position = self._resolve_checkpoint(start_checkpoint)

        pending = self._changes[position - self._compacted_through :]
        records = pending[:max_results]
        next_checkpoint = records[-1].checkpoint if records else start_checkpoint

        return ChangeFeedPage(
            records=records,
            next_checkpoint=next_checkpoint,
            has_more=len(pending) > max_results,
        )

    def get_entity_by_id(self, entity_id: str) -> Optional[NormalizedEmail]:
        """Get an email by id, or None if it does not exist."""
        return self._emails.get(entity_id)

    def is_stale_checkpoint(self, error: Exception) -> bool:
        """Check whether an error means a checkpoint could not be resolved."""
        return isinstance(error, StaleCheckpointError)

    def add_email(self, email: NormalizedEmail, **meta: Any) -> str:
        """
        Add an email and record an Added change.

        Returns:
            Checkpoint of the new record
        """
        self._emails[email.id] = email
        meta.setdefault("labels", list(email.labels))
        return self.record_change(AddedRecord(entity_id=email.id, meta=meta))

    def delete_email(self, entity_id: str) -> str:
        """
        Remove an email and record a Deleted change.

        Returns:
            Checkpoint of the new record
        """
        self._emails.pop(entity_id, None)
        return self.record_change(DeletedRecord(entity_id=entity_id))

    def update_email(self, entity_id: str, **changes: Any) -> str:
        """
        Update fields of an existing email and record an Updated change.

        Returns:
            Checkpoint of the new record

        Raises:
            KeyError: If the email does not exist
        """
        email = self._emails[entity_id]
        self._emails[entity_id] = email.model_copy(update=changes)
        return self.record_change(
            UpdatedRecord(entity_id=entity_id, changed_fields=sorted(changes))
        )

    def record_change(self, record: ChangeRecord) -> str:
        """
        Append a raw change record without touching the mailbox.

        The record is stamped with the next checkpoint.

        Returns:
            Checkpoint of the new record
        """
        self._sequence += 1
        checkpoint = str(self._sequence)
        self._changes.append(record.model_copy(update={"checkpoint": checkpoint}))
        return checkpoint

    def compact(self, keep_after: str) -> None:
        """
        Discard change records up to and including a checkpoint.

        Checkpoints older than keep_after become stale afterwards.
        """
        position = self._resolve_checkpoint(keep_after)
        self._changes = self._changes[position - self._compacted_through :]
        self._compacted_through = position

        log.info("in_memory_change_log_compacted", compacted_through=position)

    def _resolve_checkpoint(self, checkpoint: str) -> int:
        try:
            position = int(checkpoint)
        except (TypeError, ValueError):
            raise StaleCheckpointError(
                checkpoint, provider=self._name, reason="checkpoint was not issued by this provider"
            ) from None

        if position < self._compacted_through or position > self._sequence:
            raise StaleCheckpointError(
                checkpoint, provider=self._name, reason="checkpoint is outside the retained history"
            )
        return position

    def _decode_cursor(self, cursor: Optional[str]) -> int:
        if cursor is None:
            return 0
        if not cursor.startswith(CURSOR_PREFIX):
            raise FetchError(f"Unrecognised cursor: {cursor!r}", provider=self._name)
        try:
            return int(cursor[len(CURSOR_PREFIX) :])
        except ValueError:
            raise FetchError(f"Unrecognised cursor: {cursor!r}", provider=self._name) from None

    @staticmethod
    def _encode_cursor(offset: int) -> str:
        return f"{CURSOR_PREFIX}{offset}"

    @staticmethod
    def _matches(email: NormalizedEmail, filters: FetchOptions) -> bool:
        if filters.unread_only and not email.is_unread:
            return False
        if filters.labels and not set(filters.labels) & set(email.labels):
            return False
        if filters.since is not None and email.date < filters.since:
            return False
        if filters.before is not None and email.date > filters.before:
            return False
        if filters.query:
            haystack = " ".join(
                part for part in (email.subject, email.sender, email.body_text) if part
            )
            if filters.query.lower() not in haystack.lower():
                return False
        return True

    @staticmethod
    def _project(email: NormalizedEmail, strategy: FetchStrategy) -> NormalizedEmail:
        fields = STRATEGY_FIELDS[strategy]
        update: dict[str, Any] = {}
        if "body_text" not in fields:
            update["body_text"] = None
            update["body_html"] = None
        if "attachments" not in fields:
            update["attachments"] = []
        return email.model_copy(update=update) if update else email
