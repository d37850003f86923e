"""Contracts between the engine and provider-specific strategies.

The engine only ever talks to a provider through these three narrow calls.
Each provider (Gmail, Outlook, IMAP, a test double) implements them as a
standalone strategy object; nothing here is meant to be subclassed by the
engine components themselves.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from src.models.changes import ChangeFeedPage
from src.models.email import FetchOptions
from src.models.pagination import PageResult


class PageFetcher(Protocol):
    """Fetch one page of a frozen result set.

    Must be deterministic for a fixed result set and fixed filters, may return
    fewer items than requested, and signals the end with ``next_cursor=None``.
    """

    def __call__(
        self, cursor: Optional[str], page_size: int, filters: FetchOptions
    ) -> PageResult: ...


class ChangeFeedFetcher(Protocol):
    """Fetch one page of a provider change feed starting after a checkpoint."""

    def __call__(
        self, start_checkpoint: str, max_results: int, filters: FetchOptions
    ) -> ChangeFeedPage: ...


class EntityHydrator(Protocol):
    """Resolve an entity id to its full record, or None if it no longer exists."""

    def __call__(self, entity_id: str) -> Optional[Any]: ...


class StaleCheckpointDetector(Protocol):
    """Decide whether a raised fetch exception means the checkpoint expired."""

    def __call__(self, error: Exception) -> bool: ...


@runtime_checkable
class MailProvider(Protocol):
    """A provider strategy implementing all three external contracts."""

    @property
    def name(self) -> str: ...

    def fetch_page(
        self, cursor: Optional[str], page_size: int, filters: FetchOptions
    ) -> PageResult: ...

    def fetch_change_feed_page(
        self, start_checkpoint: str, max_results: int, filters: FetchOptions
    ) -> ChangeFeedPage: ...

    def get_entity_by_id(self, entity_id: str) -> Optional[Any]: ...

    def is_stale_checkpoint(self, error: Exception) -> bool: ...
