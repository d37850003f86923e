"""Data models for synchronization operations."""

from typing import Any

from pydantic import BaseModel, Field

from src.models.email import FetchOptions


class ChangeSet(BaseModel):
    """Entity ids classified by one reconciliation pass.

    Every id appears in at most one bucket.
    """

    added_ids: list[str] = Field(
        default_factory=list, description="Ids first seen as added, in feed order"
    )
    deleted_ids: list[str] = Field(
        default_factory=list, description="Ids first seen as deleted, in feed order"
    )
    updated_ids: list[str] = Field(
        default_factory=list, description="Ids first seen as updated, in feed order"
    )
    records_seen: int = Field(default=0, ge=0, description="Records consumed by the pass")
    duplicates_skipped: int = Field(
        default=0, ge=0, description="Records skipped because their id was already classified"
    )

    @property
    def has_changes(self) -> bool:
        """Check if there are any changes to process."""
        return bool(self.added_ids or self.deleted_ids or self.updated_ids)

    @property
    def total_changes(self) -> int:
        """Get total number of changes."""
        return len(self.added_ids) + len(self.deleted_ids) + len(self.updated_ids)

    def bucket_of(self, entity_id: str) -> str | None:
        """Get the bucket name an id was classified into, if any."""
        if entity_id in self.added_ids:
            return "added"
        if entity_id in self.deleted_ids:
            return "deleted"
        if entity_id in self.updated_ids:
            return "updated"
        return None


class HydratedChanges(BaseModel):
    """Full entities resolved for the added and updated ids of a ChangeSet."""

    added: list[Any] = Field(default_factory=list, description="Hydrated added entities")
    updated: list[Any] = Field(default_factory=list, description="Hydrated updated entities")
    dropped_ids: list[str] = Field(
        default_factory=list, description="Added ids that no longer resolved to an entity"
    )


class SyncOptions(BaseModel):
    """Options for one incremental sync pass."""

    max_results: int = Field(default=100, description="Change records requested per pass")
    filters: FetchOptions = Field(
        default_factory=FetchOptions, description="Filters passed to the change feed"
    )


class SyncResult(BaseModel):
    """Result of one incremental sync pass."""

    start_checkpoint: str = Field(default=..., description="Checkpoint the pass started from")
    new_checkpoint: str = Field(default=..., description="Checkpoint to persist for the next pass")
    has_more: bool = Field(default=False, description="Whether the feed has unfetched pages")
    added: list[Any] = Field(default_factory=list, description="Hydrated added entities")
    deleted_ids: list[str] = Field(default_factory=list, description="Deleted entity ids")
    updated: list[Any] = Field(default_factory=list, description="Hydrated updated entities")
    dropped_ids: list[str] = Field(
        default_factory=list, description="Added ids that no longer resolved to an entity"
    )
    records_seen: int = Field(default=0, ge=0, description="Change records in the fetched page")
    duplicates_skipped: int = Field(default=0, ge=0, description="Records skipped as duplicates")
    duration_seconds: float = Field(default=0.0, ge=0.0, description="Pass duration in seconds")

    @property
    def has_changes(self) -> bool:
        """Check if the pass produced any changes."""
        return bool(self.added or self.deleted_ids or self.updated)

    @property
    def total_changes(self) -> int:
        """Get total number of changes delivered."""
        return len(self.added) + len(self.deleted_ids) + len(self.updated)
