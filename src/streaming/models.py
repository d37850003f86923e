"""Data models for batch streaming."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterator, Optional

from pydantic import BaseModel, Field

from src.models.email import FetchOptions


class StreamOptions(BaseModel):
    """Options for one streaming run.

    Values are checked by ``validate_stream_options`` when the stream is
    created, so an invalid batch size fails with ConfigError before any fetch.
    """

    batch_size: int = Field(default=50, description="Items requested per batch")
    max_items: int | None = Field(default=None, description="Stop after this many items")
    cursor: str | None = Field(
        default=None, description="Cursor to resume from; None starts at the beginning"
    )
    filters: FetchOptions = Field(
        default_factory=FetchOptions, description="Filters passed to every fetch"
    )


class BatchProgress(BaseModel):
    """Progress snapshot reported with every batch."""

    current: int = Field(default=0, ge=0, description="Items processed so far")
    total: int | None = Field(default=None, ge=0, description="Provider total estimate")
    batch_count: int = Field(default=0, ge=0, description="Batches seen so far")
    estimated_remaining: int | None = Field(
        default=None, ge=0, description="Estimated items still to come"
    )


class StreamBatch(BaseModel):
    """One batch of items, corresponding to exactly one provider page."""

    items: list[Any] = Field(default_factory=list)
    batch_number: int = Field(default=..., ge=1)
    progress: BatchProgress
    is_last_batch: bool = False

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:  # type: ignore[override]
        return iter(self.items)


class StreamSummary(BaseModel):
    """Statistics reported once a streaming run completes."""

    total_processed: int = Field(default=0, ge=0, description="Items delivered to the caller")
    total_batches: int = Field(default=0, ge=0, description="Batches pulled from the stream")
    errors: int = Field(default=0, ge=0, description="Batches whose handling failed")
    start_time: datetime = Field(default=..., description="Run start timestamp")
    end_time: datetime = Field(default=..., description="Run end timestamp")
    duration_seconds: float = Field(default=0.0, ge=0.0, description="Run duration in seconds")

    @property
    def success(self) -> bool:
        """Check if the run completed without batch errors."""
        return self.errors == 0


@dataclass
class StreamCallbacks:
    """Synchronous listeners invoked from inside the streaming pull loop.

    Any listener may be left as None. Registering ``on_error`` switches the
    run into continue-past-failed-batch mode.
    """

    on_batch: Optional[Callable[[list[Any], BatchProgress], None]] = None
    on_progress: Optional[Callable[[BatchProgress], None]] = None
    on_error: Optional[Callable[[Exception, BatchProgress], None]] = None
    on_complete: Optional[Callable[[StreamSummary], None]] = None

    @classmethod
    def from_listener(cls, listener: object) -> "StreamCallbacks":
        """Build callbacks from an object exposing any of the on_* methods."""
        return cls(
            on_batch=getattr(listener, "on_batch", None),
            on_progress=getattr(listener, "on_progress", None),
            on_error=getattr(listener, "on_error", None),
            on_complete=getattr(listener, "on_complete", None),
        )
