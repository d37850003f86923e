"""Batch streaming over provider page fetchers."""

from src.streaming.models import (
    BatchProgress,
    StreamBatch,
    StreamCallbacks,
    StreamOptions,
    StreamSummary,
)
from src.streaming.stream_engine import (
    StreamEngine,
    calculate_estimated_remaining,
    stream,
    validate_stream_options,
)

__all__ = [
    "BatchProgress",
    "StreamBatch",
    "StreamCallbacks",
    "StreamEngine",
    "StreamOptions",
    "StreamSummary",
    "calculate_estimated_remaining",
    "stream",
    "validate_stream_options",
]
