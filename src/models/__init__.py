"""Data models for the mail sync engine."""

from src.models.changes import (
    AddedRecord,
    ChangeFeedPage,
    ChangeRecord,
    DeletedRecord,
    UpdatedRecord,
)
from src.models.config import (
    AppConfig,
    LoggingConfig,
    PaginationConfig,
    StreamConfig,
    SyncConfig,
)
from src.models.email import Attachment, FetchOptions, NormalizedEmail
from src.models.pagination import (
    PageResult,
    PaginatedResponse,
    PaginationMetadata,
    PaginationState,
)

__all__ = [
    "AddedRecord",
    "ChangeFeedPage",
    "ChangeRecord",
    "DeletedRecord",
    "UpdatedRecord",
    "Attachment",
    "FetchOptions",
    "NormalizedEmail",
    "PageResult",
    "PaginatedResponse",
    "PaginationMetadata",
    "PaginationState",
    "AppConfig",
    "LoggingConfig",
    "PaginationConfig",
    "StreamConfig",
    "SyncConfig",
]
