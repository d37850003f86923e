"""Configuration models for the mail sync engine."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StreamConfig(BaseModel):
    """Configuration for batch streaming."""

    batch_size: int = Field(default=50, gt=0, description="Items requested per batch")
    max_items: int | None = Field(
        default=None, gt=0, description="Stop streaming after this many items"
    )


class PaginationConfig(BaseModel):
    """Configuration for cursor pagination."""

    page_size: int = Field(default=20, gt=0, description="Items requested per page")


class SyncConfig(BaseModel):
    """Configuration for incremental sync passes."""

    max_results: int = Field(
        default=100, gt=0, description="Change records requested per sync pass"
    )
    max_passes: int | None = Field(
        default=None, gt=0, description="Upper bound on passes when draining the feed"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        description="If True, output JSON logs. If False, use console format.",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path to log file. If None, logs only to stdout.",
    )


class AppConfig(BaseSettings):
    """Main application configuration.

    This class uses pydantic-settings to load configuration from environment
    variables with the MAILSYNC_ prefix, e.g. ``MAILSYNC_STREAM__BATCH_SIZE=25``.
    """

    model_config = SettingsConfigDict(
        env_prefix="MAILSYNC_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    provider: str = Field(default="memory", description="Registered provider name")
    stream: StreamConfig = Field(default_factory=StreamConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
