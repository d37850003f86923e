"""Exception taxonomy for the sync and streaming engine.

Every error raised by the engine derives from MailSyncError so callers can
catch the whole family in one place, while the subclasses tell them which
recovery applies:

- ConfigError: fix the options, nothing was fetched
- NavigationError: usage error on a pagination controller, never retried
- FetchError: the remote call failed
- StaleCheckpointError: re-baseline from a fresh checkpoint instead of retrying
- HydrationError: one changed entity could not be resolved, the pass aborted
"""

from typing import Optional


class MailSyncError(Exception):
    """Base class for all engine errors."""

    pass


class ConfigError(MailSyncError):
    """Raised when options are invalid, before any fetch is attempted."""

    pass


class ConfigurationError(ConfigError):
    """Raised when configuration is invalid or missing."""

    pass


class MissingCheckpointError(ConfigError):
    """Raised when an incremental sync is started without a checkpoint."""

    def __init__(self, message: str = "A start checkpoint is required for incremental sync"):
        super().__init__(message)


class NavigationError(MailSyncError):
    """Raised on invalid pagination navigation."""

    pass


class NoNextPageError(NavigationError):
    """Raised when moving forward past the last page."""

    def __init__(self, current_page: int):
        self.current_page = current_page
        super().__init__(f"No next page available after page {current_page}")


class NoPreviousPageError(NavigationError):
    """Raised when moving back from the first page."""

    def __init__(self, current_page: int):
        self.current_page = current_page
        super().__init__(f"No previous page available before page {current_page}")


class FetchError(MailSyncError):
    """Raised by provider strategies when a remote fetch fails.

    The engine itself never wraps injected exceptions in FetchError; whatever
    the fetch function raises reaches the caller unchanged.
    """

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class StaleCheckpointError(FetchError):
    """Raised when the provider can no longer resolve a change-feed checkpoint.

    The caller has to re-baseline from a fresh checkpoint; retrying with the
    same checkpoint will keep failing.
    """

    def __init__(
        self,
        checkpoint: str,
        provider: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.checkpoint = checkpoint
        self.reason = reason
        message = f"Checkpoint {checkpoint!r} is expired or unresolvable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, provider=provider)


class HydrationError(MailSyncError):
    """Raised when hydrating a changed entity fails.

    Aborts the remaining hydration for the current reconciliation pass.
    """

    def __init__(self, entity_id: str, bucket: str, reason: str):
        self.entity_id = entity_id
        self.bucket = bucket
        self.reason = reason
        super().__init__(f"Failed to hydrate {bucket} entity {entity_id!r}: {reason}")
