"""Fetch strategy selection.

Providers differ in how much of a message they can return per call (Gmail
``metadata``/``full``/``raw`` formats, Graph ``$select`` lists). The engine
reduces that choice to three strategies picked from the caller's flags by a
plain decision table.
"""

from enum import Enum

from src.exceptions import ConfigError
from src.models.email import FetchOptions


class FetchStrategy(str, Enum):
    """How much of each record a provider should fetch."""

    MINIMAL = "minimal"
    STANDARD = "standard"
    COMPLETE = "complete"


# Explicit message format always wins over the include_* flags
FORMAT_STRATEGIES: dict[str, FetchStrategy] = {
    "metadata": FetchStrategy.MINIMAL,
    "full": FetchStrategy.STANDARD,
    "raw": FetchStrategy.COMPLETE,
}

# (include_body, include_attachments) -> strategy
FLAG_STRATEGIES: dict[tuple[bool, bool], FetchStrategy] = {
    (False, False): FetchStrategy.MINIMAL,
    (True, False): FetchStrategy.STANDARD,
    (False, True): FetchStrategy.STANDARD,
    (True, True): FetchStrategy.COMPLETE,
}

HEADER_FIELDS = (
    "id",
    "thread_id",
    "sender",
    "to",
    "cc",
    "bcc",
    "subject",
    "date",
    "labels",
    "provider",
)

STRATEGY_FIELDS: dict[FetchStrategy, frozenset[str]] = {
    FetchStrategy.MINIMAL: frozenset(HEADER_FIELDS),
    FetchStrategy.STANDARD: frozenset(HEADER_FIELDS + ("body_text", "body_html")),
    FetchStrategy.COMPLETE: frozenset(
        HEADER_FIELDS + ("body_text", "body_html", "attachments")
    ),
}


def select_fetch_strategy(flags: FetchOptions) -> FetchStrategy:
    """
    Select the fetch strategy for a set of fetch flags.

    Args:
        flags: Fetch options carrying format and include_* flags

    Returns:
        The matching FetchStrategy

    Raises:
        ConfigError: If an explicit format is not recognised
    """
    if flags.format is not None:
        try:
            return FORMAT_STRATEGIES[flags.format]
        except KeyError:
            raise ConfigError(f"Unknown message format: {flags.format!r}") from None

    return FLAG_STRATEGIES[(flags.include_body, flags.include_attachments)]
