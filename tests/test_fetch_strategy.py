"""Tests for fetch strategy selection.

Feature: mail-sync-engine
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.exceptions import ConfigError
from src.models.email import FetchOptions
from src.providers import STRATEGY_FIELDS, FetchStrategy, select_fetch_strategy


@pytest.mark.parametrize(
    "include_body, include_attachments, expected",
    [
        (False, False, FetchStrategy.MINIMAL),
        (True, False, FetchStrategy.STANDARD),
        (False, True, FetchStrategy.STANDARD),
        (True, True, FetchStrategy.COMPLETE),
    ],
)
def test_strategy_from_include_flags(
    include_body: bool, include_attachments: bool, expected: FetchStrategy
) -> None:
    """The include_* flags map onto the three strategies."""
    flags = FetchOptions(include_body=include_body, include_attachments=include_attachments)

    assert select_fetch_strategy(flags) == expected


@pytest.mark.parametrize(
    "message_format, expected",
    [
        ("metadata", FetchStrategy.MINIMAL),
        ("full", FetchStrategy.STANDARD),
        ("raw", FetchStrategy.COMPLETE),
    ],
)
@given(include_body=st.booleans(), include_attachments=st.booleans())
def test_explicit_format_wins(
    message_format: str,
    expected: FetchStrategy,
    include_body: bool,
    include_attachments: bool,
) -> None:
    """An explicit format overrides whatever the include_* flags say."""
    flags = FetchOptions(
        format=message_format,
        include_body=include_body,
        include_attachments=include_attachments,
    )

    assert select_fetch_strategy(flags) == expected


def test_defaults_select_complete() -> None:
    """Default options fetch bodies and attachments."""
    assert select_fetch_strategy(FetchOptions()) == FetchStrategy.COMPLETE


def test_unknown_format_rejected() -> None:
    """A format outside the decision table is a ConfigError."""
    flags = FetchOptions.model_construct(format="mime", include_body=True, include_attachments=True)

    with pytest.raises(ConfigError):
        select_fetch_strategy(flags)


def test_strategies_are_nested() -> None:
    """Each richer strategy fetches a superset of the fields of the one below."""
    minimal = STRATEGY_FIELDS[FetchStrategy.MINIMAL]
    standard = STRATEGY_FIELDS[FetchStrategy.STANDARD]
    complete = STRATEGY_FIELDS[FetchStrategy.COMPLETE]

    assert minimal < standard < complete
    assert "body_text" not in minimal
    assert "attachments" in complete and "attachments" not in standard
