"""Property-based tests for logging configuration.

Feature: mail-sync-engine

Log entries must carry a timestamp, a severity level, the event name and any
keyword context passed with the event.
"""

import json
import logging
from datetime import datetime

import pytest
import structlog
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from src.models.config import LoggingConfig
from src.utils.logging_config import configure_logging, configure_logging_from_config, get_logger


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    for handler in list(logging.root.handlers):
        logging.root.removeHandler(handler)
        handler.close()
    structlog.reset_defaults()


def last_json_line(output: str) -> dict:
    lines = [line for line in output.strip().splitlines() if line.strip()]
    return json.loads(lines[-1])


@given(
    error_message=st.text(
        min_size=1, max_size=200, alphabet=st.characters(blacklist_categories=("Cs", "Cc"))
    ),
    checkpoint=st.text(min_size=1, max_size=20, alphabet="0123456789abcdef"),
)
@settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_error_log_format_contains_required_fields(capsys, error_message: str, checkpoint: str) -> None:
    """
    Property 1: Error log format

    *For any* logged error, the JSON entry contains timestamp, level, event
    and the keyword context.
    """
    capsys.readouterr()
    configure_logging(log_level="DEBUG", json_logs=True)
    log = get_logger("mail_sync_test")

    log.error("change_feed_fetch_failed", error=error_message, checkpoint=checkpoint)

    entry = last_json_line(capsys.readouterr().out)

    datetime.fromisoformat(entry["timestamp"].replace("Z", "+00:00"))
    assert entry["level"] == "error"
    assert entry["event"] == "change_feed_fetch_failed"
    assert entry["error"] == error_message
    assert entry["checkpoint"] == checkpoint
    assert "func_name" in entry and "lineno" in entry


def test_log_level_filters_lower_severities(capsys) -> None:
    """Events below the configured level are not emitted."""
    configure_logging(log_level="WARNING", json_logs=True)
    log = get_logger("mail_sync_test")

    log.info("stream_started", batch_size=50)
    log.warning("large_batch_size", batch_size=5000)

    output = capsys.readouterr().out
    assert "stream_started" not in output
    assert last_json_line(output)["event"] == "large_batch_size"


def test_unknown_level_falls_back_to_info(capsys) -> None:
    """An unrecognised level name behaves like INFO."""
    configure_logging(log_level="CHATTY", json_logs=True)
    log = get_logger("mail_sync_test")

    log.debug("hidden_event")
    log.info("visible_event")

    output = capsys.readouterr().out
    assert "hidden_event" not in output
    assert "visible_event" in output


def test_log_file_receives_entries(tmp_path) -> None:
    """A configured log file receives the same JSON entries."""
    log_file = tmp_path / "mailsync.log"
    configure_logging_from_config(LoggingConfig(log_level="INFO", json_logs=True, log_file=str(log_file)))

    get_logger("mail_sync_test").info("sync_pass_completed", added=3)
    for handler in logging.root.handlers:
        handler.flush()

    entry = last_json_line(log_file.read_text())
    assert entry["event"] == "sync_pass_completed"
    assert entry["added"] == 3


def test_console_renderer_output(capsys) -> None:
    """Development mode renders human-readable lines instead of JSON."""
    configure_logging(log_level="INFO", json_logs=False)

    get_logger("mail_sync_test").info("pagination_page_fetched", current_page=2)

    output = capsys.readouterr().out
    assert "pagination_page_fetched" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output.strip().splitlines()[-1])
