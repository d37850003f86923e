"""Shared utilities for configuration, logging, and retry"""

from src.utils.config_loader import ConfigLoader
from src.utils.logging_config import configure_logging, configure_logging_from_config, get_logger
from src.utils.retry import exponential_backoff_retry, with_retry

__all__ = [
    "ConfigLoader",
    "configure_logging",
    "configure_logging_from_config",
    "exponential_backoff_retry",
    "get_logger",
    "with_retry",
]
