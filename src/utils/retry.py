"""Retry utilities with exponential backoff.

The engine components never retry on their own. These helpers are for
callers that want to wrap an injected fetch function before handing it to
a StreamEngine, PaginationController or SyncOrchestrator.
"""

import time
from functools import wraps
from typing import Callable, Optional, Tuple, Type

import structlog

from src.exceptions import NavigationError, StaleCheckpointError

log = structlog.stdlib.get_logger()

# Retrying these can never succeed with the same arguments
NON_RETRYABLE: Tuple[Type[Exception], ...] = (StaleCheckpointError, NavigationError)


def exponential_backoff_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    give_up: Optional[Callable[[Exception], bool]] = None,
) -> Callable:
    """
    Decorator that retries a function with exponential backoff.

    StaleCheckpointError and NavigationError are re-raised immediately even
    when they match ``exceptions``, as is any error for which ``give_up``
    returns True.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exceptions: Tuple of exception types to catch and retry
        sleep: Function used to wait between attempts
        give_up: Optional predicate marking an error as permanent, such as a
            provider's ``is_stale_checkpoint``

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable) -> Callable:
        name = getattr(func, "__name__", type(func).__name__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except NON_RETRYABLE:
                    raise
                except exceptions as e:
                    if give_up is not None and give_up(e):
                        log.info(
                            "retry_given_up",
                            function=name,
                            attempt=attempt + 1,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        raise

                    if attempt == max_retries:
                        log.error(
                            "max_retries_reached",
                            function=name,
                            max_retries=max_retries,
                            error=str(e),
                        )
                        raise

                    delay = min(base_delay * (2**attempt), max_delay)

                    log.warning(
                        "retrying_after_error",
                        function=name,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay_seconds=delay,
                        error=str(e),
                    )

                    sleep(delay)

        return wrapper

    return decorator


def with_retry(
    fetch_fn: Callable,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    give_up: Optional[Callable[[Exception], bool]] = None,
) -> Callable:
    """
    Wrap an injected fetch function with exponential backoff retry.

    Example:
        >>> engine = StreamEngine(with_retry(provider.fetch_page, max_retries=5))

    Args:
        fetch_fn: Fetch function to wrap
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exceptions: Tuple of exception types to catch and retry
        sleep: Function used to wait between attempts
        give_up: Optional predicate marking an error as permanent

    Returns:
        Callable with the same signature as fetch_fn
    """
    return exponential_backoff_retry(
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=max_delay,
        exceptions=exceptions,
        sleep=sleep,
        give_up=give_up,
    )(fetch_fn)
