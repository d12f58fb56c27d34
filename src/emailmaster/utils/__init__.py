"""Utility functions for EmailMaster."""

import time
from functools import wraps
from typing import Any, Callable, TypeVar

import structlog

from .jsonfile import read_json, write_json_atomic

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])

__all__ = ["read_json", "retry_on_failure", "write_json_atomic"]


def retry_on_failure(
    max_retries: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> Callable[[F], F]:
    """Decorator to retry a synchronous function with exponential backoff.

    Used for the blocking Gmail request calls, which run in worker threads.

    Args:
        max_retries: Maximum number of retry attempts after the first call.
        delay: Initial delay between retries in seconds.
        backoff: Multiplier for delay after each retry.
        retry_on: Exception types that trigger a retry; anything else propagates
            immediately.

    Returns:
        Decorated function with retry logic.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except retry_on as e:
                    if attempt >= max_retries:
                        logger.error(
                            "function_retry_exhausted",
                            function=func.__name__,
                            attempts=max_retries + 1,
                            error=str(e),
                        )
                        raise
                    logger.warning(
                        "function_retry",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=current_delay,
                        error=str(e),
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff

        return wrapper  # type: ignore

    return decorator
