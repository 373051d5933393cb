"""
Retry logic with exponential backoff for transient store failures.

SQLite reports a busy writer as "database is locked"; other backends report
dropped connections and timeouts. Those are worth another attempt, anything
else is surfaced immediately.
"""

import functools
import time
from typing import Callable, Optional, Tuple, Type

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from .errors import DependencyError


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 5.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (OperationalError,),
    on_retry: Optional[Callable] = None,
):
    """
    Decorator for retrying store calls with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        on_retry: Optional callback function(attempt, exception, delay)

    Raises:
        DependencyError: When every attempt failed with a retryable error

    Example:
        @exponential_backoff(max_retries=3, base_delay=0.1)
        def load_jobs(session):
            return session.query(JobRequest).all()
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if not is_transient_error(e) or attempt == max_retries:
                        raise DependencyError(
                            f"Store call failed after {attempt + 1} attempt(s): {e}"
                        ) from e

                    current_delay = min(delay, max_delay)
                    if on_retry:
                        on_retry(attempt + 1, e, current_delay)

                    time.sleep(current_delay)
                    delay *= exponential_base

        return wrapper
    return decorator


def is_transient_error(exception: Exception) -> bool:
    """
    Determine if a store error is likely transient and should be retried.

    Args:
        exception: Exception to check

    Returns:
        True if the error looks like lock contention, a timeout or a dropped connection
    """
    error_str = str(exception).lower()

    transient_keywords = [
        'database is locked',
        'database is busy',
        'timeout',
        'timed out',
        'connection',
        'server closed',
        'deadlock',
        'could not serialize',
    ]

    return any(keyword in error_str for keyword in transient_keywords)


def store_errors(message: str):
    """
    Decorator re-raising store exceptions as DependencyError.

    Args:
        message: Prefix for the DependencyError message
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except SQLAlchemyError as e:
                raise DependencyError(f"{message}: {e}") from e

        return wrapper
    return decorator
