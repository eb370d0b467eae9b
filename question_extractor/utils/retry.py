"""Retry logic with exponential backoff for catalog service calls.

The decorator only wraps coroutines: waits use ``asyncio.sleep`` so a
retrying request never blocks the event loop.
"""

import asyncio
import functools
import inspect
import logging
import random
from typing import Any, Callable, Set, Type, TypeVar, cast

import httpx

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# HTTP status codes that should trigger retry
RETRYABLE_STATUS_CODES: Set[int] = {
    429,  # Rate limit
    500,  # Server error
    502,  # Bad gateway
    503,  # Service unavailable
    504,  # Gateway timeout
}

# HTTP status codes that should NOT trigger retry
NON_RETRYABLE_STATUS_CODES: Set[int] = {
    400,  # Bad request
    401,  # Unauthorized
    403,  # Forbidden
    404,  # Not found
    422,  # Unprocessable entity
}

MAX_RETRIES = 3
BASE_DELAY = 0.5  # seconds
MAX_JITTER = 0.5  # seconds


def retry_with_backoff(
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_DELAY,
    max_jitter: float = MAX_JITTER,
    retryable_exceptions: tuple[Type[Exception], ...] = (httpx.TransportError,),
) -> Callable[[F], F]:
    """Decorator that retries a coroutine with exponential backoff.

    Retries on 429/5xx status codes (read from ``status_code`` or
    ``response.status_code`` on the exception), on timeouts and connection
    errors, and on any of ``retryable_exceptions``. 4xx client errors are
    raised immediately.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Base delay in seconds for exponential backoff
        max_jitter: Maximum random jitter in seconds
        retryable_exceptions: Tuple of exception types to retry

    Returns:
        Decorated coroutine function with retry logic
    """

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"retry_with_backoff requires a coroutine function, got {func!r}")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    should_retry = _should_retry_exception(e, retryable_exceptions)

                    if not should_retry or attempt >= max_retries:
                        if should_retry:
                            logger.error(
                                f"{func.__name__} failed after {max_retries} retries: {e}"
                            )
                        raise

                    delay = (base_delay * (2**attempt)) + (random.random() * max_jitter)

                    logger.warning(
                        f"{func.__name__} attempt {attempt + 1}/{max_retries} failed: {e}. "
                        f"Retrying in {delay:.2f}s..."
                    )

                    await asyncio.sleep(delay)

            raise RuntimeError("Unexpected retry loop exit")

        return cast(F, wrapper)

    return decorator


def _should_retry_exception(
    exception: Exception, retryable_exceptions: tuple[Type[Exception], ...]
) -> bool:
    """Determine if an exception should trigger a retry."""
    status_code = _extract_status_code(exception)

    if status_code:
        if status_code in NON_RETRYABLE_STATUS_CODES:
            return False
        if status_code in RETRYABLE_STATUS_CODES:
            return True

    if isinstance(exception, (httpx.TimeoutException, httpx.NetworkError)):
        return True

    exception_str = str(exception).lower()
    for marker in ("timeout", "timed out", "connection reset", "connection refused"):
        if marker in exception_str:
            return True

    return isinstance(exception, retryable_exceptions)


def _extract_status_code(exception: Exception) -> int | None:
    """Extract an HTTP status code from the exception, if it carries one."""
    status_code = getattr(exception, "status_code", None)
    if isinstance(status_code, int):
        return status_code

    # httpx.HTTPStatusError pattern
    response = getattr(exception, "response", None)
    if response is not None and isinstance(getattr(response, "status_code", None), int):
        return response.status_code

    return None
