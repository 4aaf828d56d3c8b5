"""Exponential backoff retry logic for upstream calls."""

import asyncio
import random
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar, cast

import httpx

from .errors import UpstreamUnavailableError
from .logging import get_logger

logger = get_logger(__name__)

AsyncFunc = TypeVar("AsyncFunc", bound=Callable[..., Any])

# Retryable HTTP status codes
RETRYABLE_STATUS_CODES: set[int] = {
    408,  # Request Timeout
    429,  # Too Many Requests
    500,  # Internal Server Error
    502,  # Bad Gateway
    503,  # Service Unavailable
    504,  # Gateway Timeout
}

# Retryable exception types
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.RemoteProtocolError,
    ConnectionError,
    TimeoutError,
)


class RetryConfig:
    """Configuration for exponential backoff retry."""

    def __init__(
        self,
        max_retries: int = 2,
        base_delay: float = 0.5,
        max_delay: float = 10.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
    ):
        """Initialize retry configuration.

        Args:
            max_retries: Maximum number of retry attempts
            base_delay: Initial delay between retries in seconds
            max_delay: Maximum delay between retries in seconds
            exponential_base: Base for exponential backoff calculation
            jitter: Whether to add randomization to delays
        """
        self.max_retries = max(0, max_retries)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    @classmethod
    def from_settings(cls, settings: Any) -> "RetryConfig":
        """Build a retry config from the ``retry`` settings section."""
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
            exponential_base=settings.exponential_base,
            jitter=settings.jitter,
        )

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for a given retry attempt (0-indexed)."""
        delay = min(self.base_delay * (self.exponential_base**attempt), self.max_delay)

        if self.jitter:
            # +/-25% jitter
            jitter_range = delay * 0.25
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0, delay)


def is_retryable_exception(exc: Exception) -> bool:
    """Check if an exception is worth another attempt.

    Args:
        exc: Exception to check

    Returns:
        True if exception is retryable, False otherwise
    """
    if isinstance(exc, RETRYABLE_EXCEPTIONS):
        return True

    if isinstance(exc, UpstreamUnavailableError):
        upstream_status = exc.details.get("upstream_status")
        if upstream_status is not None:
            return upstream_status in RETRYABLE_STATUS_CODES
        return isinstance(exc.original_error, RETRYABLE_EXCEPTIONS)

    return False


def format_exception_for_log(exc: Exception) -> str:
    """Format exception details for logging."""
    exception_type = type(exc).__name__
    exception_details = str(exc)

    if isinstance(exc, UpstreamUnavailableError):
        exception_details += f" [Reason: {exc.reason}]"
        if exc.original_error is not None:
            orig_type = type(exc.original_error).__name__
            exception_details += f" (Original: {orig_type}: {exc.original_error})"

    return f"{exception_type}: {exception_details}"


def with_exponential_backoff(
    config: RetryConfig | None = None,
    on_retry: Callable[[Exception, int], None] | None = None,
) -> Callable[[AsyncFunc], AsyncFunc]:
    """Decorator for adding exponential backoff retry to async functions.

    Args:
        config: Retry configuration (uses defaults if None)
        on_retry: Optional callback called on each retry with (exception, attempt)

    Returns:
        Decorated function with retry logic
    """
    if config is None:
        config = RetryConfig()

    def decorator(func: AsyncFunc) -> AsyncFunc:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.time()

            for attempt in range(config.max_retries + 1):
                try:
                    result = await func(*args, **kwargs)

                    if attempt > 0:
                        total_time = time.time() - start_time
                        logger.info(
                            f"Successfully completed {func.__name__} after {attempt} "
                            f"retries in {total_time:.2f}s"
                        )

                    return result

                except Exception as exc:
                    if attempt >= config.max_retries:
                        if attempt > 0:
                            total_time = time.time() - start_time
                            logger.error(
                                f"All retry attempts exhausted for {func.__name__} "
                                f"after {total_time:.2f}s: "
                                f"{format_exception_for_log(exc)}"
                            )
                        raise

                    if not is_retryable_exception(exc):
                        logger.debug(
                            f"Non-retryable exception in {func.__name__}: "
                            f"{format_exception_for_log(exc)}"
                        )
                        raise

                    delay = config.calculate_delay(attempt)
                    logger.warning(
                        f"Retryable error in {func.__name__} "
                        f"(attempt {attempt + 1}/{config.max_retries + 1}): "
                        f"{format_exception_for_log(exc)}. "
                        f"Retrying after {delay:.2f}s..."
                    )

                    if on_retry:
                        on_retry(exc, attempt)

                    await asyncio.sleep(delay)

            raise RuntimeError("Retry logic error: no exception captured")

        return cast(AsyncFunc, wrapper)

    return decorator
