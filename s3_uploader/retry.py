"""Retry logic with exponential backoff for failed uploads.

The delay policy and the sleep function are both injectable so the retry
loop can be exercised without real waiting, and so concurrent tasks can
share a cancellation signal:

- exponential_backoff(attempt) gives 2s, 4s, 8s... after attempts 1, 2, 3...
- CancellationToken.sleep waits on a threading.Event, so each task's delay
  is independent and a cancel request wakes every waiting task at once.
"""

import threading
import time
from typing import Any, Callable, Optional

# Base delay (seconds) multiplied by 2**attempt
BASE_DELAY = 1.0


class RetryExhausted(Exception):
    """Raised when all retry attempts have been exhausted."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class Cancelled(Exception):
    """Raised when the caller cancelled the operation.

    Attributes:
        attempts: Upload attempts made before the cancellation
    """

    def __init__(self, message: str = "Upload cancelled", attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class CancellationToken:
    """Shared cancel flag for a batch of uploads."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def sleep(self, seconds: float) -> None:
        """Wait for the given delay unless cancelled first.

        Raises:
            Cancelled: If the token is cancelled before the delay elapses.
        """
        if self._event.wait(seconds):
            raise Cancelled("Upload cancelled during backoff")


def exponential_backoff(attempt: int, base_delay: float = BASE_DELAY) -> float:
    """Delay in seconds to wait after the given (1-based) failed attempt."""
    return base_delay * (2 ** attempt)


def is_retryable_error(error: Exception) -> bool:
    """Determine if an error is worth another attempt.

    Every failure is retried except a cancellation, which must stop the
    loop immediately.
    """
    return not isinstance(error, Cancelled)


def retry_with_backoff(
    func: Callable[..., Any],
    max_attempts: int = 3,
    delay_for: Callable[[int], float] = exponential_backoff,
    sleep: Callable[[float], None] = time.sleep,
    is_retryable: Callable[[Exception], bool] = is_retryable_error,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
    args: tuple = (),
    kwargs: Optional[dict] = None,
) -> Any:
    """Execute a function with retry logic and exponential backoff.

    Args:
        func: The function to execute.
        max_attempts: Maximum number of attempts (including first try).
        delay_for: Maps the failed attempt number to a delay in seconds.
        sleep: Called with each delay; may raise Cancelled.
        is_retryable: Decides whether an error triggers another attempt.
        on_retry: Called with (attempt, error, delay) before each wait.
        args: Positional arguments to pass to func.
        kwargs: Keyword arguments to pass to func.

    Returns:
        The return value of func if successful.

    Raises:
        RetryExhausted: If all attempts fail with retryable errors.
        ValueError: If max_attempts is less than 1.
        Exception: If a non-retryable error occurs, it's raised immediately.

    Example:
        >>> result = retry_with_backoff(
        ...     upload_once,
        ...     max_attempts=3,
        ...     sleep=token.sleep,
        ...     args=(task,),
        ... )
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    if kwargs is None:
        kwargs = {}

    for attempt in range(1, max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not is_retryable(e):
                raise

            if attempt >= max_attempts:
                raise RetryExhausted(
                    f"Upload failed after {max_attempts} attempts: {e}",
                    attempts=max_attempts,
                    last_error=e,
                ) from e

            delay = delay_for(attempt)
            if on_retry:
                on_retry(attempt, e, delay)
            sleep(delay)
