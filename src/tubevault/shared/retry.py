"""Retry utilities with exponential backoff.

S3 calls go through an injected RetryStrategy; short HTTP calls to metadata
APIs use the retry_with_backoff decorator, which is built on the same loop.
"""

import time
import random
from typing import Callable, TypeVar, Type, Tuple
from functools import wraps

from .logging import get_logger

T = TypeVar('T')

logger = get_logger(__name__)


class RetryStrategy:
    """Retry a callable on selected exceptions, sleeping with capped backoff between attempts."""

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        exponential: bool = True,
        jitter: bool = True,
        max_backoff: float = 60.0,
        exceptions: Tuple[Type[Exception], ...] = (Exception,)
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.exponential = exponential
        self.jitter = jitter
        self.max_backoff = max_backoff
        self.exceptions = exceptions

    def wait_time(self, attempt: int) -> float:
        """Seconds to sleep after the given failed attempt (1-based)."""
        if self.exponential:
            wait = self.backoff_seconds * (2 ** (attempt - 1))
        else:
            wait = self.backoff_seconds * attempt
        wait = min(wait, self.max_backoff)
        if self.jitter:
            wait *= 0.5 + random.random()
        return wait

    def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Call func(*args, **kwargs) until it succeeds or attempts run out.

        Raises:
            The last exception once every attempt has failed; exceptions
            outside self.exceptions propagate immediately
        """
        name = getattr(func, '__name__', 'call')
        for attempt in range(1, self.max_attempts + 1):
            try:
                return func(*args, **kwargs)
            except self.exceptions as e:
                if attempt == self.max_attempts:
                    raise
                wait = self.wait_time(attempt)
                logger.warning(
                    f"{name} failed (attempt {attempt}/{self.max_attempts}): {e}; "
                    f"retrying in {wait:.1f}s"
                )
                time.sleep(wait)

        raise RuntimeError("Retry logic failed unexpectedly")


def retry_with_backoff(
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    exponential: bool = True,
    jitter: bool = True,
    exceptions: Tuple[Type[Exception], ...] = (Exception,)
):
    """
    Decorator form of RetryStrategy.

    Usage:
        @retry_with_backoff(max_attempts=3, exceptions=(requests.ConnectionError,))
        def fetch(...): ...
    """
    strategy = RetryStrategy(
        max_attempts=max_attempts,
        backoff_seconds=backoff_seconds,
        exponential=exponential,
        jitter=jitter,
        exceptions=exceptions,
    )

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            return strategy.execute(func, *args, **kwargs)

        return wrapper
    return decorator
