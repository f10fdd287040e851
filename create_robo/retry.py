"""Bounded retry for fallible async operations.

Delays grow exponentially from ``base_delay``, doubling after every failed
attempt and capped at ``max_delay``.  There is no jitter.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

from create_robo.errors import GenerationError

T = TypeVar("T")

RetryCallback = Callable[[int, BaseException, float], None]


class RetryError(GenerationError):
    """Raised when every attempt of a retried operation failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Gave up after {attempts} attempt(s): {last_error}")


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay to wait after failed *attempt* (1-based)."""
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    on_retry: Optional[RetryCallback] = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Call *operation* until it succeeds, at most *attempts* times in total.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        attempts: Total number of attempts (not retries).
        base_delay: Seconds to wait after the first failure.
        max_delay: Upper bound for any single delay.
        retry_on: Exception types that trigger another attempt.  Anything
            else propagates immediately.
        on_retry: Called as ``on_retry(attempt, error, delay)`` before each
            wait.
        sleep: Awaitable sleep function, replaceable in tests.

    Returns:
        The first successful result.

    Raises:
        RetryError: If every attempt raised one of *retry_on*.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            if attempt == attempts:
                raise RetryError(attempts, exc) from exc
            delay = backoff_delay(attempt, base_delay, max_delay)
            if on_retry is not None:
                on_retry(attempt, exc, delay)
            await sleep(delay)

    raise AssertionError("unreachable")
