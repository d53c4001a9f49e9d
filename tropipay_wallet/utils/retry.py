"""Retry with exponential backoff for async callables"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from tropipay_wallet.domain.exceptions import is_retryable

T = TypeVar("T")


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    backoff_base: float = 1.0,
    max_delay: float = 30.0,
    should_retry: Optional[Callable[[Exception], bool]] = None,
) -> T:
    """
    Await ``func()`` until it succeeds or attempts run out.

    Delay between attempts is backoff_base * 2^(attempt-1), capped at max_delay.

    Args:
        func: zero-argument coroutine factory
        max_attempts: total attempts including the first
        backoff_base: base delay in seconds
        max_delay: ceiling for a single delay
        should_retry: predicate on the raised error; defaults to is_retryable

    Raises:
        The last error raised by ``func`` once attempts are exhausted or the
        error is not retryable
    """
    predicate = should_retry or is_retryable
    attempt = 0
    while True:
        attempt += 1
        try:
            return await func()
        except Exception as e:
            if attempt >= max_attempts or not predicate(e):
                raise
            delay = min(backoff_base * (2 ** (attempt - 1)), max_delay)
            logging.warning(
                f"Attempt {attempt}/{max_attempts} failed, retrying in {delay}s",
                extra={"attempt": attempt, "error": str(e)},
            )
            await asyncio.sleep(delay)
