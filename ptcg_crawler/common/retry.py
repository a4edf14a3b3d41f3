"""Exponential backoff retry for async operations."""

from __future__ import annotations

import asyncio
import re
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

RETRYABLE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"network",
        r"timeout",
        r"ECONNRESET",
        r"ECONNREFUSED",
        r"ETIMEDOUT",
        r"socket hang up",
        r"rate limit",
        r"too many requests",
        r"\b429\b",
    )
]


def is_retryable_error(error: BaseException) -> bool:
    """Network, timeout and rate-limit failures are worth another attempt."""
    message = str(error)
    return any(p.search(message) for p in RETRYABLE_PATTERNS)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_multiplier: float = 2.0,
    max_delay: float = 30.0,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    should_retry: Optional[Callable[[Exception], bool]] = None,
) -> T:
    """Await ``fn()`` until it succeeds or ``max_attempts`` is exhausted.

    A failure rejected by ``should_retry`` is re-raised at once. Otherwise
    ``on_retry(error, attempt)`` is called (attempt is 1-based), then the
    coroutine sleeps ``min(delay, max_delay)`` seconds and the delay grows by
    ``backoff_multiplier``. The last error is re-raised unchanged.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    delay = initial_delay
    for attempt in range(1, max_attempts + 1):
        try:
            return await fn()
        except Exception as e:
            if should_retry is not None and not should_retry(e):
                raise
            if attempt >= max_attempts:
                raise
            if on_retry is not None:
                on_retry(e, attempt)
            await asyncio.sleep(min(delay, max_delay))
            delay = min(delay * backoff_multiplier, max_delay)
    raise RuntimeError("unreachable")
