"""Exponential backoff with jitter for Admin API calls.

Retries on transient HTTP errors (429, 500, 502, 503, 504) and connection errors.
Respects Retry-After headers (Shopify sends one with 429). Logs each retry attempt.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import random
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

# HTTP status codes that trigger a retry
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: float = 0.3,
    retry_statuses: set[int] | frozenset[int] = frozenset(RETRYABLE_STATUS_CODES),
    retry_connection_errors: bool = True,
) -> Callable:
    """Decorator: retry a coroutine function with exponential backoff + jitter.

    Args:
        max_retries: Maximum number of retry attempts.
        base_delay: Initial delay in seconds.
        max_delay: Maximum delay cap in seconds.
        jitter: Jitter factor (0.0-1.0). Adds randomness to prevent thundering herd.
        retry_statuses: HTTP status codes worth another attempt.
        retry_connection_errors: Retry on connect errors and read timeouts.
            Leave off for requests that are not idempotent, since the
            server may have acted before the connection dropped.
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return await fn(*args, **kwargs)
                except httpx.HTTPStatusError as e:
                    status = e.response.status_code
                    if status not in retry_statuses or attempt == max_retries:
                        raise
                    delay = _compute_delay(
                        attempt, base_delay, max_delay, jitter, e.response
                    )
                    logger.warning(
                        "Retry %d/%d for %s (HTTP %d), waiting %.1fs",
                        attempt + 1,
                        max_retries,
                        fn.__name__,
                        status,
                        delay,
                    )
                    await asyncio.sleep(delay)
                except (httpx.ConnectError, httpx.ReadTimeout) as e:
                    if not retry_connection_errors or attempt == max_retries:
                        raise
                    delay = _compute_delay(attempt, base_delay, max_delay, jitter)
                    logger.warning(
                        "Retry %d/%d for %s (connection error: %s), waiting %.1fs",
                        attempt + 1,
                        max_retries,
                        fn.__name__,
                        type(e).__name__,
                        delay,
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator


def _compute_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    jitter: float,
    response: httpx.Response | None = None,
) -> float:
    """Compute delay with exponential backoff + jitter, respecting Retry-After."""
    if response is not None:
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return min(float(retry_after), max_delay)
            except ValueError:
                pass

    # Exponential backoff: base * 2^attempt
    delay = base_delay * (2**attempt)
    delay = min(delay, max_delay)

    jitter_amount = delay * jitter
    delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.1, delay)
