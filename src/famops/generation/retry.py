"""
Famops - Retry with exponential backoff.

Only rate-limit and network-class failures are retried. Validation
failures and everything else propagate on the first attempt.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import openai

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_STATUS = 429
RATE_LIMIT_CODE = "RATE_LIMIT_EXCEEDED"

_NETWORK_ERRORS: tuple[type[BaseException], ...] = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    httpx.TransportError,
    ConnectionError,
)


def is_retryable(error: BaseException) -> bool:
    """True for rate-limit and transient network failures."""
    if isinstance(error, _NETWORK_ERRORS):
        return True
    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    if status == RATE_LIMIT_STATUS:
        return True
    return getattr(error, "code", None) == RATE_LIMIT_CODE


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay: float = 0.5,
    jitter: float = 0.25,
    retryable: Callable[[BaseException], bool] = is_retryable,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await `fn()`, retrying retryable failures up to `max_retries` times.

    Delay before retry n (0-based) is `base_delay * 2**n` plus up to `jitter`
    seconds of random spread.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as e:
            if attempt >= max_retries or not retryable(e):
                raise
            delay = base_delay * (2**attempt) + random.uniform(0, jitter)
            logger.warning(f"Retryable failure (attempt {attempt + 1}/{max_retries + 1}), retrying in {delay:.2f}s: {e}")
            await sleep(delay)
            attempt += 1
