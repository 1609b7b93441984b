"""Exponential-backoff retry for async calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """How many times to retry and how long to wait between attempts.

    ``max_retries`` counts retries, so a call is attempted at most
    ``max_retries + 1`` times. The wait before retry *n* (0-based) is
    ``base_delay * 2**n`` capped at ``max_delay``.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** attempt), self.max_delay)


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    config: RetryConfig,
    is_retryable: Callable[[BaseException], bool],
    *,
    label: str = "call",
) -> T:
    """Await ``fn()`` and retry it while it raises a retryable error.

    Non-retryable errors propagate immediately; the last retryable error
    propagates once retries are exhausted.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:
            if not is_retryable(exc) or attempt >= config.max_retries:
                raise
            delay = config.delay_for(attempt)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                label, attempt + 1, config.max_retries + 1, delay, exc,
            )
            await asyncio.sleep(delay)
            attempt += 1
