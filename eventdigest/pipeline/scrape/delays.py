"""Randomized waits that keep the browsing cadence from looking scripted."""

from __future__ import annotations

import asyncio
import random


def jitter(min_seconds: float, max_seconds: float) -> float:
    """Return a uniformly random duration in ``[min_seconds, max_seconds]``."""
    if max_seconds < min_seconds:
        raise ValueError(f"max_seconds ({max_seconds}) < min_seconds ({min_seconds})")
    return random.uniform(min_seconds, max_seconds)


async def random_delay(min_seconds: float, max_seconds: float) -> float:
    """Sleep for a random duration in the range and return how long it was."""
    delay = jitter(min_seconds, max_seconds)
    await asyncio.sleep(delay)
    return delay
