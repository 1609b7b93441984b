"""Load the listing page and scroll until lazily loaded cards have rendered."""

from __future__ import annotations

import asyncio
import logging
import time

from playwright.async_api import Error as PlaywrightError

from ..errors import NavigationError
from .browser import BrowserSession
from .delays import random_delay

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT_MS = 60000

# Cards load as they enter the viewport, so a single jump to the bottom
# misses most of them.
SCROLL_DURATION = 4.0
SCROLL_STEP_PX = 200
SCROLL_INTERVAL = 0.1

SETTLE_AFTER_LOAD = (6.0, 8.0)
SETTLE_AFTER_SCROLL = (4.0, 5.0)


async def navigate(session: BrowserSession, url: str, timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS) -> None:
    """Go to *url* and wait for network idle, raising ``NavigationError`` on failure."""
    if session.page is None:
        raise NavigationError("browser session has no open page")

    logger.info("navigating", extra={"url": url, "timeout_ms": timeout_ms})
    try:
        await session.page.goto(url, wait_until="networkidle", timeout=timeout_ms)
    except PlaywrightError as exc:
        # playwright's TimeoutError subclasses Error
        raise NavigationError(f"failed to load {url}: {exc}") from exc


async def scroll_incrementally(
    session: BrowserSession,
    duration: float = SCROLL_DURATION,
    step_px: int = SCROLL_STEP_PX,
    interval: float = SCROLL_INTERVAL,
) -> int:
    """Scroll down in fixed steps for *duration* seconds, then jump to the bottom.

    Returns the number of incremental steps taken.
    """
    page = session.page
    steps = 0
    deadline = time.monotonic() + duration
    while time.monotonic() < deadline:
        await page.evaluate("(step) => window.scrollBy(0, step)", step_px)
        steps += 1
        await asyncio.sleep(interval)

    await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
    logger.debug("scrolling finished", extra={"steps": steps, "step_px": step_px})
    return steps


async def reveal(
    session: BrowserSession,
    url: str,
    *,
    timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
    settle_after_load: tuple[float, float] = SETTLE_AFTER_LOAD,
    settle_after_scroll: tuple[float, float] = SETTLE_AFTER_SCROLL,
    scroll_duration: float = SCROLL_DURATION,
) -> None:
    """Navigate to *url* and drive the page until its event cards are rendered."""
    await navigate(session, url, timeout_ms=timeout_ms)
    await random_delay(*settle_after_load)

    try:
        await scroll_incrementally(session, duration=scroll_duration)
    except PlaywrightError as exc:
        raise NavigationError(f"page became unusable while scrolling {url}: {exc}") from exc

    logger.debug("waiting for content to settle")
    await random_delay(*settle_after_scroll)
