"""Browser-driven scraping of the events listing page."""

from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import Error as PlaywrightError

from .browser import BrowserSession, browser_session, close_session, open_session
from .delays import jitter, random_delay
from .locator import CARD_SELECTORS, locate, parse_background_image
from .models import CardImage, RawCardElement
from .reveal import reveal

__all__ = [
    "CARD_SELECTORS",
    "BrowserSession",
    "CardImage",
    "RawCardElement",
    "browser_session",
    "capture_screenshot",
    "close_session",
    "jitter",
    "locate",
    "open_session",
    "parse_background_image",
    "random_delay",
    "reveal",
]

logger = logging.getLogger(__name__)


async def capture_screenshot(session: BrowserSession, path: str | Path) -> Path | None:
    """Save a full-page screenshot for debugging; returns ``None`` if it failed."""
    if session.page is None:
        return None
    target = Path(path)
    try:
        await session.page.screenshot(path=str(target), full_page=True)
    except PlaywrightError:
        logger.warning("debug screenshot failed", extra={"path": str(target)}, exc_info=True)
        return None
    logger.info("debug screenshot saved", extra={"path": str(target)})
    return target
