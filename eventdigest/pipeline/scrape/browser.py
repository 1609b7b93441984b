"""Headless Chromium session lifecycle (Playwright)."""

from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    async_playwright,
)

from ..errors import BrowserInitError

logger = logging.getLogger(__name__)

# Container-friendly flags; Chromium's sandbox needs privileges CI images lack.
LAUNCH_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--disable-extensions",
    "--single-process",
    "--no-zygote",
)

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.6 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:132.0) Gecko/20100101 Firefox/132.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/130.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/130.0.0.0 Safari/537.36 Edg/130.0.0.0",
)

VIEWPORT = {"width": 1366, "height": 768}
LOCALE = "en-US"
TIMEZONE_ID = "America/New_York"

EXTRA_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
    "Cache-Control": "no-cache",
}


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


@dataclass
class BrowserSession:
    """The browser, context and page used by one scrape run.

    Handles stay ``None`` until created, so teardown can release whatever
    subset actually exists.
    """

    playwright: Playwright | None = None
    browser: Browser | None = None
    context: BrowserContext | None = None
    page: Page | None = None

    @property
    def is_open(self) -> bool:
        return self.page is not None


async def open_session(
    headless: bool = True,
    *,
    executable_path: str | None = None,
    launch_timeout_ms: int = 30000,
) -> BrowserSession:
    """Launch Chromium and create one context and page.

    Raises ``BrowserInitError`` if any step fails; handles created before the
    failure are released first.
    """
    session = BrowserSession()
    user_agent = random_user_agent()
    logger.info(
        "launching browser",
        extra={"headless": headless, "executable_path": executable_path or "bundled"},
    )
    try:
        session.playwright = await async_playwright().start()
        session.browser = await session.playwright.chromium.launch(
            headless=headless,
            args=list(LAUNCH_ARGS),
            executable_path=executable_path or None,
            timeout=launch_timeout_ms,
        )
        session.context = await session.browser.new_context(
            user_agent=user_agent,
            viewport=VIEWPORT,
            device_scale_factor=1,
            has_touch=False,
            is_mobile=False,
            locale=LOCALE,
            timezone_id=TIMEZONE_ID,
            extra_http_headers=EXTRA_HEADERS,
        )
        session.page = await session.context.new_page()
    except PlaywrightError as exc:
        logger.error("browser initialization failed", extra={"error": str(exc)})
        await close_session(session)
        raise BrowserInitError(str(exc)) from exc

    logger.debug("browser session ready", extra={"user_agent": user_agent})
    return session


async def close_session(session: BrowserSession) -> None:
    """Release page, context, browser and driver in that order.

    Safe to call more than once and on partially opened sessions.
    """
    for attr in ("page", "context", "browser"):
        handle = getattr(session, attr)
        if handle is None:
            continue
        try:
            await handle.close()
        except PlaywrightError:
            logger.warning("failed to close browser %s", attr, exc_info=True)
        finally:
            setattr(session, attr, None)

    if session.playwright is not None:
        try:
            await session.playwright.stop()
        except PlaywrightError:
            logger.warning("failed to stop playwright driver", exc_info=True)
        finally:
            session.playwright = None


@asynccontextmanager
async def browser_session(
    headless: bool = True,
    *,
    executable_path: str | None = None,
    launch_timeout_ms: int = 30000,
) -> AsyncIterator[BrowserSession]:
    """Open a session for the duration of the block and always tear it down."""
    session = await open_session(
        headless,
        executable_path=executable_path,
        launch_timeout_ms=launch_timeout_ms,
    )
    try:
        yield session
    finally:
        logger.debug("closing browser session")
        await close_session(session)
