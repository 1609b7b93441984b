"""Scrape engine — owns the browser session and runs reveal -> locate -> extract -> filter."""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Protocol, Sequence

from playwright.async_api import Error as PlaywrightError

from eventdigest.api.schemas import ExtractedEvent, ScrapeReport
from eventdigest.config import Settings
from eventdigest.pipeline.batch import BatchExtractor
from eventdigest.pipeline.errors import NavigationError
from eventdigest.pipeline.extract import LLMExtractor
from eventdigest.pipeline.progress import ProgressCallback, notify, notify_step
from eventdigest.pipeline.report import build_report, has_zip_flag, zip_literal_predicate
from eventdigest.pipeline.scrape import (
    RawCardElement,
    browser_session,
    capture_screenshot,
    locate,
    reveal,
)
from eventdigest.pipeline.selector_extract import SelectorExtractor

logger = logging.getLogger(__name__)


class CardExtractor(Protocol):
    async def extract_all(
        self,
        elements: Sequence[RawCardElement],
        on_progress: ProgressCallback | None = None,
    ) -> list[ExtractedEvent]: ...


class ScrapeEngine:
    """Runs one complete scrape of the listing page.

    The engine is the only owner of the browser session; it is released on
    every exit path. Whole-page failures (navigation, unreadable or missing
    cards) produce ``None``; ``BrowserInitError`` propagates.
    """

    def __init__(self, settings: Settings, extractor: CardExtractor | None = None) -> None:
        self._settings = settings
        self._strategy = settings.extraction_strategy
        self._extractor = extractor or self._build_extractor()

    def _build_extractor(self) -> CardExtractor:
        if self._strategy == "selector":
            return SelectorExtractor(zip_code=self._settings.target_zip_code)
        return BatchExtractor(
            LLMExtractor.from_settings(self._settings),
            batch_size=self._settings.batch_size,
            batch_delay=(self._settings.batch_delay_min, self._settings.batch_delay_max),
        )

    async def run(
        self,
        url: str | None = None,
        *,
        headless: bool | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ScrapeReport | None:
        """Scrape *url* (default: configured source) and return the filtered report."""
        settings = self._settings
        url = url or settings.source_url
        headless = settings.headless if headless is None else headless
        run_id = uuid.uuid4().hex[:12]
        started = time.monotonic()

        logger.info(
            "scrape started",
            extra={
                "run_id": run_id,
                "url": url,
                "strategy": self._strategy,
                "target_zip_code": settings.target_zip_code,
            },
        )
        await notify(on_progress, "started", {"run_id": run_id, "url": url})

        async with browser_session(
            headless,
            executable_path=settings.chromium_executable_path or None,
            launch_timeout_ms=settings.launch_timeout_ms,
        ) as session:
            await notify_step(on_progress, "loading", "Loading events page...")
            try:
                await reveal(session, url, timeout_ms=settings.navigation_timeout_ms)
            except NavigationError:
                logger.error("navigation failed", extra={"run_id": run_id, "url": url}, exc_info=True)
                await capture_screenshot(session, settings.screenshot_path)
                await notify(on_progress, "error", {"message": "Failed to load events page"})
                return None

            await notify_step(on_progress, "locating", "Looking for event cards...")
            try:
                elements = await locate(session)
            except PlaywrightError:
                logger.error("locating event cards failed", extra={"run_id": run_id, "url": url}, exc_info=True)
                await capture_screenshot(session, settings.screenshot_path)
                await notify(on_progress, "error", {"message": "Failed to read event cards"})
                return None
            if not elements:
                logger.error("no event cards found", extra={"run_id": run_id, "url": url})
                await capture_screenshot(session, settings.screenshot_path)
                await notify(on_progress, "error", {"message": "No event cards found"})
                return None

            await notify_step(
                on_progress, "extracting", f"Extracting {len(elements)} events..."
            )
            events = await self._extractor.extract_all(elements, on_progress=on_progress)

        predicate = zip_literal_predicate(settings.target_zip_code) if self._strategy == "selector" else has_zip_flag
        report = build_report(
            events,
            url,
            datetime.now(timezone.utc),
            target_zip_code=settings.target_zip_code,
            predicate=predicate,
        )

        logger.info(
            "scrape completed",
            extra={
                "run_id": run_id,
                "total_events": report.metadata.total_events_scraped,
                "matching_events": report.metadata.events_matching_filter,
                "failed_extractions": sum(1 for e in events if e.is_error),
                "elapsed_seconds": round(time.monotonic() - started, 1),
            },
        )
        await notify(
            on_progress,
            "result",
            {
                "total_events_scraped": report.metadata.total_events_scraped,
                "events_matching_filter": report.metadata.events_matching_filter,
            },
        )
        await notify(on_progress, "done", {})
        return report
