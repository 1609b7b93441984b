"""Command-line run: scrape once, save the report, email the digest."""

import asyncio
import logging
import sys

import httpx

from eventdigest.config import get_settings
from eventdigest.digest.buttondown import DeliveryError
from eventdigest.logging_config import setup_logging
from eventdigest.pipeline.engine import ScrapeEngine
from eventdigest.pipeline.errors import ScrapeError
from eventdigest.pipeline.report import save_report
from eventdigest.pipeline.tasks import deliver_digest

logger = logging.getLogger(__name__)

USAGE = "Usage: python -m eventdigest.cli [--headful] [--no-email] [--output PATH]"


def _option_value(argv: list[str], flag: str) -> str | None:
    if flag not in argv:
        return None
    position = argv.index(flag)
    if position + 1 >= len(argv):
        print(USAGE)
        sys.exit(2)
    return argv[position + 1]


async def main() -> None:
    argv = sys.argv[1:]
    if "-h" in argv or "--help" in argv:
        print(USAGE)
        return

    settings = get_settings()
    setup_logging(settings.log_level, stream=sys.stderr)

    headless = "--headful" not in argv
    send_email = "--no-email" not in argv
    output = _option_value(argv, "--output") or settings.report_output_path

    engine = ScrapeEngine(settings)
    try:
        report = await engine.run(headless=headless)
    except ScrapeError:
        logger.exception("scrape aborted")
        sys.exit(1)

    if report is None:
        print("No events scraped; see the debug screenshot at", settings.screenshot_path)
        sys.exit(1)

    path = save_report(report, output)
    meta = report.metadata
    print(f"Scraped {meta.total_events_scraped} events, {meta.events_matching_filter} in {meta.target_zip_code}")
    print(f"Report written to {path}")

    if not send_email:
        return
    try:
        result = await deliver_digest(report, settings)
    except (DeliveryError, httpx.HTTPError):
        logger.exception("digest delivery failed")
        sys.exit(1)
    if result is not None:
        print(f"Digest email: {result.message}")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
