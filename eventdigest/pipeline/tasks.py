"""Background scrape runner: job bookkeeping, digest delivery, webhook notification."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import httpx

from eventdigest.api.schemas import ScrapeReport
from eventdigest.cache.redis import JobStore
from eventdigest.config import Settings
from eventdigest.digest.buttondown import ButtondownClient, DeliveryError, DeliveryResult
from eventdigest.digest.render import digest_subject, render_digest
from eventdigest.pipeline.engine import ScrapeEngine
from eventdigest.pipeline.retry import RetryConfig, retry_with_backoff

logger = logging.getLogger(__name__)

WEBHOOK_RETRY = RetryConfig()

_VALID_SCHEMES = {"http", "https"}

_NETWORK_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.WriteTimeout,
    httpx.PoolTimeout,
)


def validate_webhook_url(url: str, allowed_hosts: str) -> bool:
    """Accept only http(s) URLs without credentials whose host is allow-listed."""
    if not allowed_hosts:
        return False

    parsed = urlparse(url)
    if parsed.scheme not in _VALID_SCHEMES:
        return False
    if parsed.username or parsed.password:
        return False
    hostname = parsed.hostname
    if not hostname:
        return False

    allowed = {h.strip().lower() for h in allowed_hosts.split(",") if h.strip()}
    return hostname.lower() in allowed


def _is_network_error(exc: BaseException) -> bool:
    return isinstance(exc, _NETWORK_ERRORS)


async def post_webhook(url: str, payload: dict, retry_config: RetryConfig = WEBHOOK_RETRY) -> bool:
    """POST *payload* to the webhook, retrying network errors only.

    Returns ``False`` instead of raising; a broken webhook must not fail the job.
    """

    async def _post() -> None:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.post(url, json=payload)
            resp.raise_for_status()

    try:
        await retry_with_backoff(_post, retry_config, _is_network_error, label=f"webhook POST to {url}")
    except Exception:
        logger.warning("webhook notification failed", extra={"url": url}, exc_info=True)
        return False
    return True


async def deliver_digest(report: ScrapeReport, settings: Settings) -> DeliveryResult | None:
    """Render and email the digest; ``None`` when Buttondown is not configured."""
    client = ButtondownClient(
        api_key=settings.buttondown_api_key,
        recipient=settings.digest_recipient,
        api_url=settings.buttondown_api_url,
    )
    if not client.configured:
        logger.info("digest email skipped, buttondown not configured")
        return None
    html = render_digest(report, max_events=settings.digest_max_events)
    return await client.send_email(digest_subject(), html)


async def run_background_scrape(
    engine: ScrapeEngine,
    store: JobStore,
    settings: Settings,
    job_id: str,
    webhook_url: str | None = None,
    send_email: bool = False,
) -> None:
    """Run a scrape for *job_id*, record the outcome and notify the webhook."""
    try:
        report = await engine.run()
    except Exception as exc:
        logger.exception("background scrape failed", extra={"job_id": job_id})
        await store.fail(job_id, str(exc) or type(exc).__name__)
        if webhook_url:
            await post_webhook(webhook_url, {"job_id": job_id, "status": "failed", "error": str(exc)})
        return

    await store.complete(job_id, report)
    logger.info("background scrape completed", extra={"job_id": job_id, "has_report": report is not None})

    if send_email and report is not None:
        try:
            await deliver_digest(report, settings)
        except (DeliveryError, httpx.HTTPError):
            logger.warning("digest delivery failed", extra={"job_id": job_id}, exc_info=True)

    if webhook_url:
        await post_webhook(
            webhook_url,
            {
                "job_id": job_id,
                "status": "completed",
                "result_url": f"/scrape/{job_id}/result",
                "result": report.model_dump(mode="json", by_alias=True, exclude_none=True) if report else None,
            },
        )
