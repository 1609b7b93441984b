"""Service layer — orchestrates scrape jobs for the API routes."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any, AsyncGenerator

import httpx

from eventdigest.api.schemas import JobRecord, ScrapeRequest
from eventdigest.cache.redis import JobStore
from eventdigest.config import Settings
from eventdigest.digest.buttondown import DeliveryError
from eventdigest.pipeline.engine import ScrapeEngine
from eventdigest.pipeline.tasks import deliver_digest, run_background_scrape

logger = logging.getLogger(__name__)

# Keep references so fire-and-forget tasks are not garbage collected mid-run.
_background_tasks: set[asyncio.Task] = set()


def _generate_job_id() -> str:
    return uuid.uuid4().hex[:12]


async def start_background_scrape(
    engine: ScrapeEngine,
    store: JobStore,
    settings: Settings,
    body: ScrapeRequest,
) -> dict[str, str]:
    """Record a new job, launch the scrape in the background, return the acceptance payload."""
    job_id = _generate_job_id()
    await store.start(job_id)
    logger.info(
        "background scrape started",
        extra={"job_id": job_id, "webhook": bool(body.webhook_url), "send_email": body.send_email},
    )

    task = asyncio.create_task(
        run_background_scrape(
            engine=engine,
            store=store,
            settings=settings,
            job_id=job_id,
            webhook_url=body.webhook_url,
            send_email=body.send_email,
        )
    )
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    return {
        "job_id": job_id,
        "status": "processing",
        "message": "Scraping job started",
        "check_status_url": f"/scrape/{job_id}",
    }


async def stream_scrape(
    engine: ScrapeEngine,
    store: JobStore,
    settings: Settings,
    body: ScrapeRequest,
) -> AsyncGenerator[dict[str, str], None]:
    """Yield SSE-formatted progress events while a scrape runs.

    The scrape keeps running if the client disconnects, so the job record
    still gets its result.
    """
    job_id = _generate_job_id()
    await store.start(job_id)
    logger.info("streaming scrape started", extra={"job_id": job_id})

    queue: asyncio.Queue[tuple[str, dict[str, Any]] | None] = asyncio.Queue()

    async def on_progress(event: str, data: dict[str, Any]) -> None:
        await queue.put((event, {"job_id": job_id, **data}))

    async def run_and_signal_done() -> None:
        try:
            try:
                report = await engine.run(on_progress=on_progress)
            except Exception as exc:
                logger.exception("streaming scrape failed", extra={"job_id": job_id})
                await store.fail(job_id, str(exc) or type(exc).__name__)
                await queue.put(("error", {"job_id": job_id, "message": "Scrape failed"}))
                return

            await store.complete(job_id, report)
            logger.info("streaming scrape completed", extra={"job_id": job_id})

            # A failed email does not undo a completed scrape.
            if body.send_email and report is not None:
                try:
                    await deliver_digest(report, settings)
                except (DeliveryError, httpx.HTTPError):
                    logger.warning("digest delivery failed", extra={"job_id": job_id}, exc_info=True)
        finally:
            await queue.put(None)  # sentinel

    task = asyncio.create_task(run_and_signal_done())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    while True:
        item = await queue.get()
        if item is None:
            break
        event, data = item
        yield {"event": event, "data": json.dumps(data)}


async def get_job(store: JobStore, job_id: str) -> JobRecord | None:
    return await store.get(job_id)
