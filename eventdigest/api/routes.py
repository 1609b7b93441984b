"""POST /scrape, GET /scrape/{job_id}, GET /scrape/{job_id}/result endpoint handlers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from eventdigest.api.schemas import JobRecord, ScrapeRequest
from eventdigest.api.service import get_job, start_background_scrape, stream_scrape
from eventdigest.cache.redis import JobStore
from eventdigest.config import Settings
from eventdigest.pipeline.engine import ScrapeEngine
from eventdigest.pipeline.tasks import validate_webhook_url

router = APIRouter()


def _get_engine(request: Request) -> ScrapeEngine:
    return request.app.state.engine


def _get_store(request: Request) -> JobStore:
    return request.app.state.store


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.post("/scrape")
async def create_scrape(
    body: ScrapeRequest,
    engine: ScrapeEngine = Depends(_get_engine),
    store: JobStore = Depends(_get_store),
    settings: Settings = Depends(_get_settings),
):
    if body.webhook_url and not validate_webhook_url(body.webhook_url, settings.allowed_callback_hosts):
        raise HTTPException(
            status_code=422,
            detail="webhook_url host not in ALLOWED_CALLBACK_HOSTS",
        )

    if body.mode == "stream":
        return EventSourceResponse(stream_scrape(engine, store, settings, body))

    return await start_background_scrape(engine, store, settings, body)


async def _require_job(job_id: str, store: JobStore) -> JobRecord:
    record = await get_job(store, job_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return record


@router.get("/scrape/{job_id}")
async def get_scrape_status(job_id: str, store: JobStore = Depends(_get_store)):
    record = await _require_job(job_id, store)
    return record.model_dump(mode="json", by_alias=True, exclude={"report"})


@router.get("/scrape/{job_id}/result")
async def get_scrape_result(job_id: str, store: JobStore = Depends(_get_store)):
    record = await _require_job(job_id, store)
    if record.status != "completed":
        raise HTTPException(status_code=409, detail=f"Job not completed (status: {record.status})")
    if record.report is None:
        raise HTTPException(status_code=404, detail="Job completed without events")
    return record.report.model_dump(mode="json", by_alias=True, exclude_none=True)
