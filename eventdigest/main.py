"""FastAPI app entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from eventdigest.api.routes import router
from eventdigest.cache.redis import JobStore, create_redis_client
from eventdigest.config import get_settings
from eventdigest.logging_config import setup_logging
from eventdigest.pipeline.engine import ScrapeEngine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    setup_logging(settings.log_level)
    logger.info("starting event digest service")

    redis_client = await create_redis_client(settings.redis_url)

    app.state.settings = settings
    app.state.store = JobStore(redis_client, default_ttl=settings.result_ttl_seconds)
    app.state.engine = ScrapeEngine(settings)

    logger.info(
        "event digest service ready",
        extra={
            "source_url": settings.source_url,
            "target_zip_code": settings.target_zip_code,
            "extraction_strategy": settings.extraction_strategy,
            "llm_model": settings.llm_model,
        },
    )

    yield

    logger.info("shutting down event digest service")
    await redis_client.aclose()


app = FastAPI(title="Event Digest Service", lifespan=lifespan)
app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok"}
