"""Redis-backed job records — status and report of HTTP-triggered runs, with TTL."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from urllib.parse import urlsplit, urlunsplit

import redis.asyncio as redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from eventdigest.api.schemas import JobRecord, ScrapeReport

logger = logging.getLogger(__name__)

KEY_PREFIX = "scrape-job:"


class JobStore:
    """Thin async wrapper around Redis for tracking scrape jobs.

    Records expire after the TTL, so finished jobs clean themselves up.
    """

    def __init__(self, client: redis.Redis, default_ttl: int = 86400) -> None:
        self._client = client
        self._default_ttl = default_ttl

    async def get(self, job_id: str) -> JobRecord | None:
        """Return the job record, or ``None`` on miss / error."""
        try:
            raw = await self._client.get(f"{KEY_PREFIX}{job_id}")
            if raw is None:
                logger.debug("job miss", extra={"job_id": job_id})
                return None
            return JobRecord.model_validate_json(raw)
        except redis.RedisError:
            logger.warning("job get failed", extra={"job_id": job_id}, exc_info=True)
            return None

    async def put(self, record: JobRecord, ttl: int | None = None) -> bool:
        """Store *record* with a TTL. Returns ``False`` on error."""
        effective_ttl = ttl if ttl is not None else self._default_ttl
        try:
            await self._client.set(
                f"{KEY_PREFIX}{record.job_id}",
                record.model_dump_json(),
                ex=effective_ttl,
            )
            logger.debug(
                "job stored",
                extra={"job_id": record.job_id, "status": record.status, "ttl": effective_ttl},
            )
            return True
        except redis.RedisError:
            logger.warning("job put failed", extra={"job_id": record.job_id}, exc_info=True)
            return False

    async def start(self, job_id: str) -> JobRecord:
        record = JobRecord(job_id=job_id, status="processing", started_at=datetime.now(timezone.utc))
        await self.put(record)
        return record

    async def complete(self, job_id: str, report: ScrapeReport | None) -> JobRecord:
        """Mark the job completed; a ``None`` report means the page had no usable events."""
        record = await self.get(job_id) or JobRecord(job_id=job_id, started_at=datetime.now(timezone.utc))
        record = record.model_copy(
            update={"status": "completed", "completed_at": datetime.now(timezone.utc), "report": report}
        )
        await self.put(record)
        return record

    async def fail(self, job_id: str, error: str) -> JobRecord:
        record = await self.get(job_id) or JobRecord(job_id=job_id, started_at=datetime.now(timezone.utc))
        record = record.model_copy(
            update={"status": "failed", "failed_at": datetime.now(timezone.utc), "error": error}
        )
        await self.put(record)
        return record


def redact_redis_url(redis_url: str) -> str:
    """Return *redis_url* with any password replaced by ``***``."""
    parts = urlsplit(redis_url)
    if parts.password is None:
        return redis_url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    user = parts.username or ""
    return urlunsplit(parts._replace(netloc=f"{user}:***@{host}"))


async def create_redis_client(redis_url: str, *, timeout: float = 5.0, retries: int = 3) -> redis.Redis:
    """Connect lazily to the job store; transient connection errors are retried with backoff."""
    logger.info("connecting to job store", extra={"redis_url": redact_redis_url(redis_url), "retries": retries})
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=timeout,
        socket_timeout=timeout,
        health_check_interval=30,
        retry=Retry(ExponentialBackoff(), retries=retries),
        retry_on_error=[redis.ConnectionError, redis.TimeoutError],
    )
