"""Fixtures — mock Redis job store, settings, card elements."""

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from eventdigest.cache.redis import JobStore
from eventdigest.config import Settings
from eventdigest.pipeline.scrape.models import RawCardElement


@pytest_asyncio.fixture
async def job_store():
    """JobStore backed by an in-memory FakeRedis instance."""
    client = FakeRedis(decode_responses=True)
    store = JobStore(client, default_ttl=3600)
    yield store
    await client.aclose()


@pytest.fixture
def settings() -> Settings:
    return Settings(  # type: ignore[call-arg]
        _env_file=None,
        openai_api_key="test-key",
        target_zip_code="14075",
        batch_delay_min=0.0,
        batch_delay_max=0.0,
        retry_base_delay=0.01,
        allowed_callback_hosts="hooks.example.com",
        screenshot_path="/tmp/eventdigest-test-screenshot.png",
    )


def _make_card(index: int, html: str | None = None, **fields: str) -> RawCardElement:
    outer = html or f'<div class="FourCol  cardBox">event {index}</div>'
    return RawCardElement(
        index=index,
        handle=None,
        inner_html=f"event {index}",
        outer_html=outer,
        text=f"event {index}",
        class_name="FourCol  cardBox",
        element_id="",
        tag_name="DIV",
        images=[],
        fields=dict(fields),
    )


@pytest.fixture
def make_card():
    """Factory for captured card elements: ``make_card(index, html=None, **fields)``."""
    return _make_card
