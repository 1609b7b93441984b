"""HTTP endpoint tests."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from eventdigest.api.routes import router
from eventdigest.api.schemas import ExtractedEvent, JobRecord, ReportMetadata, ScrapeReport, ScrapeRequest
from eventdigest.api.service import stream_scrape
from eventdigest.digest.buttondown import DeliveryError
from eventdigest.main import health

STARTED = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def _report() -> ScrapeReport:
    return ScrapeReport(
        metadata=ReportMetadata(
            total_events_scraped=4,
            events_matching_filter=1,
            scraped_at=STARTED,
            source_url="https://stepoutbuffalo.com/all-events/",
            target_zip_code="14075",
        ),
        events=(ExtractedEvent(event_name="Fall Fest", has_zip_code=True),),
    )


def _make_app(settings, store) -> FastAPI:
    app = FastAPI()
    app.include_router(router)
    app.add_api_route("/health", health)
    app.state.settings = settings
    app.state.store = store
    app.state.engine = MagicMock()
    return app


@pytest.fixture
def store() -> MagicMock:
    store = MagicMock()
    store.get = AsyncMock(return_value=None)
    store.start = AsyncMock()
    store.complete = AsyncMock()
    store.fail = AsyncMock()
    return store


@pytest.fixture
def client(settings, store) -> TestClient:
    return TestClient(_make_app(settings, store))


class TestScrapeEndpoints:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    @patch("eventdigest.api.service.run_background_scrape", new_callable=AsyncMock)
    def test_start_background_job(self, mock_run, client: TestClient, store) -> None:
        resp = client.post("/scrape", json={"webhook_url": "https://hooks.example.com/done"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "processing"
        assert body["check_status_url"] == f"/scrape/{body['job_id']}"
        assert len(body["job_id"]) == 12
        store.start.assert_awaited_once_with(body["job_id"])

    def test_webhook_host_not_allowed(self, client: TestClient, store) -> None:
        resp = client.post("/scrape", json={"webhook_url": "https://evil.com/steal"})
        assert resp.status_code == 422
        store.start.assert_not_awaited()

    def test_invalid_mode(self, client: TestClient) -> None:
        resp = client.post("/scrape", json={"mode": "later"})
        assert resp.status_code == 422

    def test_status_not_found(self, client: TestClient) -> None:
        assert client.get("/scrape/missing").status_code == 404

    def test_status_excludes_report(self, client: TestClient, store) -> None:
        store.get.return_value = JobRecord(job_id="abc", status="completed", started_at=STARTED, report=_report())

        resp = client.get("/scrape/abc")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "completed"
        assert "report" not in body

    def test_result_while_processing(self, client: TestClient, store) -> None:
        store.get.return_value = JobRecord(job_id="abc", status="processing", started_at=STARTED)
        assert client.get("/scrape/abc/result").status_code == 409

    def test_result_completed(self, client: TestClient, store) -> None:
        store.get.return_value = JobRecord(job_id="abc", status="completed", started_at=STARTED, report=_report())

        resp = client.get("/scrape/abc/result")

        assert resp.status_code == 200
        body = resp.json()
        assert body["metadata"]["eventsMatchingFilter"] == 1
        assert body["events"][0]["eventName"] == "Fall Fest"

    def test_result_completed_without_events(self, client: TestClient, store) -> None:
        store.get.return_value = JobRecord(job_id="abc", status="completed", started_at=STARTED)
        assert client.get("/scrape/abc/result").status_code == 404


@pytest.mark.asyncio
async def test_stream_scrape_yields_progress_then_finishes(job_store, settings):
    async def fake_run(on_progress=None):
        await on_progress("status", {"step": "loading", "message": "Loading events page..."})
        await on_progress("done", {})
        return _report()

    engine = MagicMock()
    engine.run = AsyncMock(side_effect=fake_run)

    events = [item async for item in stream_scrape(engine, job_store, settings, ScrapeRequest(mode="stream"))]

    assert [e["event"] for e in events] == ["status", "done"]
    data = json.loads(events[0]["data"])
    assert data["step"] == "loading"
    job_id = data["job_id"]
    record = await job_store.get(job_id)
    assert record.status == "completed"
    assert record.report == _report()


@pytest.mark.asyncio
async def test_stream_scrape_reports_failure(job_store, settings):
    engine = MagicMock()
    engine.run = AsyncMock(side_effect=RuntimeError("browser crashed"))

    events = [item async for item in stream_scrape(engine, job_store, settings, ScrapeRequest(mode="stream"))]

    assert [e["event"] for e in events] == ["error"]
    job_id = json.loads(events[0]["data"])["job_id"]
    record = await job_store.get(job_id)
    assert record.status == "failed"
    assert record.error == "browser crashed"


@pytest.mark.asyncio
@patch("eventdigest.api.service.deliver_digest", new_callable=AsyncMock)
async def test_stream_scrape_email_failure_keeps_job_completed(mock_deliver, job_store, settings):
    async def fake_run(on_progress=None):
        await on_progress("done", {})
        return _report()

    engine = MagicMock()
    engine.run = AsyncMock(side_effect=fake_run)
    mock_deliver.side_effect = DeliveryError("Buttondown API error")

    body = ScrapeRequest(mode="stream", send_email=True)
    events = [item async for item in stream_scrape(engine, job_store, settings, body)]

    assert [e["event"] for e in events] == ["done"]
    mock_deliver.assert_awaited_once()
    record = await job_store.get(json.loads(events[0]["data"])["job_id"])
    assert record.status == "completed"
    assert record.report == _report()
