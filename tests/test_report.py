"""Report building and filtering tests."""

import json
from datetime import datetime, timezone

from eventdigest.api.schemas import ExtractedEvent
from eventdigest.pipeline.extract import error_event
from eventdigest.pipeline.report import build_report, has_zip_flag, save_report, zip_literal_predicate

SCRAPED_AT = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _event(name: str, flag: bool, location: str = "Buffalo, NY") -> ExtractedEvent:
    return ExtractedEvent(event_name=name, location=location, has_zip_code=flag)


def test_filter_keeps_flagged_events_in_order():
    events = [
        _event("a", True),
        _event("b", False),
        error_event("failed"),
        _event("c", True),
        _event("d", False),
    ]

    report = build_report(events, "https://stepoutbuffalo.com/all-events/", SCRAPED_AT, target_zip_code="14075")

    assert [e.event_name for e in report.events] == ["a", "c"]
    assert report.metadata.total_events_scraped == 5
    assert report.metadata.events_matching_filter == 2
    assert report.metadata.scraped_at == SCRAPED_AT
    assert report.metadata.source_url == "https://stepoutbuffalo.com/all-events/"


def test_error_events_never_match():
    assert not has_zip_flag(error_event("x"))


def test_empty_events():
    report = build_report([], "https://example.com", SCRAPED_AT)
    assert report.events == ()
    assert report.metadata.total_events_scraped == 0
    assert report.metadata.events_matching_filter == 0


def test_scraped_at_defaults_to_now():
    before = datetime.now(timezone.utc)
    report = build_report([], "https://example.com")
    assert report.metadata.scraped_at >= before


def test_zip_literal_predicate():
    match = zip_literal_predicate("14075")
    assert match(_event("x", False, location="S-3580 Lakeshore Rd, Hamburg, NY 14075"))
    assert match(ExtractedEvent(event_name="y", zip_code="14075"))
    assert not match(_event("z", True, location="Buffalo, NY 14201"))


def test_custom_predicate():
    events = [_event("a", True), _event("b", False, location="Hamburg 14075")]
    report = build_report(events, "u", SCRAPED_AT, predicate=zip_literal_predicate("14075"))
    assert [e.event_name for e in report.events] == ["b"]


def test_save_report_writes_camel_case_json(tmp_path):
    report = build_report([_event("Fall Fest", True)], "https://example.com", SCRAPED_AT, target_zip_code="14075")

    path = save_report(report, tmp_path / "events.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["metadata"] == {
        "totalEventsScraped": 1,
        "eventsMatchingFilter": 1,
        "scrapedAt": "2026-10-19T12:00:00Z",
        "sourceUrl": "https://example.com",
        "targetZipCode": "14075",
    }
    assert data["events"][0]["eventName"] == "Fall Fest"
    assert data["events"][0]["hasZipCode"] is True
    assert "error" not in data["events"][0]
