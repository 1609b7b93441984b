"""Digest email rendering tests."""

from datetime import date, datetime, timezone

from eventdigest.api.schemas import ExtractedEvent
from eventdigest.digest.render import compact_html, digest_subject, format_digest_date, render_digest
from eventdigest.pipeline.report import build_report

TODAY = date(2026, 10, 19)


def _report(n: int):
    events = [
        ExtractedEvent(
            event_name=f"Event {i}",
            date=f"Sat, Oct {i}",
            detailed_page_link=f"https://stepoutbuffalo.com/events/{i}",
            image_url=f"https://cdn.example.com/{i}.jpg",
            has_zip_code=True,
        )
        for i in range(1, n + 1)
    ]
    return build_report(events, "https://stepoutbuffalo.com/all-events/", datetime(2026, 10, 19, tzinfo=timezone.utc))


def test_format_digest_date():
    assert format_digest_date(date(2026, 3, 5)) == "March 5, 2026"


def test_digest_subject():
    assert digest_subject(TODAY) == "Step Out Buffalo Events - October 19, 2026"


def test_render_limits_events_and_rows():
    html = render_digest(_report(8), max_events=6, today=TODAY)

    assert "Event 6" in html
    assert "Event 7" not in html
    assert html.count('class="event-card"') == 6
    # two rows of three cards
    assert html.count("</td></tr><tr><td") >= 1
    assert "October 19, 2026" in html


def test_render_escapes_event_text():
    report = build_report(
        [ExtractedEvent(event_name="Rock & Roll <Live>", has_zip_code=True)],
        "u",
        datetime(2026, 10, 19, tzinfo=timezone.utc),
    )
    html = render_digest(report, today=TODAY)
    assert "Rock &amp; Roll &lt;Live&gt;" in html
    assert "<Live>" not in html


def test_render_empty_report():
    html = render_digest(_report(0), today=TODAY)
    assert "No events found this time." in html
    assert 'class="event-card"' not in html


def test_compact_html():
    assert compact_html("<p>\r\n\r\n  <b>x</b>\n\n</p>\n") == "<p><b>x</b></p>"
