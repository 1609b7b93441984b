"""Render the filtered events into the HTML digest email."""

from __future__ import annotations

import re
from datetime import date
from html import escape
from typing import Sequence

from eventdigest.api.schemas import ExtractedEvent, ScrapeReport

CARDS_PER_ROW = 3

DIGEST_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{title}</title>
<style>
  .event-date-color {{ color: #555555; }}
  @media screen and (max-width: 600px) {{
    .event-column {{ display: block !important; width: 100% !important; }}
    .responsive-image {{ width: 100% !important; height: auto !important; }}
  }}
</style>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif;">
<table border="0" cellpadding="0" cellspacing="0" width="100%">
  <tr>
    <td align="center" style="padding: 20px 0;">
      <table border="0" cellpadding="0" cellspacing="0" width="600">
        <tr>
          <td align="center" style="font-size: 24px; font-weight: bold; padding-bottom: 5px;">
            {heading}
          </td>
        </tr>
        <tr>
          <td align="center" style="font-size: 14px; padding-bottom: 20px;" class="event-date-color">
            {date_formatted}
          </td>
        </tr>
        <tr>
          <td>
            <table border="0" cellpadding="0" cellspacing="0" width="100%">
              {rows}
            </table>
          </td>
        </tr>
      </table>
    </td>
  </tr>
</table>
</body>
</html>
"""

EVENT_CARD_TEMPLATE = """\
<td align="center" valign="top" style="padding: 0 5px 20px 5px;" class="event-column">
  <table border="0" cellpadding="0" cellspacing="0" width="180" class="event-card">
    <tr>
      <td align="center" style="padding-bottom: 10px;">
        <a href="{link}" target="_blank">
          <img src="{image}" alt="{name}" width="180" height="223" style="display: block; border: 0; width:180px; height:223px;" class="responsive-image">
        </a>
      </td>
    </tr>
    <tr>
      <td align="center" style="font-size: 16px; font-weight: bold; padding-bottom: 5px;">
        <a href="{link}" target="_blank" style="color: #0066cc;">{name}</a>
      </td>
    </tr>
    <tr>
      <td align="center" style="font-size: 14px; padding-bottom: 10px;" class="event-date-color">
        {date}
      </td>
    </tr>
  </table>
</td>
"""

NO_EVENTS_ROW = """\
<tr><td align="center" style="font-size: 14px; padding: 20px;">No events found this time.</td></tr>
"""


def format_digest_date(today: date) -> str:
    """``October 19, 2026`` style."""
    return f"{today:%B} {today.day}, {today.year}"


def digest_subject(today: date | None = None) -> str:
    today = today or date.today()
    return f"Step Out Buffalo Events - {format_digest_date(today)}"


def render_event_card(event: ExtractedEvent) -> str:
    return EVENT_CARD_TEMPLATE.format(
        link=escape(event.detailed_page_link, quote=True),
        image=escape(event.image_url, quote=True),
        name=escape(event.event_name),
        date=escape(event.date),
    )


def _render_rows(events: Sequence[ExtractedEvent]) -> str:
    if not events:
        return NO_EVENTS_ROW
    rows = []
    for start in range(0, len(events), CARDS_PER_ROW):
        cells = "".join(render_event_card(e) for e in events[start : start + CARDS_PER_ROW])
        rows.append(f"<tr>{cells}</tr>")
    return "\n".join(rows)


def compact_html(html: str) -> str:
    """Normalize line endings, drop blank lines and whitespace between tags."""
    html = html.replace("\r\n", "\n")
    html = re.sub(r"\n\s*\n", "\n", html)
    html = re.sub(r">\s+<", "><", html)
    return html.strip()


def render_digest(
    report: ScrapeReport,
    *,
    max_events: int = 6,
    today: date | None = None,
) -> str:
    """Render the first *max_events* matching events as the digest email body."""
    today = today or date.today()
    date_formatted = format_digest_date(today)
    html = DIGEST_TEMPLATE.format(
        title=escape(digest_subject(today)),
        heading="Step Out Buffalo Events",
        date_formatted=date_formatted,
        rows=_render_rows(report.events[:max_events]),
    )
    return compact_html(html)
