"""Filter extracted events by postal code and assemble the run report."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Sequence

from eventdigest.api.schemas import ExtractedEvent, ReportMetadata, ScrapeReport

logger = logging.getLogger(__name__)

EventPredicate = Callable[[ExtractedEvent], bool]


def has_zip_flag(event: ExtractedEvent) -> bool:
    return event.has_zip_code is True


def zip_literal_predicate(zip_code: str) -> EventPredicate:
    """Match events whose location or zip text contains *zip_code* verbatim."""

    def _matches(event: ExtractedEvent) -> bool:
        return zip_code in event.location or zip_code in event.zip_code

    return _matches


def build_report(
    events: Sequence[ExtractedEvent],
    source_url: str,
    scraped_at: datetime | None = None,
    *,
    target_zip_code: str = "",
    predicate: EventPredicate = has_zip_flag,
) -> ScrapeReport:
    """Keep the events that match *predicate*, in their original order."""
    matching = tuple(event for event in events if predicate(event))
    return ScrapeReport(
        metadata=ReportMetadata(
            total_events_scraped=len(events),
            events_matching_filter=len(matching),
            scraped_at=scraped_at or datetime.now(timezone.utc),
            source_url=source_url,
            target_zip_code=target_zip_code,
        ),
        events=matching,
    )


def save_report(report: ScrapeReport, path: str | Path) -> Path:
    """Write the report as camelCase JSON."""
    target = Path(path)
    payload = report.model_dump(mode="json", by_alias=True, exclude_none=True)
    target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(
        "report saved",
        extra={"path": str(target), "events": report.metadata.events_matching_filter},
    )
    return target
