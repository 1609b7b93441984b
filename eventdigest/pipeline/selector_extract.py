"""LLM-free extraction from the field texts the locator captured.

Used when ``extraction_strategy`` is ``selector``. It depends on the
listing's current class names, so the LLM path stays the default.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from eventdigest.api.schemas import UNKNOWN, ExtractedEvent
from eventdigest.pipeline.scrape.models import RawCardElement

logger = logging.getLogger(__name__)

_ZIP_RE = re.compile(r"\b(\d{5})(?:-\d{4})?\b")


def find_zip_code(text: str, preferred: str = "") -> str | None:
    """Return *preferred* if it appears in *text*, else the first 5-digit zip."""
    codes = _ZIP_RE.findall(text or "")
    if preferred and preferred in codes:
        return preferred
    return codes[0] if codes else None


def card_to_event(card: RawCardElement, zip_code: str) -> ExtractedEvent:
    fields = card.fields
    location = fields.get("location") or UNKNOWN
    found_zip = find_zip_code(f"{location} {card.text}", preferred=zip_code)
    image = next((img.src for img in card.images), UNKNOWN)
    return ExtractedEvent(
        event_name=fields.get("title") or UNKNOWN,
        date=fields.get("date") or UNKNOWN,
        location=location,
        general_area=fields.get("area") or UNKNOWN,
        detailed_page_link=fields.get("link") or UNKNOWN,
        image_url=image,
        zip_code=found_zip or UNKNOWN,
        has_zip_code=found_zip == zip_code,
    )


class SelectorExtractor:
    """Builds events straight from captured card fields; no network calls."""

    def __init__(self, zip_code: str = "14075") -> None:
        self._zip_code = zip_code

    async def extract_all(self, elements: Sequence[RawCardElement], on_progress=None) -> list[ExtractedEvent]:
        events = [card_to_event(card, self._zip_code) for card in elements]
        logger.info(
            "selector extraction completed",
            extra={"events": len(events), "untitled": sum(1 for e in events if e.event_name == UNKNOWN)},
        )
        return events
