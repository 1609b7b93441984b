"""Fan-out/fan-in extraction over card elements in fixed-size batches."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

from eventdigest.api.schemas import ExtractedEvent
from eventdigest.pipeline.extract import error_event
from eventdigest.pipeline.progress import ProgressCallback, notify
from eventdigest.pipeline.scrape.delays import random_delay
from eventdigest.pipeline.scrape.models import RawCardElement

logger = logging.getLogger(__name__)


class EventExtractor(Protocol):
    """Anything that can turn one HTML fragment into an event record."""

    async def extract_one(self, html_fragment: str, ordinal: int) -> ExtractedEvent: ...


def partition(items: Sequence, size: int) -> list[Sequence]:
    """Split *items* into contiguous chunks of at most *size*."""
    if size < 1:
        raise ValueError(f"batch size must be positive, got {size}")
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchExtractor:
    """Runs at most ``batch_size`` extractions at once, pausing between batches."""

    def __init__(
        self,
        extractor: EventExtractor,
        *,
        batch_size: int = 30,
        batch_delay: tuple[float, float] = (0.5, 1.0),
    ) -> None:
        self._extractor = extractor
        self._batch_size = batch_size
        self._batch_delay = batch_delay

    async def _extract_guarded(self, element: RawCardElement, ordinal: int) -> ExtractedEvent:
        try:
            return await self._extractor.extract_one(element.outer_html, ordinal)
        except Exception as exc:
            logger.warning("extractor raised, recording error event", extra={"ordinal": ordinal}, exc_info=True)
            return error_event(str(exc) or type(exc).__name__)

    async def extract_all(
        self,
        elements: Sequence[RawCardElement],
        on_progress: ProgressCallback | None = None,
    ) -> list[ExtractedEvent]:
        """Extract every element; ``result[i]`` always belongs to ``elements[i]``."""
        batches = partition(elements, self._batch_size)
        results: list[ExtractedEvent] = []

        for number, batch in enumerate(batches, start=1):
            offset = len(results)
            logger.info(
                "processing batch",
                extra={
                    "batch": number,
                    "total_batches": len(batches),
                    "first": offset + 1,
                    "last": offset + len(batch),
                },
            )
            batch_results = await asyncio.gather(
                *(
                    self._extract_guarded(element, offset + i + 1)
                    for i, element in enumerate(batch)
                )
            )
            results.extend(batch_results)

            failed = sum(1 for event in batch_results if event.is_error)
            logger.info(
                "batch completed",
                extra={"batch": number, "processed": len(batch_results), "failed": failed},
            )
            await notify(
                on_progress,
                "batch",
                {
                    "batch": number,
                    "total_batches": len(batches),
                    "processed": len(results),
                    "total": len(elements),
                },
            )

            if number < len(batches):
                await random_delay(*self._batch_delay)

        return results
