"""Progress notifications emitted while a scrape runs (SSE stream, CLI log)."""

from __future__ import annotations

import logging
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


async def notify(
    on_progress: ProgressCallback | None,
    event: str,
    data: dict[str, Any] | None = None,
) -> None:
    """Send *event* to the callback, if one was given."""
    if on_progress is None:
        return
    logger.debug("progress event", extra={"event": event})
    await on_progress(event, data or {})


async def notify_step(on_progress: ProgressCallback | None, step: str, message: str) -> None:
    """Shorthand for the ``status`` event that marks a pipeline stage."""
    await notify(on_progress, "status", {"step": step, "message": message})
