"""Find event card elements on the rendered page and capture their content."""

from __future__ import annotations

import logging
import re

from .browser import BrowserSession
from .models import RawCardElement

logger = logging.getLogger(__name__)

# Most specific first; the generic patterns catch template drift upstream.
CARD_SELECTORS: tuple[str, ...] = (
    '[class*="FourCol  cardBox"]',
    '[class*="cardBox"]',
    ".event-card",
    ".event-item",
)

_BACKGROUND_IMAGE_RE = re.compile(r"""background-image:\s*url\(['"]?([^'")\s]+)['"]?\)""")

# Runs in the page for one element. The background-image pattern mirrors
# _BACKGROUND_IMAGE_RE.
CAPTURE_SCRIPT = r"""
(element) => {
  const text = (el) => (el ? el.textContent.trim() : "");
  const first = (selectors) => {
    for (const sel of selectors) {
      const found = element.querySelector(sel);
      if (found && found.textContent.trim()) return found;
    }
    return null;
  };

  const imgTags = Array.from(element.querySelectorAll("img")).map((img) => ({
    type: "img",
    src: img.src,
    alt: img.alt || "",
    title: img.title || "",
  }));

  const backgrounds = [];
  for (const node of element.querySelectorAll("*")) {
    const style = node.getAttribute("style");
    if (!style || !style.includes("background-image")) continue;
    const match = style.match(/background-image:\s*url\(['"]?([^'")\s]+)['"]?\)/);
    if (match) {
      backgrounds.push({
        type: "background",
        src: match[1],
        className: typeof node.className === "string" ? node.className : "",
        element: node.tagName,
      });
    }
  }

  const link = element.querySelector("a[href]");
  const fields = {
    title: text(first(['[class*="title"]', "h2", "h3", "h4"])),
    date: text(first(['[class*="date"]', "time"])),
    location: text(first(['[class*="location"]', '[class*="venue"]', '[class*="address"]'])),
    area: text(first(['[class*="area"]', '[class*="neighborhood"]', '[class*="city"]'])),
    link: link ? link.href : "",
  };

  return {
    innerHTML: element.innerHTML,
    outerHTML: element.outerHTML,
    textContent: element.textContent.trim(),
    className: typeof element.className === "string" ? element.className : "",
    id: element.id,
    tagName: element.tagName,
    images: [...imgTags, ...backgrounds],
    fields,
  };
}
"""


def parse_background_image(style: str) -> str | None:
    """Return the URL from an inline ``background-image: url(...)`` declaration."""
    if not style:
        return None
    match = _BACKGROUND_IMAGE_RE.search(style)
    return match.group(1) if match else None


async def find_card_handles(session: BrowserSession) -> tuple[str | None, list]:
    """Try each selector in priority order and return the first non-empty match.

    Returns ``(selector, handles)``; ``(None, [])`` when nothing matched.
    """
    page = session.page
    for selector in CARD_SELECTORS:
        logger.debug("trying card selector", extra={"selector": selector})
        handles = await page.query_selector_all(selector)
        if handles:
            logger.info(
                "card elements found",
                extra={"selector": selector, "count": len(handles)},
            )
            return selector, handles
    return None, []


async def capture_card(session: BrowserSession, handle, index: int) -> RawCardElement:
    """Read HTML, text, attributes and image references from one card."""
    data = await session.page.evaluate(CAPTURE_SCRIPT, handle)
    card = RawCardElement.from_capture(index, handle, data or {})
    logger.debug(
        "card captured",
        extra={
            "index": index,
            "images": len(card.images),
            "background_images": sum(1 for img in card.images if img.kind == "background"),
        },
    )
    return card


async def locate(session: BrowserSession) -> list[RawCardElement]:
    """Return the captured card elements, or an empty list if no selector matched."""
    selector, handles = await find_card_handles(session)
    if not handles:
        logger.warning("no event elements found", extra={"selectors_tried": len(CARD_SELECTORS)})
        return []

    return [await capture_card(session, handle, i) for i, handle in enumerate(handles, start=1)]
