"""Data models for the scrape submodule."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(frozen=True)
class CardImage:
    """An image reference discovered inside a card element."""

    kind: Literal["img", "background"]
    src: str
    alt: str = ""
    title: str = ""
    class_name: str = ""
    element: str = ""


@dataclass
class RawCardElement:
    """One matched card node plus the content captured from it.

    ``handle`` is the live Playwright ``ElementHandle`` and is only valid
    while the page that produced it is open.
    """

    index: int
    handle: Any = None
    inner_html: str = ""
    outer_html: str = ""
    text: str = ""
    class_name: str = ""
    element_id: str = ""
    tag_name: str = ""
    images: list[CardImage] = field(default_factory=list)
    fields: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_capture(cls, index: int, handle: Any, data: dict[str, Any]) -> RawCardElement:
        """Build from the dict returned by the in-page capture script."""
        images = [
            CardImage(
                kind="background" if img.get("type") == "background" else "img",
                src=img.get("src", ""),
                alt=img.get("alt", ""),
                title=img.get("title", ""),
                class_name=img.get("className", ""),
                element=img.get("element", ""),
            )
            for img in data.get("images", [])
            if img.get("src")
        ]
        return cls(
            index=index,
            handle=handle,
            inner_html=data.get("innerHTML", ""),
            outer_html=data.get("outerHTML", ""),
            text=data.get("textContent", ""),
            class_name=data.get("className", "") or "",
            element_id=data.get("id", "") or "",
            tag_name=data.get("tagName", ""),
            images=images,
            fields={k: v for k, v in (data.get("fields") or {}).items() if v},
        )
