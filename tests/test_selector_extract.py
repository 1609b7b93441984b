"""Selector-based extraction tests."""

import pytest

from eventdigest.api.schemas import UNKNOWN
from eventdigest.pipeline.scrape.models import CardImage
from eventdigest.pipeline.selector_extract import SelectorExtractor, card_to_event, find_zip_code


def test_find_zip_code_prefers_target():
    assert find_zip_code("Buffalo 14201 or Hamburg 14075", preferred="14075") == "14075"


def test_find_zip_code_first_otherwise():
    assert find_zip_code("Buffalo, NY 14201-1234", preferred="14075") == "14201"
    assert find_zip_code("no digits here") is None


def test_card_to_event_maps_fields(make_card):
    card = make_card(
        1,
        title="Pumpkin Patch",
        date="Sat, Oct 24",
        location="123 Farm Rd, Hamburg, NY 14075",
        area="Southtowns",
        link="https://stepoutbuffalo.com/events/pumpkin",
    )
    card.images = [CardImage(kind="background", src="https://cdn.example.com/p.jpg")]

    event = card_to_event(card, "14075")

    assert event.event_name == "Pumpkin Patch"
    assert event.general_area == "Southtowns"
    assert event.image_url == "https://cdn.example.com/p.jpg"
    assert event.zip_code == "14075"
    assert event.has_zip_code is True


def test_card_to_event_missing_fields(make_card):
    event = card_to_event(make_card(2), "14075")
    assert event.event_name == UNKNOWN
    assert event.location == UNKNOWN
    assert event.image_url == UNKNOWN
    assert event.has_zip_code is False


@pytest.mark.asyncio
async def test_extract_all_preserves_order(make_card):
    cards = [make_card(i, title=f"Event {i}") for i in range(1, 4)]
    events = await SelectorExtractor(zip_code="14075").extract_all(cards)
    assert [e.event_name for e in events] == ["Event 1", "Event 2", "Event 3"]
