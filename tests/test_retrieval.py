import pytest

from tourbot.core import schemas
from tourbot.core.nlu.responses import FALLBACKS, render
from tourbot.core.nlu.retrieval import format_place


async def _retrieve(assistant, message):
    return await assistant.retrieval.retrieve(assistant.parser.parse(message))


# =========================
# Retrieval
# =========================
@pytest.mark.asyncio
async def test_contextual_time(assistant):
    result = await _retrieve(assistant, "What time is soundcheck in Sydney?")
    assert result == schemas.ContextualTerm(
        term="soundcheck", city="sydney", field="soundcheck_time", value="16:00"
    )
    assert render(result) == "The soundcheck for the show in sydney is at 16:00."


@pytest.mark.asyncio
async def test_contextual_location(assistant):
    result = await _retrieve(assistant, "Where is the venue in Sydney?")
    assert isinstance(result, schemas.ContextualLocation)
    assert result.field == "venue_name"
    assert result.place == "Enmore Theatre, Sydney, NSW, Australia"
    assert render(result) == (
        "The venue for the show in sydney is at Enmore Theatre, Sydney, NSW, Australia."
    )


@pytest.mark.asyncio
async def test_location_uses_region_when_state_blank(assistant):
    result = await _retrieve(assistant, "where is the venue in melbourne")
    assert result.place == "Forum, Melbourne, VIC, Australia"


@pytest.mark.asyncio
async def test_flight_mention_wins(assistant):
    """A known city is still only the destination once flights are mentioned"""
    result = await _retrieve(assistant, "any flights to auckland")
    assert isinstance(result, schemas.TravelSchedule)
    assert result.text.startswith("I found 1 flight:")
    assert "QF143" in result.text


@pytest.mark.asyncio
async def test_flight_without_city(assistant):
    result = await _retrieve(assistant, "flight")
    assert result.text.startswith("I found 3 flights:")


@pytest.mark.asyncio
async def test_generic_term(assistant, definitions):
    result = await _retrieve(assistant, "What is the rider?")
    assert result == schemas.GenericTerm(
        term="rider",
        definition="The list of technical and hospitality requirements for the artist.",
    )
    assert definitions.calls == [("rider", "en-AU")]


@pytest.mark.asyncio
async def test_city_without_show_falls_back_to_definition(assistant):
    result = await _retrieve(assistant, "what is the rider in auckland")
    assert isinstance(result, schemas.GenericTerm)
    assert result.term == "rider"


@pytest.mark.asyncio
async def test_known_term_without_definition(assistant):
    assert await _retrieve(assistant, "settlement") is None


@pytest.mark.asyncio
async def test_nothing_found(assistant, show_source):
    assert await _retrieve(assistant, "hello there") is None
    assert await assistant.retrieval.retrieve(None) is None
    assert await assistant.retrieval.retrieve(schemas.ParsedQuery()) is None
    assert show_source.calls == 0


@pytest.mark.asyncio
async def test_same_query_same_result(assistant):
    first = await _retrieve(assistant, "What time is soundcheck in Sydney?")
    second = await _retrieve(assistant, "What time is soundcheck in Sydney?")
    assert first == second


def test_format_place_skips_blanks():
    assert format_place({"venue_name": "", "city": "Sydney", "country": "Australia"}) == (
        "Sydney, Australia"
    )
    assert format_place({}) == ""


# =========================
# Rendering
# =========================
def test_render_value_without_time():
    result = schemas.ContextualTerm(
        term="ticket", city="sydney", field="ticket_status", value="Sold out"
    )
    assert render(result) == "The ticket for the show in sydney is Sold out."


def test_render_generic():
    result = schemas.GenericTerm(term="advance", definition="Confirming details.")
    assert render(result) == "The official definition for advance is: Confirming details."


def test_render_travel_text():
    assert render(schemas.TravelSchedule(text="I found 0 flights.")) == "I found 0 flights."


def test_render_fallbacks():
    assert render(None) in FALLBACKS
    assert render(schemas.TravelSchedule(text="")) in FALLBACKS
