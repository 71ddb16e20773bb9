import os

# Must be set before tourbot.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from tourbot.main import app
from tourbot.core.assistant import TourAssistant, get_assistant
from tourbot.core.nlu.vocabulary import VocabularyCache
from tourbot.core.sources.flights import FlightTable
from tourbot.core.travel.flights import FlightScheduler

# Monday 10 March 2025, 11:00 in Sydney
FIXED_NOW = datetime(2025, 3, 10, 0, 0, tzinfo=timezone.utc)

FLIGHTS_CSV = """airline,flight_number,departure_city,arrival_city,departure_time,arrival_time,departure_timezone,arrival_timezone,confirmation
Qantas,QF143,Sydney,Auckland,2025-03-15T09:00:00,2025-03-15T14:10:00,Australia/Sydney,Pacific/Auckland,ABC123
"Air New Zealand, Intl",NZ102,Auckland,Melbourne,2025-03-18T07:30:00,2025-03-18T09:45:00,Pacific/Auckland,Australia/Melbourne,"X""Y1"
Virgin,VA820,Melbourne,Sydney,2025-03-10T18:00:00,2025-03-10T19:25:00,,Australia/Sydney,
Jetstar,JQ1,Sydney,Melbourne,2025-03-01T08:00:00,2025-03-01T09:30:00,Australia/Sydney,Australia/Melbourne,OLD1
Rex,ZL1,Sydney,Dubbo,,,Australia/Sydney,,NODEP
"""


def make_shows():
    return [
        {
            "date": "2025-03-14",
            "venue_name": "Enmore Theatre",
            "city": "Sydney",
            "state": "NSW",
            "country": "Australia",
            "doors_time": "19:00",
            "show_time": "20:00",
            "soundcheck_time": "16:00",
            "load_in_time": "12:00",
            "ticket_status": "Sold out",
            "timezone": "AEDT",
        },
        {
            "date": "2025-03-19",
            "venue_name": "Forum",
            "city": "Melbourne",
            "state": "",
            "region": "VIC",
            "country": "Australia",
            "doors_time": "19:30",
            "show_time": "",
            "soundcheck_time": "",
            "ticket_status": "",
            "timezone": "AEDT",
        },
        {
            "date": "2025-03-01",
            "venue_name": "Fortitude Music Hall",
            "city": "Brisbane",
            "state": "QLD",
            "country": "Australia",
            "show_time": "20:00",
        },
    ]


class FakeShowSource:
    def __init__(self, shows=None):
        self.shows = list(shows or [])
        self.calls = 0

    async def get_shows(self, filters=None):
        self.calls += 1
        return [dict(show) for show in self.shows]


class FakeDefinitions:
    def __init__(self, definitions=None):
        self.definitions = dict(definitions or {})
        self.calls = []

    async def get_definition(self, term_id, locale=None):
        self.calls.append((term_id, locale))
        return self.definitions.get(term_id)


DEFINITIONS = {
    "rider": "The list of technical and hospitality requirements for the artist.",
    "advance": "Confirming show details with the venue ahead of the date.",
}


@pytest.fixture
def flights_csv(tmp_path):
    path = tmp_path / "travel_flights.csv"
    path.write_text(FLIGHTS_CSV, encoding="utf-8")
    return path


@pytest.fixture
def flight_table(flights_csv):
    return FlightTable(flights_csv, default_tz="Australia/Sydney")


@pytest.fixture
def vocabulary():
    cache = VocabularyCache()
    cache.replace(
        terms=["advance", "rider", "settlement"],
        cities=["sydney", "auckland", "melbourne"],
    )
    return cache


@pytest.fixture
def show_source():
    return FakeShowSource(make_shows())


@pytest.fixture
def definitions():
    return FakeDefinitions(DEFINITIONS)


@pytest.fixture
def assistant(vocabulary, show_source, definitions, flight_table):
    return TourAssistant(
        vocabulary=vocabulary,
        shows=show_source,
        definitions=definitions,
        scheduler=FlightScheduler(flight_table, user_tz="Australia/Sydney"),
        locale="en-AU",
        user_tz="Australia/Sydney",
        clock=lambda: FIXED_NOW,
    )


# Client
@pytest_asyncio.fixture(scope="function")
async def client(assistant):
    app.dependency_overrides[get_assistant] = lambda: assistant

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def fixed_now():
    return FIXED_NOW
