# tourbot/core/travel/flights.py
"""
FLIGHT SCHEDULER - Upcoming flights, filtered and formatted

Data Flow:
    FlightTable.load() → upcoming_flights() → format_flights() → reply text

upcoming_flights() is pure: it takes the rows, the filters and "now", so
tests can pin the clock. Each call starts again from the rows it is given.
"""

import logging
import time
from typing import List, Optional, Sequence

from tourbot.core import schemas
from tourbot.core.sources.flights import FlightTable
from tourbot.core.travel import timezones

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
NO_FLIGHTS_TEXT = "I found 0 flights."


def now_epoch_ms() -> int:
    return int(time.time() * 1000)


def attach_departure_instants(
    records: Sequence[schemas.FlightRecord],
) -> List[schemas.FlightRecord]:
    """Copy each record with departure_epoch_ms filled in; unreadable rows are dropped."""
    timed = []
    for record in records:
        try:
            epoch_ms = timezones.to_epoch_ms(record.departure_time, record.departure_timezone)
        except ValueError as e:
            logger.warning(
                f"Dropping flight {record.airline} {record.flight_number}: {e}"
            )
            continue
        timed.append(record.model_copy(update={"departure_epoch_ms": epoch_ms}))
    return timed


def _same_city(value: str, wanted: str) -> bool:
    return (value or "").lower() == wanted.lower()


def apply_city_filter(
    records: List[schemas.FlightRecord], filters: schemas.FlightFilters
) -> List[schemas.FlightRecord]:
    # Only one direction applies: to > from > either end
    if filters.to_city:
        return [r for r in records if _same_city(r.arrival_city, filters.to_city)]
    if filters.from_city:
        return [r for r in records if _same_city(r.departure_city, filters.from_city)]
    if filters.city:
        return [
            r
            for r in records
            if _same_city(r.departure_city, filters.city)
            or _same_city(r.arrival_city, filters.city)
        ]
    return records


def upcoming_flights(
    records: Sequence[schemas.FlightRecord],
    filters: Optional[schemas.FlightFilters] = None,
    limit: Optional[int] = DEFAULT_LIMIT,
    now_ms: Optional[int] = None,
    user_tz: str = "Australia/Sydney",
) -> List[schemas.FlightRecord]:
    """
    Flights departing from now on, soonest first.

    Args:
        records: rows from the flight table
        filters: city direction, today_only, next_only, user_tz
        limit: cap on the result (None or 0 means no cap)
        now_ms: "now" in epoch ms (defaults to the wall clock)
        user_tz: zone that decides what "today" means, unless filters.user_tz is set
    """
    filters = filters or schemas.FlightFilters()
    now_ms = now_epoch_ms() if now_ms is None else now_ms
    user_tz = filters.user_tz or user_tz

    flights = apply_city_filter(attach_departure_instants(records), filters)

    flights = [f for f in flights if f.departure_epoch_ms >= now_ms]
    flights.sort(key=lambda f: f.departure_epoch_ms)

    if filters.today_only:
        today = timezones.local_date_key(now_ms, user_tz)
        flights = [
            f
            for f in flights
            if timezones.local_date_key(f.departure_epoch_ms, user_tz) == today
        ]

    if filters.next_only:
        flights = flights[:1]

    if limit:
        flights = flights[:limit]

    return flights


def format_flight(flight: schemas.FlightRecord, position: int) -> str:
    tz = flight.departure_timezone
    lines = [
        f"{position}. {timezones.pretty_date(flight.departure_epoch_ms, tz)}",
        f"    ✈️ {flight.airline} {flight.flight_number} — "
        f"{flight.departure_city} → {flight.arrival_city}",
        f"    🕘 Dep: {timezones.pretty_time(flight.departure_epoch_ms, tz)} {tz}",
    ]
    if flight.arrival_time:
        # arrival is already local to the arrival airport
        arrival = flight.arrival_time[11:16] or flight.arrival_time
        lines.append(f"    🕒 Arr: {arrival} {flight.arrival_timezone}".rstrip())
    if flight.confirmation:
        lines.append(f"    🔖 Conf: {flight.confirmation}")
    return "\n".join(lines)


def format_flights(flights: Sequence[schemas.FlightRecord]) -> str:
    """
    Example:
        I found 1 flight:

        1. Saturday 15 March 2025
            ✈️ Qantas QF143 — Sydney → Auckland
            🕘 Dep: 09:00 Australia/Sydney
            🕒 Arr: 14:10 Pacific/Auckland
            🔖 Conf: ABC123
    """
    if not flights:
        return NO_FLIGHTS_TEXT

    header = f"I found {len(flights)} flight{'' if len(flights) == 1 else 's'}:\n"
    blocks = [format_flight(f, i) for i, f in enumerate(flights, start=1)]
    return header + "\n" + "\n\n".join(blocks)


class FlightScheduler:
    def __init__(self, table: FlightTable, user_tz: str):
        self.table = table
        self.user_tz = user_tz

    async def upcoming(
        self,
        limit: Optional[int] = DEFAULT_LIMIT,
        filters: Optional[schemas.FlightFilters] = None,
        now_ms: Optional[int] = None,
    ) -> List[schemas.FlightRecord]:
        records = await self.table.load()
        return upcoming_flights(records, filters, limit, now_ms=now_ms, user_tz=self.user_tz)

    async def describe_upcoming(
        self,
        limit: Optional[int] = DEFAULT_LIMIT,
        filters: Optional[schemas.FlightFilters] = None,
        now_ms: Optional[int] = None,
    ) -> str:
        return format_flights(await self.upcoming(limit, filters, now_ms=now_ms))
