# tourbot/core/nlu/retrieval.py
"""
RETRIEVAL ORCHESTRATOR - Turn a parsed query into facts

Decision order:
    1. Message mentions "flight(s)"       → travel schedule (always wins)
    2. A known city was mentioned
         show in that city + field found  → contextual term / location
         otherwise                        → generic definition if the term is known
    3. Only a known term                  → generic definition
    4. Nothing                            → None

Term and city are first-match: the first entity found in the term list,
the first entity found in the city list.
"""

import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from tourbot.core import schemas
from tourbot.core.nlu.fields import guess_term_from_keys, is_blank, resolve_field
from tourbot.core.nlu.parser import LOCATION_VERBS
from tourbot.core.nlu.vocabulary import VocabularyCache
from tourbot.core.travel.flights import DEFAULT_LIMIT, FlightScheduler

logger = logging.getLogger(__name__)

FLIGHT_WORD_RE = re.compile(r"\bflights?\b")


def format_place(show: Dict[str, Any]) -> str:
    """
    "Enmore Theatre, Sydney, NSW, Australia" from whatever parts are present.
    """
    region = show.get("state") if not is_blank(show.get("state")) else show.get("region")
    parts = [show.get("venue_name"), show.get("city"), region, show.get("country")]
    return ", ".join(str(p).strip() for p in parts if not is_blank(p))


class RetrievalOrchestrator:
    def __init__(
        self,
        vocabulary: VocabularyCache,
        shows,
        definitions,
        scheduler: FlightScheduler,
        locale: str = "en-AU",
        user_tz: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.vocabulary = vocabulary
        self.shows = shows
        self.definitions = definitions
        self.scheduler = scheduler
        self.locale = locale
        self.user_tz = user_tz
        self.clock = clock

    async def find_show_by_city(self, city: str) -> Optional[Dict[str, Any]]:
        """First show whose city matches, case-insensitive."""
        if not city:
            return None
        wanted = city.lower()
        for show in await self.shows.get_shows({}):
            if str(show.get("city") or "").lower() == wanted:
                return show
        return None

    async def generic_definition(self, term: Optional[str]) -> Optional[schemas.GenericTerm]:
        if not term or not self.vocabulary.is_term(term):
            return None
        definition = await self.definitions.get_definition(term, self.locale)
        if not definition:
            return None
        return schemas.GenericTerm(term=term, definition=definition)

    async def retrieve(self, parsed: Optional[schemas.ParsedQuery]) -> Optional[schemas.RetrievalResult]:
        if parsed is None:
            return None

        verb = parsed.verb
        entities = parsed.entities
        q = parsed.normalized or ""
        if not entities and not q:
            return None

        snapshot = self.vocabulary.snapshot
        term = next((e for e in entities if e in snapshot.terms), None)
        city = next((e for e in entities if e in snapshot.cities), None)

        # Flight mentions override term/city resolution
        if FLIGHT_WORD_RE.search(q):
            filters = schemas.FlightFilters(to_city=city, user_tz=self.user_tz)
            now_ms = int(self.clock().timestamp() * 1000) if self.clock else None
            text = await self.scheduler.describe_upcoming(DEFAULT_LIMIT, filters, now_ms=now_ms)
            return schemas.TravelSchedule(text=text)

        if city:
            show = await self.find_show_by_city(city)
            if show:
                if not term:
                    term = guess_term_from_keys(q, show)
                hit = resolve_field(show, term, verb)
                if hit:
                    if verb in LOCATION_VERBS:
                        return schemas.ContextualLocation(
                            term=term,
                            city=city,
                            field=hit.key,
                            value=hit.value,
                            place=format_place(show),
                        )
                    return schemas.ContextualTerm(
                        term=term, city=city, field=hit.key, value=hit.value
                    )
            else:
                logger.info(f"No show found for city {city!r}")

        return await self.generic_definition(term)
