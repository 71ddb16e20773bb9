import re
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from tourbot.core import schemas
from tourbot.core.config import settings
from tourbot.core.database import AsyncSessionLocal
from tourbot.core.nlu.intents import IntentClassifier
from tourbot.core.nlu.parser import QueryParser
from tourbot.core.nlu.responses import render
from tourbot.core.nlu.retrieval import RetrievalOrchestrator, format_place
from tourbot.core.nlu.vocabulary import VocabularyCache
from tourbot.core.sources.definitions import DefinitionStore
from tourbot.core.sources.flights import FlightTable
from tourbot.core.sources.shows import ApiShowSource, CsvShowSource, parse_show_date
from tourbot.core.travel.flights import DEFAULT_LIMIT, FlightScheduler
from tourbot.core.travel.timezones import resolve_zone


# -----------------------------------------------------------------------------
# ASSISTANT MODULE - Orchestration
# Purpose: take one chat message through classify -> parse -> retrieve -> render,
# dispatch per intent, and turn every failure into a well-formed reply
# -----------------------------------------------------------------------------


# Configure logging for the assistant
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

HELP_TEXT = "You can ask me about shows, schedules, venues, or general tour details."
NO_INTENT_TEXT = "I'm not sure how to handle that yet."
ERROR_TEXT = "Sorry, something went wrong while generating a response."

SHOW_LIMIT = 10
CITY_FILTER_LIMIT = 50

NEXT_SHOW_RE = re.compile(r"\bnext\s+show\b", re.IGNORECASE)
NEXT_RE = re.compile(r"\bnext\b")
TODAY_RE = re.compile(r"\btoday\b")


class ResponseTrace:
    """Step log for one chat turn."""

    def __init__(self, member: str):
        self.member = member
        self.start_time = datetime.now()
        self.logs = []

    def log(self, step: str, message: str, level: str = "info"):
        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "step": step,
            "message": message,
            "level": level,
            "elapsed_seconds": (datetime.now() - self.start_time).total_seconds(),
        }
        self.logs.append(log_entry)

        # Also log to console
        if level == "error":
            logger.error(f"[Member {self.member}] {step}: {message}")
        elif level == "warning":
            logger.warning(f"[Member {self.member}] {step}: {message}")
        else:
            logger.info(f"[Member {self.member}] {step}: {message}")

    def get_logs(self) -> List[Dict[str, Any]]:
        return self.logs


def member_label(member: Union[str, Dict[str, Any], None]) -> str:
    if isinstance(member, str):
        return member or "guest"
    if isinstance(member, dict):
        for key in ("memberId", "member_id", "id", "identifier"):
            if member.get(key):
                return str(member[key])
    return "guest"


def format_show_date(day: date) -> str:
    return f"{day:%A} {day.day} {day:%B} {day.year}"


def line_for_show(show: Dict[str, Any], day: date, position: int) -> str:
    """
    1. Saturday 15 March 2025
        📍 Enmore Theatre, Sydney, NSW, Australia
        🚪 Doors: 19:00 AEDT
        🎫 Show: 20:00 AEDT
        🎟️ Sold out
    """
    bits = [f"{position}. {format_show_date(day)}"]

    place = format_place(show)
    if place:
        bits.append(f"    📍 {place}")

    tz = f" {show['timezone']}" if show.get("timezone") else ""
    if show.get("doors_time"):
        bits.append(f"    🚪 Doors: {show['doors_time']}{tz}")
    if show.get("show_time"):
        bits.append(f"    🎫 Show: {show['show_time']}{tz}")
    if show.get("ticket_status"):
        bits.append(f"    🎟️ {show['ticket_status']}")
    return "\n".join(bits)


class TourAssistant:
    def __init__(
        self,
        vocabulary: VocabularyCache,
        shows,
        definitions,
        scheduler: FlightScheduler,
        locale: str = "en-AU",
        user_tz: str = "Australia/Sydney",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.vocabulary = vocabulary
        self.shows = shows
        self.definitions = definitions
        self.scheduler = scheduler
        self.locale = locale
        self.user_tz = user_tz
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.classifier = IntentClassifier(vocabulary)
        self.parser = QueryParser(vocabulary)
        self.retrieval = RetrievalOrchestrator(
            vocabulary,
            shows,
            definitions,
            scheduler,
            locale=locale,
            user_tz=user_tz,
            clock=self.clock,
        )

    def now_ms(self) -> int:
        return int(self.clock().timestamp() * 1000)

    def today(self) -> date:
        return self.clock().astimezone(resolve_zone(self.user_tz)).date()

    # -------- handlers --------

    async def _show_schedule(self, message: str, member: str) -> Dict[str, Any]:
        today = self.today()
        upcoming = []
        for show in await self.shows.get_shows({}):
            day = parse_show_date(show.get("date"))
            if day is not None and day >= today:
                upcoming.append((day, show))
        upcoming.sort(key=lambda pair: pair[0])

        if not upcoming:
            return {"type": "schedule", "text": f"No upcoming shows found (for: {member})"}

        chosen = upcoming[:1] if NEXT_SHOW_RE.search(message or "") else upcoming[:SHOW_LIMIT]
        lines = [line_for_show(show, day, i) for i, (day, show) in enumerate(chosen, start=1)]
        header = f"I found {len(chosen)} {'show' if len(chosen) == 1 else 'shows'}:\n\n"
        return {"type": "schedule", "text": header + "\n".join(lines)}

    async def _contextual_answer(self, message: str) -> Optional[schemas.RetrievalResult]:
        parsed = self.parser.parse(message)
        return await self.retrieval.retrieve(parsed)

    async def _term_lookup(self, message: str, intent: schemas.Intent) -> Dict[str, Any]:
        retrieved = await self._contextual_answer(message)

        # Last resort: any term the message mentions, looked up directly
        if retrieved is None:
            term_id = intent.term_id or intent.entities.get("term_id")
            if not term_id and message:
                lowered = message.lower()
                term_id = next((t for t in self.vocabulary.terms if t in lowered), None)
            if term_id:
                definition = await self.definitions.get_definition(term_id, self.locale)
                if definition:
                    retrieved = schemas.GenericTerm(term=term_id, definition=definition)

        return {"type": "answer", "text": render(retrieved)}

    async def _production(self, message: str) -> Dict[str, Any]:
        return {"type": "answer", "text": render(await self._contextual_answer(message))}

    def travel_filters(self, message: str):
        """
        (filters, limit) for a travel question.

        "from <city>" beats "to <city>", which beats "next", then "today",
        then any known city anywhere in the message.
        """
        lowered = (message or "").lower()
        cities = self.vocabulary.cities
        filters = schemas.FlightFilters(user_tz=self.user_tz)

        from_city = next((c for c in cities if f"from {c}" in lowered), None)
        if from_city:
            filters.from_city = from_city
            return filters, CITY_FILTER_LIMIT

        to_city = next((c for c in cities if f"to {c}" in lowered), None)
        if to_city:
            filters.to_city = to_city
            return filters, CITY_FILTER_LIMIT

        if NEXT_RE.search(lowered):
            filters.next_only = True
            return filters, 1

        if TODAY_RE.search(lowered):
            filters.today_only = True
            return filters, CITY_FILTER_LIMIT

        any_city = next((c for c in cities if c in lowered), None)
        if any_city:
            filters.city = any_city
            return filters, CITY_FILTER_LIMIT

        return filters, DEFAULT_LIMIT

    async def _travel(self, message: str) -> Dict[str, Any]:
        try:
            filters, limit = self.travel_filters(message)
            text = await self.scheduler.describe_upcoming(limit, filters, now_ms=self.now_ms())
            return {"type": "schedule", "text": text}
        except Exception as e:
            logger.error(f"Error in travel handler: {e}")
            return {"type": "error", "text": f"Flights lookup failed: {e}"}

    # -------- main dispatcher --------

    async def generate_response(
        self,
        message: str,
        intent: Optional[schemas.Intent],
        context: Optional[Dict[str, Any]] = None,
        member: Union[str, Dict[str, Any], None] = None,
    ) -> Dict[str, Any]:
        """
        Reply for one message given its intent.

        Returns a dict with "type" (answer | schedule | help | fallback |
        unknown | error) and "text". Never raises.
        """
        try:
            member_str = member_label(member)

            if intent is None or intent.intent_type is None:
                return {"type": "fallback", "text": NO_INTENT_TEXT}

            intent_type = intent.intent_type

            if intent_type == schemas.IntentType.HELP:
                return {"type": "help", "text": HELP_TEXT}

            if intent_type == schemas.IntentType.SHOW_SCHEDULE:
                return await self._show_schedule(message, member_str)

            if intent_type == schemas.IntentType.TERM_LOOKUP:
                return await self._term_lookup(message, intent)

            if intent_type == schemas.IntentType.PRODUCTION:
                return await self._production(message)

            if intent_type == schemas.IntentType.TRAVEL:
                return await self._travel(message)

            return {
                "type": "unknown",
                "text": f"I don't have a handler for intent: {intent_type.value}",
            }
        except Exception as err:
            logger.error(f"Error in generate_response: {err}")
            return {"type": "error", "text": ERROR_TEXT, "error": str(err)}

    async def handle_message(
        self,
        message: str,
        member: Union[str, Dict[str, Any], None] = None,
        context: Optional[Dict[str, Any]] = None,
        debug: bool = False,
    ) -> schemas.ChatResponse:
        """Classify + respond, the whole chat turn."""
        trace = ResponseTrace(member_label(member))

        intent = self.classifier.classify(message)
        if intent.error:
            trace.log("classify", f"Classification failed: {intent.error}", "warning")
        else:
            trace.log(
                "classify",
                f"intent={intent.intent_type.value if intent.intent_type else None} "
                f"confidence={intent.confidence}",
            )

        reply = await self.generate_response(message, intent, context, member)
        level = "error" if reply["type"] == "error" else "info"
        trace.log("respond", f"type={reply['type']}", level)

        return schemas.ChatResponse(
            type=reply["type"],
            text=reply["text"],
            intent=intent.intent_type,
            confidence=intent.confidence,
            error=reply.get("error"),
            trace=trace.get_logs() if debug else None,
        )


def build_assistant(session_factory=AsyncSessionLocal) -> TourAssistant:
    """Wire the assistant from settings."""
    data_dir = Path(settings.DATA_DIR)

    table = FlightTable(data_dir / settings.FLIGHTS_FILE, default_tz=settings.USER_TZ)
    definitions = DefinitionStore(session_factory, locale=settings.LOCALE)

    if settings.SHOWS_API_URL:
        shows = ApiShowSource(settings.SHOWS_API_URL, timeout=settings.HTTP_TIMEOUT_SECONDS)
    else:
        shows = CsvShowSource(data_dir / settings.SHOWS_FILE)

    vocabulary = VocabularyCache(
        term_loader=definitions.list_term_ids, city_loader=table.list_cities
    )

    return TourAssistant(
        vocabulary=vocabulary,
        shows=shows,
        definitions=definitions,
        scheduler=FlightScheduler(table, user_tz=settings.USER_TZ),
        locale=settings.LOCALE,
        user_tz=settings.USER_TZ,
    )


_ASSISTANT: Optional[TourAssistant] = None


def get_assistant() -> TourAssistant:
    global _ASSISTANT
    if _ASSISTANT is None:
        _ASSISTANT = build_assistant()
    return _ASSISTANT
