from datetime import datetime
from typing import Annotated, Optional, List, Dict, Any, Tuple, Union, Literal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =========================
# Enums
# =========================
class IntentType(str, Enum):
    SHOW_SCHEDULE = "show_schedule"
    PRODUCTION = "production"
    TRAVEL = "travel"
    MERCH = "merch"
    FINANCIAL = "financial"
    MEDIA = "media"
    HELP = "help"
    TERM_LOOKUP = "term_lookup"


class ResponseType(str, Enum):
    ANSWER = "answer"
    SCHEDULE = "schedule"
    HELP = "help"
    FALLBACK = "fallback"
    UNKNOWN = "unknown"
    ERROR = "error"


# =========================
# INTENT / PARSING
# =========================
class Intent(BaseModel):
    intent_type: Optional[IntentType] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    entities: Dict[str, Any] = {}
    term_id: Optional[str] = None

    # Only set when rule evaluation failed
    original_query: Optional[str] = None
    error: Optional[str] = None


class ParsedQuery(BaseModel):
    verb: Optional[str] = None
    entities: List[str] = []
    normalized: str = ""


class FieldMatch(BaseModel):
    key: str
    score: int
    value: Any


# =========================
# VOCABULARY
# =========================
class VocabularySnapshot(BaseModel):
    """
    Complete view of the known terms and cities.

    Frozen: a refresh builds a new snapshot and swaps it in whole.
    """

    terms: Tuple[str, ...] = ()
    cities: Tuple[str, ...] = ()
    loaded_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)


class VocabularyStatus(BaseModel):
    terms: int
    cities: int
    loaded_at: Optional[datetime] = None


# =========================
# RETRIEVAL RESULTS
# =========================
class ContextualTerm(BaseModel):
    response_type: Literal["contextualTerm"] = "contextualTerm"
    term: str
    city: str
    field: str
    value: Any


class ContextualLocation(BaseModel):
    response_type: Literal["contextualLocation"] = "contextualLocation"
    term: str
    city: str
    field: str
    value: Any
    place: str


class GenericTerm(BaseModel):
    response_type: Literal["genericTerm"] = "genericTerm"
    term: str
    definition: str


class TravelSchedule(BaseModel):
    response_type: Literal["travelSchedule"] = "travelSchedule"
    text: str


RetrievalResult = Annotated[
    Union[ContextualTerm, ContextualLocation, GenericTerm, TravelSchedule],
    Field(discriminator="response_type"),
]


# =========================
# TRAVEL
# =========================
class FlightRecord(BaseModel):
    airline: str = ""
    flight_number: str = ""
    departure_city: str = ""
    arrival_city: str = ""
    departure_time: str
    arrival_time: str = ""
    departure_timezone: str
    arrival_timezone: str = ""
    confirmation: str = ""

    # Filled in by the scheduler
    departure_epoch_ms: Optional[int] = None


class FlightFilters(BaseModel):
    to_city: Optional[str] = None
    from_city: Optional[str] = None
    city: Optional[str] = None
    today_only: bool = False
    next_only: bool = False
    user_tz: Optional[str] = None


# =========================
# CHAT API
# =========================
class ChatRequest(BaseModel):
    message: str = Field(max_length=2000)
    member: Optional[Union[str, Dict[str, Any]]] = None
    context: Dict[str, Any] = {}
    debug: bool = False


class ChatResponse(BaseModel):
    type: ResponseType
    text: str
    intent: Optional[IntentType] = None
    confidence: float = 0.0
    error: Optional[str] = None
    trace: Optional[List[Dict[str, Any]]] = None
