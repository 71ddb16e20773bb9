# tourbot/core/nlu/responses.py
import random
from typing import Optional

from tourbot.core import schemas

FALLBACKS = (
    "Sorry, I don't have that info yet. Try another term?",
    "Hmm, I can't find that. Want to ask about show times or venues?",
    "I don't have that, but I can help with schedules, venues, or merch.",
)


def fallback_text() -> str:
    return random.choice(FALLBACKS)


def render(result: Optional[schemas.RetrievalResult]) -> str:
    """
    Reply text for a retrieval result.

    Every branch except the fallback is deterministic.
    """
    if isinstance(result, schemas.TravelSchedule):
        return result.text or fallback_text()

    if isinstance(result, schemas.ContextualLocation):
        return f"The {result.term} for the show in {result.city} is at {result.place}."

    if isinstance(result, schemas.ContextualTerm):
        # "at 16:00" reads better than "is 16:00"
        prefix = "at " if "time" in str(result.field).lower() else ""
        return f"The {result.term} for the show in {result.city} is {prefix}{result.value}."

    if isinstance(result, schemas.GenericTerm):
        return f"The official definition for {result.term} is: {result.definition}"

    return fallback_text()
