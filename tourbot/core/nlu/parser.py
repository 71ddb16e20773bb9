# tourbot/core/nlu/parser.py
"""
QUERY PARSER - Split a message into verb + entities

Data Flow:
    "What time is soundcheck in Sydney?"
        → normalize()        "what time is soundcheck in sydney"
        → extract_verb()     "what time is"
        → extract_entities() ["sydney"]   (with "sydney" in the city list)
"""

import re
from typing import Iterable, List, Optional

from tourbot.core import schemas
from tourbot.core.nlu.vocabulary import VocabularyCache

# Longer/more specific phrases first
VERBS = (
    "tell me about",
    "what time is",
    "where is",
    "when is",
    "who is",
    "what is",
)

LOCATION_VERBS = frozenset({"where is"})
TIME_VERBS = frozenset({"what time is", "when is"})

# Router hints; they never map to an answer on their own
HINT_TOKENS = ("flight", "flights", "show")

_NON_WORD_RE = re.compile(r"[^\w\s]")
_SPACES_RE = re.compile(r"\s+")


def normalize(message: Optional[str]) -> str:
    """
    Lowercase, punctuation → spaces, collapse whitespace, trim.

    Example:
        "  Where's the VENUE,   Sydney?? " → "where s the venue sydney"
    """
    text = str(message or "").lower()
    text = _NON_WORD_RE.sub(" ", text)
    return _SPACES_RE.sub(" ", text).strip()


def extract_verb(normalized: str) -> Optional[str]:
    for verb in VERBS:
        if normalized.startswith(verb):
            return verb
    return None


def extract_entities(normalized: str, candidates: Iterable[str]) -> List[str]:
    """Every candidate contained in the text, scan order, no duplicates."""
    found: List[str] = []
    for candidate in candidates:
        if candidate and candidate in normalized and candidate not in found:
            found.append(candidate)
    return found


class QueryParser:
    def __init__(self, vocabulary: VocabularyCache):
        self.vocabulary = vocabulary

    def parse(self, message: Optional[str]) -> schemas.ParsedQuery:
        normalized = normalize(message)
        if not normalized:
            return schemas.ParsedQuery()

        # One snapshot per parse, so a refresh mid-way can't mix lists
        snapshot = self.vocabulary.snapshot
        entities = extract_entities(normalized, snapshot.terms + snapshot.cities)
        for hint in extract_entities(normalized, HINT_TOKENS):
            if hint not in entities:
                entities.append(hint)

        return schemas.ParsedQuery(
            verb=extract_verb(normalized),
            entities=entities,
            normalized=normalized,
        )
