# tourbot/core/nlu/intents.py
"""
INTENT CLASSIFIER - Map a raw message to one intent

Two stages:
    1. Fast path: the message is, or contains, a known term id
       → term_lookup with confidence 1.0, no rules consulted
    2. Keyword rules, evaluated top to bottom; the first match wins

Rule order is part of the behavior: "what time is the show" matches
both schedule and production wording and must come out as schedule.
"""

import logging
import re
from typing import Optional, Tuple

from tourbot.core import schemas
from tourbot.core.nlu.parser import normalize
from tourbot.core.nlu.vocabulary import VocabularyCache

logger = logging.getLogger(__name__)

# (pattern, intent, confidence); first match wins
INTENT_RULES: Tuple[Tuple[re.Pattern, schemas.IntentType, float], ...] = (
    (
        re.compile(r"schedule|showtime|what time.*show"),
        schemas.IntentType.SHOW_SCHEDULE,
        0.95,
    ),
    (
        re.compile(r"load in|load-out|sound.?check|curfew|setlist"),
        schemas.IntentType.PRODUCTION,
        0.9,
    ),
    (
        re.compile(r"flight|airport|travel|hotel|check[- ]?in|check[- ]?out"),
        schemas.IntentType.TRAVEL,
        0.9,
    ),
    (
        re.compile(r"merch|merchandise|t[- ]?shirts?|hoodies?|seller|stand"),
        schemas.IntentType.MERCH,
        0.9,
    ),
    (
        re.compile(r"budget|costs?|expenses?|financial|accounting|invoice|payment"),
        schemas.IntentType.FINANCIAL,
        0.9,
    ),
    (
        re.compile(r"press|media|interview|photographer|photo\s?pass|press commitments?"),
        schemas.IntentType.MEDIA,
        0.9,
    ),
    (
        re.compile(r"^(help|what can i ask|what can you do)"),
        schemas.IntentType.HELP,
        0.99,
    ),
)


def lookup_exact(normalized: str, vocabulary: VocabularyCache) -> Optional[str]:
    for term in vocabulary.terms:
        if normalize(term) == normalized:
            return term
    return None


def lookup_in_sentence(normalized: str, vocabulary: VocabularyCache) -> Optional[str]:
    for term in vocabulary.terms:
        needle = normalize(term)
        if needle and needle in normalized:
            return term
    return None


def clean_message(content: Optional[str]) -> str:
    """Lowercase, trim, collapse runs of whitespace; punctuation is kept for the rules."""
    return re.sub(r"\s+", " ", str(content or "")).strip().lower()


class IntentClassifier:
    def __init__(self, vocabulary: VocabularyCache, rules=INTENT_RULES):
        self.vocabulary = vocabulary
        self.rules = rules

    def match_term(self, text: Optional[str]) -> Optional[str]:
        normalized = normalize(text)
        if not normalized:
            return None
        return lookup_exact(normalized, self.vocabulary) or lookup_in_sentence(
            normalized, self.vocabulary
        )

    def classify(self, text: Optional[str]) -> schemas.Intent:
        """
        Never raises. A failure inside rule evaluation comes back as the
        null intent carrying the original text and the error message.

        Examples:
            "help"                  → help, 0.99
            "what's the schedule"   → show_schedule, 0.95
            "soundcheck" (a term)   → term_lookup, 1.0
            "hello"                 → None, 0
        """
        try:
            term_id = self.match_term(text)
            if term_id:
                return schemas.Intent(
                    intent_type=schemas.IntentType.TERM_LOOKUP,
                    confidence=1.0,
                    term_id=term_id,
                )

            q = clean_message(text)
            for pattern, intent_type, confidence in self.rules:
                if pattern.search(q):
                    return schemas.Intent(intent_type=intent_type, confidence=confidence)
        except Exception as e:
            logger.error(f"Intent classification failed for {text!r}: {e}")
            return schemas.Intent(original_query=str(text), error=str(e))

        return schemas.Intent()
