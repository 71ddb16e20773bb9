import pytest

from tourbot.core.nlu.intents import IntentClassifier
from tourbot.core.nlu.vocabulary import VocabularyCache
from tourbot.core.schemas import IntentType


class ExplodingPattern:
    def search(self, text):
        raise RuntimeError("bad pattern")


@pytest.mark.parametrize(
    "message, intent_type, confidence",
    [
        ("help", IntentType.HELP, 0.99),
        ("What can you do?", IntentType.HELP, 0.99),
        ("What's the schedule this week?", IntentType.SHOW_SCHEDULE, 0.95),
        # schedule wording is checked before production wording
        ("what time is soundcheck before the show", IntentType.SHOW_SCHEDULE, 0.95),
        ("what time is soundcheck in sydney", IntentType.PRODUCTION, 0.9),
        ("when is curfew", IntentType.PRODUCTION, 0.9),
        ("which hotel are we in", IntentType.TRAVEL, 0.9),
        ("how many hoodies are left", IntentType.MERCH, 0.9),
        ("send me the invoice", IntentType.FINANCIAL, 0.9),
        ("is there a photo pass", IntentType.MEDIA, 0.9),
    ],
)
def test_rules(vocabulary, message, intent_type, confidence):
    intent = IntentClassifier(vocabulary).classify(message)
    assert intent.intent_type == intent_type
    assert intent.confidence == confidence
    assert intent.term_id is None


def test_exact_term_match(vocabulary):
    intent = IntentClassifier(vocabulary).classify("Rider!")
    assert intent.intent_type == IntentType.TERM_LOOKUP
    assert intent.confidence == 1.0
    assert intent.term_id == "rider"


def test_term_in_sentence_beats_rules(vocabulary):
    """A known term wins even when a keyword rule would also match"""
    intent = IntentClassifier(vocabulary).classify("send the advance schedule to the venue")
    assert intent.intent_type == IntentType.TERM_LOOKUP
    assert intent.term_id == "advance"


def test_term_inside_longer_word(vocabulary):
    """Substring containment is enough for the fast path"""
    intent = IntentClassifier(vocabulary).classify("what are the riders for tonight")
    assert intent.intent_type == IntentType.TERM_LOOKUP
    assert intent.confidence == 1.0
    assert intent.term_id == "rider"


def test_exact_match_checked_before_sentence_match():
    vocabulary = VocabularyCache()
    vocabulary.replace(terms=["load", "load in"], cities=[])
    intent = IntentClassifier(vocabulary).classify("Load in")
    assert intent.term_id == "load in"


def test_empty_vocabulary_has_no_fast_path():
    intent = IntentClassifier(VocabularyCache()).classify("rider")
    assert intent.intent_type is None


def test_no_match(vocabulary):
    intent = IntentClassifier(vocabulary).classify("hello there")
    assert intent.intent_type is None
    assert intent.error is None


def test_rule_failure_returns_error_intent(vocabulary):
    rules = ((ExplodingPattern(), IntentType.HELP, 0.5),)
    intent = IntentClassifier(vocabulary, rules=rules).classify("hello")
    assert intent.intent_type is None
    assert intent.original_query == "hello"
    assert intent.error == "bad pattern"
