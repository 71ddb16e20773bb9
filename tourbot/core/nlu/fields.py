# tourbot/core/nlu/fields.py
"""
FIELD RESOLVER - Pick the show field a question is about

Show records have an open set of keys, so nothing here is hard-coded to a
schema. Each key gets a score:

    +5  key mentions the term        ("soundcheck" in "soundcheck_time")
    +3  key is time-like             (contains "time")
    +4  "where is" and key is venue/city/state/country-like
    +4  "what time is"/"when is" and key is time-like

Only keys with a non-blank value and a positive score are candidates.
Highest score wins; on a tie the key scanned last wins, and keys are
scanned in record order (the source's column order).
"""

import re
from typing import Any, Dict, Optional

from tourbot.core import schemas
from tourbot.core.nlu.parser import LOCATION_VERBS, TIME_VERBS

# Used when a time question scores nothing: earliest call first
TIME_FIELD_PREFERENCE = ("soundcheck_time", "load_in_time", "doors_time", "show_time")

VENUE_HINTS = ("venue", "venuename", "address", "location")

_KEY_SUFFIX_RE = re.compile(r"_?(time|name)$", re.IGNORECASE)


def norm_key(value: Any) -> str:
    """Lowercase, letters and digits only: "Load-In Time" → "loadintime"."""
    return re.sub(r"[^a-z0-9]", "", str(value).lower())


def is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def is_time_key(nk: str) -> bool:
    return "time" in nk


def is_place_key(nk: str) -> bool:
    if any(hint in nk for hint in VENUE_HINTS):
        return True
    return nk == "city" or nk.endswith("city") or nk in ("state", "region", "country")


def score_key(key: str, term: str, verb: Optional[str]) -> int:
    nk = norm_key(key)
    n_term = norm_key(term)

    score = 0
    if n_term and n_term in nk:
        score += 5
    if is_time_key(nk):
        score += 3
    if verb in LOCATION_VERBS and is_place_key(nk):
        score += 4
    if verb in TIME_VERBS and is_time_key(nk):
        score += 4
    return score


def resolve_field(
    record: Optional[Dict[str, Any]], term: Optional[str], verb: Optional[str]
) -> Optional[schemas.FieldMatch]:
    """
    Most relevant non-blank field of `record` for `term` asked with `verb`.

    Example:
        record = {"city": "sydney", "soundcheck_time": "16:00", "show_time": "20:00"}
        resolve_field(record, "soundcheck", "what time is")
        → FieldMatch(key="soundcheck_time", score=12, value="16:00")
    """
    if not record or not term:
        return None

    best: Optional[schemas.FieldMatch] = None
    for key, value in record.items():
        if is_blank(value):
            continue
        score = score_key(key, term, verb)
        if score <= 0:
            continue
        if best is None or score >= best.score:
            best = schemas.FieldMatch(key=key, score=score, value=value)

    if best is not None:
        return best

    if verb in TIME_VERBS:
        for key in TIME_FIELD_PREFERENCE:
            if key in record and not is_blank(record[key]):
                return schemas.FieldMatch(key=key, score=1, value=record[key])

    return None


def guess_term_from_keys(query: str, record: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Guess the term from the record's own keys.

    "soundcheck_time" has base name "soundcheck"; if that base appears in
    the query, the query is about soundcheck. First key in record order wins.

    Example:
        guess_term_from_keys("what time is soundcheck in sydney",
                             {"city": "sydney", "soundcheck_time": "16:00"})
        → "soundcheck"
    """
    compact_query = norm_key(query)
    if not compact_query:
        return None

    for key in (record or {}):
        base = _KEY_SUFFIX_RE.sub("", str(key))
        if not norm_key(base):
            continue
        if norm_key(base) in compact_query:
            return base
    return None
