from __future__ import annotations

import re

_WORD_RE = re.compile(r"[a-z]+")

_RIDE_KEYWORDS = (
    "ride",
    "rides",
    "uber",
    "lyft",
    "taxi",
    "cab",
    "drive me",
    "take me to",
    "pick me up",
    "drop me off",
    "transportation",
)
_DOCTOR_KEYWORDS = (
    "doctor",
    "appointment",
    "physician",
    "specialist",
    "medical",
    "health",
    "sick",
    "checkup",
    "dermatologist",
    "cardiologist",
    "dentist",
    "therapy",
    "telehealth",
)


def _matches(lower: str, words: set[str], keyword: str) -> bool:
    if " " in keyword:
        return keyword in lower
    return keyword in words


def infer_booking_type(message: str) -> str:
    """Classify a free-form request as ``ride``, ``doctor`` or ``flight`` (the default)."""
    lower = message.casefold()
    words = set(_WORD_RE.findall(lower))
    if any(_matches(lower, words, keyword) for keyword in _RIDE_KEYWORDS):
        return "ride"
    if any(_matches(lower, words, keyword) for keyword in _DOCTOR_KEYWORDS):
        return "doctor"
    return "flight"
