"""Keyword and pattern extractors for price, color, brand and category.

Every function expects free text and lowercases it itself; none of them
raise on odd input, a failed extraction is simply an absent value.
"""

import math
import re
import string
from typing import Sequence

from shopassist.models.schemas import Filters
from shopassist.services.vocabulary import (
    BRANDS,
    CATEGORY_KEYWORDS,
    COLORS,
    PRICE_MAX_TRIGGERS,
    PRICE_MIN_TRIGGERS,
    REFINEMENT_PREFIXES,
    STOP_WORDS,
)

_MULTIPLIERS = {"k": 1_000, "thousand": 1_000, "lakh": 100_000, "lakhs": 100_000}

_AMOUNT = r"(?:₹|rs\.?|inr)?\s*(\d[\d,]*(?:\.\d+)?)\s*(lakhs?|thousand|k)?\b"
_AMOUNT_RE = re.compile(rf"^\s*{_AMOUNT}\s*$")

_PRICE_WORDS = frozenset(
    word for phrase in (*PRICE_MAX_TRIGGERS, *PRICE_MIN_TRIGGERS) for word in phrase.split()
)
_TOKEN_STRIP = string.punctuation + "₹"


def _alternation(words: Sequence[str]) -> str:
    # Longest first so "maximum" is not shadowed by "max".
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


def _price_pattern(triggers: Sequence[str]) -> re.Pattern[str]:
    return re.compile(rf"\b(?:{_alternation(triggers)})\s*{_AMOUNT}")


_PRICE_MAX_RE = _price_pattern(PRICE_MAX_TRIGGERS)
_PRICE_MIN_RE = _price_pattern(PRICE_MIN_TRIGGERS)


def to_amount(number: str, unit: str | None = None) -> int | None:
    """Convert a captured numeral plus optional multiplier word into rupees."""
    cleaned = number.replace(",", "").strip()
    try:
        value = float(cleaned)
    except ValueError:
        return None
    value *= _MULTIPLIERS.get((unit or "").lower(), 1)
    if not math.isfinite(value):
        return None
    return int(round(value))


def parse_amount(text: str) -> int | None:
    """Parse a standalone amount such as ``"50,000"``, ``"30k"`` or ``"₹2 lakh"``."""
    match = _AMOUNT_RE.match(text.lower())
    if match is None:
        return None
    return to_amount(match.group(1), match.group(2))


def _search_amount(pattern: re.Pattern[str], text: str) -> int | None:
    match = pattern.search(text)
    if match is None:
        return None
    return to_amount(match.group(1), match.group(2))


def extract_price(text: str) -> dict[str, int]:
    """Return ``{"max": ..., "min": ...}`` with whichever bounds the text states.

    Both directions are searched independently, so "above 10k below 20k"
    yields both keys.
    """
    lowered = text.lower()
    bounds: dict[str, int] = {}
    upper = _search_amount(_PRICE_MAX_RE, lowered)
    if upper is not None:
        bounds["max"] = upper
    lower = _search_amount(_PRICE_MIN_RE, lowered)
    if lower is not None:
        bounds["min"] = lower
    return bounds


def _first_word_match(text: str, vocabulary: Sequence[str]) -> str | None:
    lowered = text.lower()
    for word in vocabulary:
        if re.search(rf"\b{re.escape(word)}\b", lowered):
            return word.title()
    return None


def extract_color(text: str, colors: Sequence[str] = COLORS) -> str | None:
    return _first_word_match(text, colors)


def extract_brand(text: str, brands: Sequence[str] = BRANDS) -> str | None:
    return _first_word_match(text, brands)


def extract_filters(text: str) -> Filters:
    """Run every extractor over ``text`` and collect the results."""
    bounds = extract_price(text)
    return Filters(
        price_max=bounds.get("max"),
        price_min=bounds.get("min"),
        brand=extract_brand(text),
        color=extract_color(text),
    )


def match_category(
    text: str,
    keywords: Sequence[tuple[str, Sequence[str]]] = CATEGORY_KEYWORDS,
) -> str | None:
    """Return the first category whose trigger substring appears in ``text``."""
    lowered = text.lower()
    for category, triggers in keywords:
        if any(trigger in lowered for trigger in triggers):
            return category
    return None


def guess_category(text: str, stop_words: frozenset = STOP_WORDS) -> str | None:
    """Generic-noun heuristic: the first token that is not filler.

    Stop words, price trigger words and anything containing a digit are
    skipped. Returns ``None`` when nothing is left.
    """
    for raw in text.lower().split():
        token = raw.strip(_TOKEN_STRIP)
        if not token or token in stop_words or token in _PRICE_WORDS:
            continue
        if any(ch.isdigit() for ch in token):
            continue
        return token
    return None


def detect_category(text: str) -> str | None:
    return match_category(text) or guess_category(text)


def _refinement_pattern() -> re.Pattern[str]:
    words = (*REFINEMENT_PREFIXES, *COLORS, *BRANDS)
    return re.compile(rf"^(?:{_alternation(words)})\b")


_REFINEMENT_RE = _refinement_pattern()


def is_refinement(text: str) -> bool:
    """True when the message *starts* with a price, color or brand word."""
    return _REFINEMENT_RE.match(text.strip().lower()) is not None
