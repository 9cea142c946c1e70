"""Fixed vocabularies used by the lexical extractors.

Order matters: every lookup walks these sequences front to back and the
first hit wins, so more specific entries must come before broader ones.
"""

from typing import Sequence

CATEGORY_KEYWORDS: Sequence[tuple[str, Sequence[str]]] = (
    ("laptop", ("laptop", "notebook", "computer")),
    ("headphones", ("headphones", "headphone", "earphones", "earbuds", "airpods", "audio")),
    ("phone", ("phone", "mobile", "smartphone", "iphone", "android")),
    ("electronics", ("electronics", "electronic", "gadget", "gadgets", "tech")),
    ("clothing", ("clothes", "clothing", "shirt", "dress", "jacket", "t-shirt")),
    ("jewelry", ("jewelry", "jewellery", "ring", "necklace", "earring", "bracelet")),
)

COLORS: Sequence[str] = (
    "black",
    "white",
    "silver",
    "gold",
    "grey",
    "gray",
    "blue",
    "red",
    "green",
    "pink",
    "purple",
    "yellow",
    "orange",
    "brown",
)

BRANDS: Sequence[str] = (
    "apple",
    "samsung",
    "oneplus",
    "xiaomi",
    "redmi",
    "realme",
    "oppo",
    "vivo",
    "google",
    "motorola",
    "nokia",
    "dell",
    "hp",
    "lenovo",
    "asus",
    "acer",
    "msi",
    "sony",
    "boat",
    "jbl",
    "bose",
    "sennheiser",
    "nike",
    "adidas",
    "puma",
)

PRICE_MAX_TRIGGERS: Sequence[str] = ("less than", "maximum", "under", "below", "max")
PRICE_MIN_TRIGGERS: Sequence[str] = ("more than", "minimum", "above", "over", "min")

# Words that mark a message as a short follow-up when it starts with one.
REFINEMENT_PREFIXES: Sequence[str] = (
    "under",
    "below",
    "less than",
    "above",
    "over",
    "more than",
)

STOP_WORDS = frozenset(
    {
        "show",
        "find",
        "search",
        "get",
        "buy",
        "want",
        "need",
        "looking",
        "for",
        "me",
        "some",
        "good",
        "best",
        "cheap",
        "a",
        "an",
        "the",
        # greetings and filler, so chit-chat stays conversational
        "hi",
        "hello",
        "hey",
        "thanks",
        "thank",
        "you",
        "please",
        "help",
        "ok",
        "okay",
        "i",
        "can",
        "what",
        "do",
        "have",
        "is",
        "are",
        "any",
        "with",
        "in",
        "of",
        "and",
        "to",
        "my",
    }
)

EXAMPLE_CATEGORIES: Sequence[str] = ("laptops", "phones", "headphones", "clothing", "jewelry")
