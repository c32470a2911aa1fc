"""Static keyword tables used by the moderation heuristics."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

DESCRIPTOR_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "toxic": (
            "idiot", "stupid", "hate", "kill", "dumb", "trash", "noob",
            "loser", "shut up", "annoying", "toxic", "rude", "mean", "sucks",
            "bad", "worst", "report", "ban",
        ),
        "spam": (
            "buy followers", "free", "promo", "visit", "http", "www", "spam",
            "emote", "caps", "repeated",
        ),
        "rude": (
            "shut up", "idiot", "stupid", "dumb", "annoying", "rude", "mean",
            "trash", "loser", "bad", "worst",
        ),
    }
)

# Ordered tiers: the first tier whose terms appear in a reason wins.
TIMEOUT_TIERS: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    (("spam", "caps", "emote"), 300),
    (("toxic", "rude", "mean"), 1800),
    (("severe", "serious"), 3600),
)
DEFAULT_TIMEOUT_SECONDS = 600

STOPWORDS = frozenset(
    {
        "the", "and", "that", "have", "for", "not", "with", "you", "this",
        "but", "his", "from", "they", "say", "her", "she", "will", "one",
        "all", "would", "there", "their", "what", "so", "up", "out", "if",
        "about", "who", "get", "which", "go", "me", "when", "make", "can",
        "like", "time", "no", "just", "him", "know", "take", "people",
        "into", "year", "your", "good", "some", "could", "them", "see",
        "other", "than", "then", "now", "look", "only", "come", "its",
        "over", "think", "also", "back", "after", "use", "two", "how", "our",
        "work", "first", "well", "way", "even", "new", "want", "because",
        "any", "these", "give", "day", "most", "us",
    }
)


def keywords_for(descriptor: str) -> Tuple[str, ...]:
    """Return the keyword set for a descriptor, or the descriptor itself."""
    key = (descriptor or "").strip().lower()
    return DESCRIPTOR_KEYWORDS.get(key, (key,))


def match_descriptor(text: str) -> str:
    """Pick the known descriptor mentioned in free text ("the toxic one" -> "toxic")."""
    lowered = (text or "").strip().lower()
    for descriptor in DESCRIPTOR_KEYWORDS:
        if descriptor in lowered:
            return descriptor
    return lowered
