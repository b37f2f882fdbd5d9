"""Title normalization and fuzzy title comparison."""

import re
from typing import Optional

from rapidfuzz.distance import Levenshtein

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")

CONTAINMENT_BASE = 0.7
CONTAINMENT_SPAN = 0.3


def normalize_title(title: Optional[str]) -> str:
    """Lowercase, drop punctuation, collapse whitespace and trim."""
    if not title:
        return ""
    normalized = _PUNCTUATION_RE.sub("", title.lower())
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def title_similarity(title1: Optional[str], title2: Optional[str]) -> float:
    """
    Similarity of two titles in [0, 1].

    - Identical after normalization: 1.0
    - One contains the other: 0.7 + 0.3 * (shorter length / longer length)
    - Otherwise: 1 - Levenshtein distance / longer length

    Titles that are missing or normalize to an empty string never match
    (0.0), including when both are empty.
    """
    t1 = normalize_title(title1)
    t2 = normalize_title(title2)

    if not t1 or not t2:
        return 0.0

    if t1 == t2:
        return 1.0

    if t1 in t2 or t2 in t1:
        ratio = min(len(t1), len(t2)) / max(len(t1), len(t2))
        return CONTAINMENT_BASE + CONTAINMENT_SPAN * ratio

    distance = Levenshtein.distance(t1, t2)
    return max(0.0, 1.0 - distance / max(len(t1), len(t2)))
