"""String similarity helpers used to grade free-text answers."""

from __future__ import annotations

import re

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")
_MIN_KEYWORD_LENGTH = 4


def normalize(value: object) -> str:
    """Lower-case the value and drop everything outside ``[a-z0-9]``."""
    if not isinstance(value, str):
        return ""
    return _NON_ALPHANUMERIC.sub("", value.lower())


def edit_distance(a: str, b: str) -> int:
    """Classic Levenshtein distance with unit costs."""
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current[j] = previous[j - 1]
            else:
                current[j] = 1 + min(
                    previous[j - 1],  # substitution
                    current[j - 1],  # insertion
                    previous[j],  # deletion
                )
        previous = current
    return previous[-1]


def similarity_ratio(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1 - edit_distance(a, b) / longest


def keyword_overlap(candidate: object, reference: object) -> float:
    """Fraction of the reference's longer words found inside the candidate.

    Only reference words longer than three characters count. The candidate is
    matched as raw lower-cased text, so a keyword may appear inside a longer
    word.
    """
    reference_text = reference if isinstance(reference, str) else ""
    keywords = [word for word in reference_text.lower().split() if len(word) >= _MIN_KEYWORD_LENGTH]
    if not keywords:
        return 0.0
    candidate_text = candidate.lower() if isinstance(candidate, str) else ""
    matches = sum(1 for keyword in keywords if keyword in candidate_text)
    return matches / len(keywords)
