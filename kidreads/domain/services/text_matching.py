"""Text normalization and fuzzy matching for spoken-reading evaluation."""

import re
from typing import Optional

# Punctuation removed before comparing expected and transcribed text.
_STRIPPED_PUNCTUATION = re.compile(r"[.,!?;:\"']")

# Minimum similarity (percent) for an attempt to count as read correctly.
ACCEPTANCE_THRESHOLD = 65.0


def normalize_text(text: str) -> str:
    """Canonicalize text for comparison.

    Trims surrounding whitespace, lower-cases and strips ``. , ! ? ; : " '``.
    """
    return _STRIPPED_PUNCTUATION.sub("", text.strip().lower())


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance with unit cost insert, delete and substitute."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            ))
        previous = current
    return previous[-1]


def calculate_similarity(a: str, b: str) -> float:
    """Similarity percentage in [0, 100] between two (normalized) strings.

    Two empty strings are a perfect match.
    """
    max_length = max(len(a), len(b))
    if max_length == 0:
        return 100.0
    distance = levenshtein_distance(a, b)
    return (1 - distance / max_length) * 100


def score_attempt(expected: str, transcript: Optional[str]) -> float:
    """Score a transcript against the expected text after normalizing both."""
    return calculate_similarity(normalize_text(transcript or ""), normalize_text(expected))


def is_accepted(similarity: float, threshold: float = ACCEPTANCE_THRESHOLD) -> bool:
    """True when the similarity reaches the acceptance threshold."""
    return similarity >= threshold
