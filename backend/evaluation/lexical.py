"""Lexical helpers shared by the theory and code scorers.

Relevance here is plain token-set overlap, not learned semantics:

    semantic_similarity = |question tokens found in answer| / |question tokens|
"""

import math
import re
from collections import Counter
from collections.abc import Iterable

STOP_WORDS = frozenset({
    "the", "and", "with", "from", "that", "this", "have", "were", "your",
    "for", "you", "has", "had", "are", "was", "our", "their", "about",
    "into", "over", "under", "using", "used",
})

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_score(value: float) -> int:
    """Round half up (2.5 -> 3), unlike Python's round-half-to-even."""
    return int(math.floor(value + 0.5))


def tokenize(text: str | None) -> list[str]:
    """Lowercase, drop punctuation, and keep tokens longer than 2 chars that are not stop words."""
    normalized = _NON_ALNUM.sub(" ", (text or "").lower())
    return [t for t in normalized.split() if len(t) > 2 and t not in STOP_WORDS]


def semantic_similarity(answer: str | None, question: str | None) -> float:
    """Fraction (0-1) of the question's tokens that also occur in the answer."""
    answer_tokens = set(tokenize(answer))
    question_tokens = tokenize(question)
    if not answer_tokens or not question_tokens:
        return 0.0
    overlap = sum(1 for token in question_tokens if token in answer_tokens)
    return overlap / len(question_tokens)


def keyword_hits(text: str | None, keywords: Iterable[str]) -> int:
    """Count keywords found verbatim (substring match, case-insensitive) in text."""
    haystack = (text or "").lower()
    return sum(1 for word in keywords if word.lower() in haystack)


def keyword_ratio(text: str | None, keywords: Iterable[str]) -> float:
    keywords = list(keywords)
    if not keywords:
        return 0.0
    return keyword_hits(text, keywords) / len(keywords)


def word_count(text: str | None) -> int:
    return len((text or "").split())


def extract_resume_keywords(resume_text: str, limit: int = 5) -> list[str]:
    """Most frequent significant words (len > 3) in a resume, most common first."""
    normalized = _NON_ALNUM.sub(" ", (resume_text or "").lower())
    words = [w for w in normalized.split() if len(w) > 3 and w not in STOP_WORDS]
    # Counter.most_common keeps first-seen order for ties
    return [word for word, _ in Counter(words).most_common(limit)]
