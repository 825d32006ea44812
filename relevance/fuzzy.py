"""String-similarity primitives shared by duplicate and conflict detection.

Levenshtein distance comes from rapidfuzz; everything above it is plain
normalization. Only simple lowercasing is used for case folding.
"""
from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein

from beetagged.config import settings


_COMPANY_SUFFIXES = re.compile(r"\b(inc|llc|corp|corporation|company|co|ltd|limited)\b")
_TITLE_SENIORITY = re.compile(r"\b(senior|sr|junior|jr|lead|principal|staff)\b")
_LOCATION_QUALIFIERS = re.compile(r"\b(city|county|state|province|country)\b")
_SCHOOL_WORDS = re.compile(r"\b(university|college|school|institute|academy)\b")
_SCHOOL_STOPWORDS = re.compile(r"\b(of|the|and)\b|&")
_PUNCTUATION = re.compile(r"[^\w\s]")


def _collapse(text: str) -> str:
    return " ".join(text.split())


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings."""
    return Levenshtein.distance(a or "", b or "")


def similarity(a: str, b: str) -> float:
    """Normalized similarity: 1 - distance / max length.

    Two empty strings are identical (1.0).
    """
    a = a or ""
    b = b or ""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def normalize_company_name(name: str) -> str:
    """Strip legal suffixes and punctuation."""
    text = _PUNCTUATION.sub(" ", (name or "").lower())
    return _collapse(_COMPANY_SUFFIXES.sub(" ", text))


def is_similar_company_name(a: str, b: str, threshold: float | None = None) -> bool:
    """Match company names across legal-suffix and punctuation variants.

    Args:
        a: First company name
        b: Second company name
        threshold: Similarity cutoff (default from config)

    Returns:
        True if normalized names are equal, nested, or similar enough
    """
    threshold = settings.fuzzy.company_threshold if threshold is None else threshold
    norm_a = normalize_company_name(a)
    norm_b = normalize_company_name(b)

    # "Co." alone normalizes to nothing; compare what the user typed.
    if not norm_a or not norm_b:
        return _collapse((a or "").lower()) == _collapse((b or "").lower())

    if norm_a == norm_b or norm_a in norm_b or norm_b in norm_a:
        return True
    return similarity(norm_a, norm_b) > threshold


def is_similar_name(a: str, b: str) -> bool:
    """Match person names on first and last token.

    Middle names and initials are ignored, so "John A Smith" matches
    "John Smith" but "John Smith" does not match "Jon Smith".
    """
    tokens_a = (a or "").lower().split()
    tokens_b = (b or "").lower().split()
    if not tokens_a or not tokens_b:
        return False
    return tokens_a[0] == tokens_b[0] and tokens_a[-1] == tokens_b[-1]


def name_overlap_ratio(a: str, b: str) -> float:
    """Word-overlap ratio between two person names.

    Tokens shorter than two characters are ignored. A token of ``a`` counts
    as matched when it equals a token of ``b``, or when both are longer than
    two characters and one contains the other. The match count is divided by
    the larger token count.
    """
    words_a = [w for w in (a or "").lower().split() if len(w) > 1]
    words_b = [w for w in (b or "").lower().split() if len(w) > 1]
    if not words_a or not words_b:
        return 0.0

    matches = 0
    for word_a in words_a:
        for word_b in words_b:
            if word_a == word_b or (
                len(word_a) > 2 and len(word_b) > 2 and (word_a in word_b or word_b in word_a)
            ):
                matches += 1
                break
    return matches / max(len(words_a), len(words_b))


def normalize_job_title(title: str) -> str:
    text = _TITLE_SENIORITY.sub(" ", (title or "").lower())
    return _collapse(_PUNCTUATION.sub(" ", text))


def is_similar_job_title(a: str, b: str, threshold: float | None = None) -> bool:
    """Match job titles ignoring seniority words."""
    threshold = settings.fuzzy.title_threshold if threshold is None else threshold
    return similarity(normalize_job_title(a), normalize_job_title(b)) > threshold


def normalize_location(location: str) -> str:
    text = re.sub(r"[,.\-]", " ", (location or "").lower())
    return _collapse(_LOCATION_QUALIFIERS.sub(" ", text))


def is_similar_location(a: str, b: str, threshold: float | None = None) -> bool:
    """Match locations, tolerating "Austin" vs "Austin, TX"."""
    threshold = settings.fuzzy.location_threshold if threshold is None else threshold
    norm_a = normalize_location(a)
    norm_b = normalize_location(b)
    if norm_a and norm_b and (norm_a in norm_b or norm_b in norm_a):
        return True
    return similarity(norm_a, norm_b) > threshold


def normalize_school_name(name: str) -> str:
    text = _SCHOOL_WORDS.sub(" ", (name or "").lower())
    text = _SCHOOL_STOPWORDS.sub(" ", text)
    return _collapse(_PUNCTUATION.sub(" ", text))


def is_similar_school_name(a: str, b: str, threshold: float | None = None) -> bool:
    """Match schools ignoring "University of", "College" and the like."""
    threshold = settings.fuzzy.school_threshold if threshold is None else threshold
    return similarity(normalize_school_name(a), normalize_school_name(b)) > threshold
