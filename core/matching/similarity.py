#!/usr/bin/env python3
"""
Similarity Primitives - string, date and location comparison.

Pure functions with no I/O. Every function degrades to 0.0 for missing
input instead of raising, so a sparse item report never breaks a ranking.
"""

import re
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import FrozenSet, List, Optional, Union

from rapidfuzz.distance import Levenshtein

from core.matching.vocabulary import (
    STOPWORDS,
    MIN_KEYWORD_LENGTH,
    LOCATION_ABBREVIATIONS,
    LOCATION_SYNONYMS,
)

DateLike = Union[date, datetime]

_NON_ALNUM = re.compile(r'[^a-z0-9\s]')

# (upper bound in days, score), checked in order
DATE_PROXIMITY_STEPS = (
    (0, 10.0),
    (1, 9.0),
    (3, 8.0),
    (5, 7.0),
    (7, 6.0),
    (14, 4.0),
    (21, 3.0),
    (30, 2.0),
    (45, 1.0),
)

LEVENSHTEIN_WEIGHT = 0.6
KEYWORD_WEIGHT = 0.4
CONTAINMENT_SIMILARITY = 0.9
LOCATION_PARTIAL_BONUS = 2.0


def extract_keywords(text: Optional[str]) -> List[str]:
    """
    Tokenize text into keywords.

    Lowercases, replaces non-alphanumerics with spaces and drops stopwords
    and tokens of MIN_KEYWORD_LENGTH characters or fewer.
    """
    if not text:
        return []
    cleaned = _NON_ALNUM.sub(' ', text.lower())
    return [
        word for word in cleaned.split()
        if len(word) > MIN_KEYWORD_LENGTH and word not in STOPWORDS
    ]


def keyword_set(text: Optional[str]) -> FrozenSet[str]:
    return frozenset(extract_keywords(text))


def keyword_overlap(text1: Optional[str], text2: Optional[str]) -> float:
    """Jaccard similarity of the two keyword sets (0.0 when either is empty)."""
    keywords1 = keyword_set(text1)
    keywords2 = keyword_set(text2)

    if not keywords1 or not keywords2:
        return 0.0

    return len(keywords1 & keywords2) / len(keywords1 | keywords2)


def string_similarity(str1: Optional[str], str2: Optional[str]) -> float:
    """
    Fuzzy similarity between two strings in [0.0, 1.0].

    - 1.0 for a case-insensitive exact match
    - 0.9 when one string contains the other
    - otherwise 0.6 * (1 - normalized Levenshtein) + 0.4 * keyword Jaccard
    """
    if not str1 or not str2:
        return 0.0

    s1 = str1.lower().strip()
    s2 = str2.lower().strip()

    if not s1 or not s2:
        return 0.0

    if s1 == s2:
        return 1.0

    if s1 in s2 or s2 in s1:
        return CONTAINMENT_SIMILARITY

    levenshtein_similarity = 1.0 - Levenshtein.normalized_distance(s1, s2)
    keyword_similarity = keyword_overlap(s1, s2)

    return (
        LEVENSHTEIN_WEIGHT * levenshtein_similarity
        + KEYWORD_WEIGHT * keyword_similarity
    )


def _naive_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC already
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def days_between(date1: DateLike, date2: DateLike) -> int:
    """
    Whole days between two dates, ignoring sign.

    Two datetimes are compared by full 24-hour periods; anything else is
    reduced to calendar dates first.
    """
    if isinstance(date1, datetime) and isinstance(date2, datetime):
        if (date1.tzinfo is None) != (date2.tzinfo is None):
            date1 = _naive_utc(date1)
            date2 = _naive_utc(date2)
        return int(abs((date1 - date2).total_seconds()) // 86400)

    if isinstance(date1, datetime):
        date1 = date1.date()
    if isinstance(date2, datetime):
        date2 = date2.date()
    return abs((date1 - date2).days)


def date_proximity(date1: Optional[DateLike], date2: Optional[DateLike]) -> float:
    """Step score (0-10) that falls off as the dates move apart."""
    if date1 is None or date2 is None:
        return 0.0

    days = days_between(date1, date2)
    for upper_bound, score in DATE_PROXIMITY_STEPS:
        if days <= upper_bound:
            return score
    return 0.0


@lru_cache(maxsize=None)
def _word_pattern(term: str) -> 're.Pattern[str]':
    return re.compile(r'\b' + re.escape(term) + r'\b')


def normalize_location(location: Optional[str]) -> str:
    """Lowercase, trim and expand whole-word abbreviations ("lib" -> "library")."""
    if not location:
        return ''

    expanded = location.lower().strip()
    for abbreviation, full in LOCATION_ABBREVIATIONS.items():
        expanded = _word_pattern(abbreviation).sub(full, expanded)
    return ' '.join(expanded.split())


def _contains_phrase(text: str, phrase: str) -> bool:
    return bool(phrase) and _word_pattern(phrase).search(text) is not None


def locations_related(location1: Optional[str], location2: Optional[str]) -> bool:
    """
    True when two locations name the same place.

    Either normalized string contains the other as whole words, or both
    mention a term from the same synonym group.
    """
    norm1 = normalize_location(location1)
    norm2 = normalize_location(location2)

    if not norm1 or not norm2:
        return False

    if _contains_phrase(norm1, norm2) or _contains_phrase(norm2, norm1):
        return True

    for base, synonyms in LOCATION_SYNONYMS.items():
        terms = (base,) + synonyms
        in_first = any(_contains_phrase(norm1, term) for term in terms)
        in_second = any(_contains_phrase(norm2, term) for term in terms)
        if in_first and in_second:
            return True

    return False


def location_similarity(location1: Optional[str], location2: Optional[str]) -> float:
    """Location score (0-10) with abbreviation and synonym awareness."""
    if not location1 or not location2:
        return 0.0

    if locations_related(location1, location2):
        return 10.0

    norm1 = normalize_location(location1)
    norm2 = normalize_location(location2)
    similarity = string_similarity(norm1, norm2) * 10

    # Substring overlap that is not a whole-word match ("room" / "bathroom")
    if norm1 and norm2 and (norm1 in norm2 or norm2 in norm1):
        return min(10.0, similarity + LOCATION_PARTIAL_BONUS)

    return similarity


def cross_field_bonus(
    source_title: Optional[str],
    source_description: Optional[str],
    candidate_title: Optional[str],
    candidate_description: Optional[str],
    points_per_keyword: float = 2.0,
    cap: float = 10.0,
) -> float:
    """
    Reward keywords that moved between fields.

    Counts keywords shared by the source title and the candidate
    description, and by the candidate title and the source description.
    """
    source_title_keywords = keyword_set(source_title)
    candidate_description_keywords = keyword_set(candidate_description)
    candidate_title_keywords = keyword_set(candidate_title)
    source_description_keywords = keyword_set(source_description)

    shared = (
        len(source_title_keywords & candidate_description_keywords)
        + len(candidate_title_keywords & source_description_keywords)
    )
    return min(cap, shared * points_per_keyword)


def combined_text_similarity(
    source_title: Optional[str],
    source_description: Optional[str],
    candidate_title: Optional[str],
    candidate_description: Optional[str],
) -> float:
    """string_similarity over "title description" of each side."""
    source_combined = f"{source_title or ''} {source_description or ''}".strip()
    candidate_combined = f"{candidate_title or ''} {candidate_description or ''}".strip()
    return string_similarity(source_combined, candidate_combined)
