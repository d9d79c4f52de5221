#!/usr/bin/env python3
"""
Static vocabulary tables used by the similarity primitives.

Kept separate from the scoring code so the tables can grow without touching
the algorithms.
"""

from typing import Dict, FrozenSet, Tuple

STOPWORDS: FrozenSet[str] = frozenset({
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'by', 'for', 'from',
    'has', 'he', 'in', 'is', 'it', 'its', 'of', 'on', 'that', 'the',
    'to', 'was', 'will', 'with', 'i', 'my', 'me', 'have', 'had', 'this',
    'there', 'their', 'they', 'very', 'some', 'can', 'could', 'would',
})

# Minimum token length for a keyword (tokens must be strictly longer)
MIN_KEYWORD_LENGTH = 2

# Whole-word abbreviations expanded before location comparison
LOCATION_ABBREVIATIONS: Dict[str, str] = {
    'bball': 'basketball',
    'vball': 'volleyball',
    'rm': 'room',
    'bldg': 'building',
    'cr': 'comfort room',
    'lib': 'library',
    'caf': 'cafeteria',
    'admin': 'administration',
}

# Base term -> related terms. Two locations that both mention a term from
# the same group are considered the same place.
LOCATION_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    'court': ('basketball court', 'tennis court', 'volleyball court', 'badminton court', 'sports court'),
    'gym': ('gymnasium', 'fitness center', 'workout room'),
    'library': ('study hall', 'learning center'),
    'cafeteria': ('canteen', 'dining hall', 'food court'),
    'parking': ('parking lot', 'parking area', 'car park'),
    'restroom': ('bathroom', 'toilet', 'washroom', 'comfort room'),
    'hallway': ('corridor', 'hall', 'passage'),
    'classroom': ('class', 'room'),
    'office': ('administration office', 'faculty office'),
}
