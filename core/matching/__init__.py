#!/usr/bin/env python3
"""
Matching Module - ranks found reports against lost reports and vice versa.

Public API:
- rank_candidates: ranked, filtered candidate list for one source item
- score_pair: composite score and breakdown for a single pair
- ItemRecord, ItemKind, ItemCategory, MatchResult, ScoreBreakdown

Modules:
- vocabulary.py: stopwords, location abbreviations and synonym groups
- similarity.py: string/date/location primitives
- engine.py: composite scoring and ranking
"""

from core.matching.models import (
    ItemRecord,
    ItemKind,
    ItemCategory,
    MatchResult,
    ScoreBreakdown,
)
from core.matching.engine import (
    rank_candidates,
    score_pair,
    DEFAULT_LIMIT,
    DEFAULT_MIN_SCORE,
)

__all__ = [
    'rank_candidates',
    'score_pair',
    'DEFAULT_LIMIT',
    'DEFAULT_MIN_SCORE',
    'ItemRecord',
    'ItemKind',
    'ItemCategory',
    'MatchResult',
    'ScoreBreakdown',
]
