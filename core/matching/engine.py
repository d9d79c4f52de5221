#!/usr/bin/env python3
"""
Matching Engine - ranks opposite-kind item reports against a source report.

Composite score (0-100):
    categoryMatch           40 if categories are equal, else 0
    titleSimilarity         0-20
    descriptionSimilarity   0-15
    crossFieldBonus         0-10
    combinedSimilarity      0-5
    dateProximity           0-10
    locationMatch           0-10

The six non-category signals share a budget of 60 points, so a category
mismatch always costs exactly 40 points and the total never exceeds 100.
"""

import logging
from typing import Collection, Iterable, List, Sequence

from core.matching.models import ItemRecord, MatchResult, ScoreBreakdown
from core.matching import similarity

logger = logging.getLogger(__name__)

CATEGORY_POINTS = 40.0
TITLE_POINTS = 20.0
DESCRIPTION_POINTS = 15.0
COMBINED_POINTS = 5.0
SIGNAL_BUDGET = 60.0

DEFAULT_LIMIT = 10
DEFAULT_MIN_SCORE = 20.0


def _round1(value: float) -> float:
    return round(value, 1)


def score_pair(source: ItemRecord, candidate: ItemRecord) -> MatchResult:
    """
    Score one candidate against a source item.

    Every signal is symmetric, so scoring a lost item against a found item
    gives the same result as the reverse.
    """
    category_match = CATEGORY_POINTS if source.category == candidate.category else 0.0

    title_similarity = similarity.string_similarity(source.title, candidate.title) * TITLE_POINTS
    description_similarity = similarity.string_similarity(
        source.description, candidate.description
    ) * DESCRIPTION_POINTS

    cross_field_bonus = similarity.cross_field_bonus(
        source.title, source.description,
        candidate.title, candidate.description,
    )
    combined_similarity = similarity.combined_text_similarity(
        source.title, source.description,
        candidate.title, candidate.description,
    ) * COMBINED_POINTS

    date_proximity = similarity.date_proximity(source.occurred_on, candidate.occurred_on)
    location_match = similarity.location_similarity(source.location, candidate.location)

    signals = (
        title_similarity + description_similarity + cross_field_bonus
        + combined_similarity + date_proximity + location_match
    )
    total = category_match + min(SIGNAL_BUDGET, signals)

    breakdown = ScoreBreakdown(
        category_match=category_match,
        title_similarity=_round1(title_similarity),
        description_similarity=_round1(description_similarity),
        cross_field_bonus=cross_field_bonus,
        combined_similarity=_round1(combined_similarity),
        date_proximity=date_proximity,
        location_match=_round1(location_match),
    )

    return MatchResult(item=candidate, score=_round1(total), breakdown=breakdown)


def rank_candidates(
    source: ItemRecord,
    candidates: Iterable[ItemRecord],
    declined_ids: Collection[str] = (),
    limit: int = DEFAULT_LIMIT,
    min_score: float = DEFAULT_MIN_SCORE,
) -> List[MatchResult]:
    """
    Rank candidates for a source item.

    Args:
        source: The item being matched.
        candidates: Opposite-kind items to score.
        declined_ids: Candidate ids that must never be suggested for this source.
        limit: Maximum number of results.
        min_score: Results scoring below this are dropped.

    Returns:
        Results sorted by score, highest first. Equal scores keep input order.
    """
    declined = {str(candidate_id) for candidate_id in declined_ids}
    eligible = [c for c in candidates if str(c.id) not in declined]

    pool = _prefer_same_category(source, eligible)

    scored = [score_pair(source, candidate) for candidate in pool]
    scored.sort(key=lambda result: result.score, reverse=True)

    results = [result for result in scored if result.score >= min_score][:max(0, limit)]

    logger.debug(
        f"Ranked {len(pool)} candidate(s) for {source.kind.value} item {source.id}: "
        f"{len(results)} above {min_score}, {len(eligible) - len(pool)} filtered by category, "
        f"{len(declined)} declined"
    )
    return results


def _prefer_same_category(source: ItemRecord, candidates: Sequence[ItemRecord]) -> List[ItemRecord]:
    """Keep same-category candidates; fall back to all when there are none."""
    same_category = [c for c in candidates if c.category == source.category]
    return same_category if same_category else list(candidates)
