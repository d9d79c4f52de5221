#!/usr/bin/env python3
"""
Matching Models - Data structures for the matching engine.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class ItemKind(str, Enum):
    """Which side of the registry an item report belongs to."""
    LOST = "LOST"
    FOUND = "FOUND"

    @property
    def opposite(self) -> "ItemKind":
        return ItemKind.FOUND if self is ItemKind.LOST else ItemKind.LOST


class ItemCategory(str, Enum):
    """Closed set of item categories."""
    ELECTRONICS = "Electronics"
    BOOKS = "Books"
    CLOTHING = "Clothing"
    ACCESSORIES = "Accessories"
    PERSONAL_ITEMS = "Personal Items"
    DOCUMENTS = "Documents"
    KEYS = "Keys"
    OTHER = "Other"


@dataclass(frozen=True)
class ItemRecord:
    """The fields of a lost or found report that the engine scores on."""
    id: str
    kind: ItemKind
    title: str
    description: Optional[str]
    category: ItemCategory
    occurred_on: Union[date, datetime]
    location: Optional[str] = None


@dataclass
class ScoreBreakdown:
    """Named sub-scores of a composite match score."""
    category_match: float = 0.0
    title_similarity: float = 0.0
    description_similarity: float = 0.0
    cross_field_bonus: float = 0.0
    combined_similarity: float = 0.0
    date_proximity: float = 0.0
    location_match: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        """Serialize using the camelCase keys of the public API."""
        return {
            'categoryMatch': self.category_match,
            'titleSimilarity': self.title_similarity,
            'descriptionSimilarity': self.description_similarity,
            'crossFieldBonus': self.cross_field_bonus,
            'combinedSimilarity': self.combined_similarity,
            'dateProximity': self.date_proximity,
            'locationMatch': self.location_match,
        }


@dataclass
class MatchResult:
    """A scored candidate. Computed on demand, never persisted."""
    item: ItemRecord
    score: float
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)

    @property
    def candidate_id(self) -> str:
        return self.item.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            'candidate_id': self.item.id,
            'score': self.score,
            'breakdown': self.breakdown.to_dict(),
        }
