#!/usr/bin/env python3
"""
Match service - business logic for match suggestions and pairing decisions.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from core.matching import ItemKind, MatchResult, rank_candidates, score_pair
from database.models import LostItem, FoundItem, OPEN_STATUS
from database.repository import LostFoundRepository
from database.repositories import to_item_record
from ..config import MatchingConfig, get_config
from ..exceptions import ItemNotFoundException, PairingConflictException

logger = logging.getLogger(__name__)


class MatchService:
    """Service for ranking candidates and recording pairing decisions."""

    def __init__(self, db: Session, matching: Optional[MatchingConfig] = None):
        self.db = db
        self.repo = LostFoundRepository(db)
        self.matching = matching or get_config().matching

    def find_matches(
        self,
        source_item_id: str,
        candidate_kind: ItemKind,
        limit: Optional[int] = None,
        min_score: Optional[float] = None
    ) -> List[MatchResult]:
        """
        Rank open items of `candidate_kind` against a source item.

        The source is the item of the opposite kind with id `source_item_id`.
        Pairings declined for that source are never suggested.

        Args:
            source_item_id: Id of the item being matched.
            candidate_kind: Kind of the items to suggest.
            limit: Maximum results; defaults to matching.limit.
            min_score: Score floor; defaults to matching.min_score.

        Returns:
            Ranked match results, best first.

        Raises:
            ItemNotFoundException: If the source item does not exist.
        """
        source_kind = candidate_kind.opposite
        source = self.repo.items.get_item(source_kind, source_item_id)
        if source is None:
            raise ItemNotFoundException(f"{source_kind.value.capitalize()} item {source_item_id} not found")

        declined_ids = self.repo.declined.get_declined_candidate_ids(source_kind, source.id)
        candidates = [to_item_record(row) for row in self.repo.items.list_open_items(candidate_kind)]

        results = rank_candidates(
            to_item_record(source),
            candidates,
            declined_ids=declined_ids,
            limit=limit if limit is not None else self.matching.limit,
            min_score=min_score if min_score is not None else self.matching.min_score,
        )

        logger.info(
            f"Found {len(results)} {candidate_kind.value.lower()} candidate(s) "
            f"for {source_kind.value.lower()} item {source_item_id}"
        )
        return results

    def decline(
        self,
        lost_item_id: str,
        found_item_id: str,
        declined_by: str,
        reason: Optional[str] = None
    ) -> None:
        """
        Record that a pairing must not be suggested again.

        Declining the same pair twice updates the existing record.

        Raises:
            ItemNotFoundException: If either item does not exist.
        """
        lost_item, found_item = self._load_pair(lost_item_id, found_item_id)

        self.repo.declined.upsert_declined(lost_item.id, found_item.id, declined_by, reason)

        details = {'reason': reason} if reason else {}
        self.repo.activity.log(
            declined_by, 'DECLINE_MATCH', 'LOST', lost_item.id, lost_item.title,
            dict(details, foundItemId=found_item.id)
        )
        self.repo.activity.log(
            declined_by, 'DECLINE_MATCH', 'FOUND', found_item.id, found_item.title,
            dict(details, lostItemId=lost_item.id)
        )
        self.repo.commit()

        logger.info(f"Pairing {lost_item.id} / {found_item.id} declined by {declined_by}")

    def confirm_pairing(self, lost_item_id: str, found_item_id: str, confirmed_by: str) -> MatchResult:
        """
        Link a lost item with a found item and mark both MATCHED.

        Returns:
            The pair's score at the time of confirmation (recorded in the audit).

        Raises:
            ItemNotFoundException: If either item does not exist.
            PairingConflictException: If either item is no longer open.
        """
        lost_item, found_item = self._load_pair(lost_item_id, found_item_id)

        if lost_item.status != OPEN_STATUS:
            raise PairingConflictException(f"Lost item {lost_item.id} is already {lost_item.status.lower()}")
        if found_item.status != OPEN_STATUS:
            raise PairingConflictException(f"Found item {found_item.id} is already {found_item.status.lower()}")

        result = score_pair(to_item_record(lost_item), to_item_record(found_item))

        self.repo.items.mark_matched(lost_item, found_item)
        self.repo.activity.log(
            confirmed_by, 'MATCH', 'LOST', lost_item.id, lost_item.title,
            {'foundItemId': found_item.id, 'matchScore': result.score}
        )
        self.repo.activity.log(
            confirmed_by, 'MATCH', 'FOUND', found_item.id, found_item.title,
            {'lostItemId': lost_item.id, 'matchScore': result.score}
        )
        self.repo.commit()

        return result

    def _load_pair(self, lost_item_id: str, found_item_id: str) -> Tuple[LostItem, FoundItem]:
        lost_item = self.repo.items.get_lost_item(lost_item_id)
        if lost_item is None:
            raise ItemNotFoundException(f"Lost item {lost_item_id} not found")

        found_item = self.repo.items.get_found_item(found_item_id)
        if found_item is None:
            raise ItemNotFoundException(f"Found item {found_item_id} not found")

        return lost_item, found_item
