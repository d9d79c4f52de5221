import logging
from typing import Optional, Set

from sqlalchemy import select

from core.matching import ItemKind
from database.models import DeclinedMatch
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class DeclinedMatchRepository(BaseRepository):
    def get_declined(self, lost_item_id: str, found_item_id: str) -> Optional[DeclinedMatch]:
        stmt = select(DeclinedMatch).where(
            DeclinedMatch.lost_item_id == str(lost_item_id),
            DeclinedMatch.found_item_id == str(found_item_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def upsert_declined(
        self,
        lost_item_id: str,
        found_item_id: str,
        declined_by: str,
        reason: Optional[str] = None
    ) -> DeclinedMatch:
        declined = self.get_declined(lost_item_id, found_item_id)

        if declined is None:
            declined = DeclinedMatch(
                lost_item_id=str(lost_item_id),
                found_item_id=str(found_item_id),
                declined_by=str(declined_by),
                reason=reason,
            )
            self.db.add(declined)
        else:
            declined.declined_by = str(declined_by)
            declined.reason = reason

        self.db.flush()
        return declined

    def get_declined_candidate_ids(self, source_kind: ItemKind, source_id: str) -> Set[str]:
        """Ids of opposite-kind items that must not be suggested for this source."""
        if source_kind is ItemKind.LOST:
            stmt = select(DeclinedMatch.found_item_id).where(
                DeclinedMatch.lost_item_id == str(source_id)
            )
        else:
            stmt = select(DeclinedMatch.lost_item_id).where(
                DeclinedMatch.found_item_id == str(source_id)
            )
        return {str(candidate_id) for candidate_id in self.db.execute(stmt).scalars().all()}
