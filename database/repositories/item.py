import logging
from typing import List, Optional, Union

from sqlalchemy import select

from core.matching import ItemCategory, ItemKind, ItemRecord
from database.models import LostItem, FoundItem, OPEN_STATUS, MATCHED_STATUS, CLAIMED_STATUS
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

ItemRow = Union[LostItem, FoundItem]

_MODELS = {
    ItemKind.LOST: LostItem,
    ItemKind.FOUND: FoundItem,
}


def to_item_record(row: ItemRow) -> ItemRecord:
    """Project an ORM item onto the fields the matching engine scores."""
    return ItemRecord(
        id=str(row.id),
        kind=row.kind,
        title=row.title or '',
        description=row.description,
        category=ItemCategory(row.category),
        occurred_on=row.occurred_on,
        location=row.location,
    )


class ItemRepository(BaseRepository):
    def get_item(self, kind: ItemKind, item_id: str) -> Optional[ItemRow]:
        model = _MODELS[kind]
        stmt = select(model).where(model.id == str(item_id))
        return self.db.execute(stmt).scalar_one_or_none()

    def get_lost_item(self, item_id: str) -> Optional[LostItem]:
        return self.get_item(ItemKind.LOST, item_id)

    def get_found_item(self, item_id: str) -> Optional[FoundItem]:
        return self.get_item(ItemKind.FOUND, item_id)

    def list_open_items(self, kind: ItemKind) -> List[ItemRow]:
        """Items still waiting for a match, oldest report first."""
        model = _MODELS[kind]
        stmt = (
            select(model)
            .where(model.status == OPEN_STATUS)
            .order_by(model.created_at, model.id)
        )
        return self.db.execute(stmt).scalars().all()

    def mark_matched(self, lost_item: LostItem, found_item: FoundItem) -> None:
        lost_item.status = MATCHED_STATUS
        lost_item.matched_found_item_id = found_item.id
        found_item.status = MATCHED_STATUS
        logger.info(f"Linked lost item {lost_item.id} with found item {found_item.id}")

    def mark_claimed(self, lost_item: LostItem) -> bool:
        """
        Advance a lost item to CLAIMED.

        Returns:
            False if the item was already claimed (nothing written).
        """
        if lost_item.status == CLAIMED_STATUS:
            return False
        lost_item.status = CLAIMED_STATUS
        return True
