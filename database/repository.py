import logging

from sqlalchemy.orm import Session

from database.repositories import (
    ItemRepository,
    DeclinedMatchRepository,
    HandoffRepository,
    ActivityLogRepository,
)

logger = logging.getLogger(__name__)


class LostFoundRepository:
    """
    All repositories sharing one Session, so a unit of work spans them.

    Usage:
        repo = LostFoundRepository(db)
        lost = repo.items.get_lost_item(lost_item_id)
        repo.activity.log(...)
        repo.commit()
    """

    def __init__(self, db: Session):
        self.db = db
        self.items = ItemRepository(db)
        self.declined = DeclinedMatchRepository(db)
        self.handoffs = HandoffRepository(db)
        self.activity = ActivityLogRepository(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
