import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from database.models import ActivityLog
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ActivityLogRepository(BaseRepository):
    def log(
        self,
        user_id: str,
        action: str,
        item_type: str,
        item_id: str,
        item_title: str,
        details: Optional[Dict[str, Any]] = None
    ) -> ActivityLog:
        entry = ActivityLog(
            user_id=str(user_id),
            action=action,
            item_type=item_type,
            item_id=str(item_id),
            item_title=item_title,
            details=details or {},
        )
        self.db.add(entry)
        return entry

    def get_for_item(self, item_type: str, item_id: str, action: Optional[str] = None) -> List[ActivityLog]:
        stmt = select(ActivityLog).where(
            ActivityLog.item_type == item_type,
            ActivityLog.item_id == str(item_id)
        )
        if action is not None:
            stmt = stmt.where(ActivityLog.action == action)
        stmt = stmt.order_by(ActivityLog.created_at)
        return self.db.execute(stmt).scalars().all()
