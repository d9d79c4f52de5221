from sqlalchemy import Column, Text, String, DateTime, JSON, Enum, Index, func

from .base import Base
from .item import new_id

ACTIVITY_ACTIONS = ('MATCH', 'DECLINE_MATCH', 'HANDOFF_CREATE', 'HANDOFF_RESET', 'CLAIM')


class ActivityLog(Base):
    """Append-only audit trail of administrative actions on items."""
    __tablename__ = 'activity_log'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False)
    action = Column(Enum(*ACTIVITY_ACTIONS, name='activity_action'), nullable=False)

    item_type = Column(Enum('LOST', 'FOUND', name='item_kind'), nullable=False)
    item_id = Column(String(36), nullable=False)
    item_title = Column(Text, nullable=False)
    details = Column(JSON, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_activity_item', 'item_type', 'item_id'),
        Index('idx_activity_created', 'created_at'),
    )
