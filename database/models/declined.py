from sqlalchemy import Column, Text, String, DateTime, ForeignKey, UniqueConstraint, Index, func

from .base import Base
from .item import new_id


class DeclinedMatch(Base):
    """
    An administrator's decision that a lost/found pair is not a match.

    The matching service never suggests a declined pair again, in either
    direction.
    """
    __tablename__ = 'declined_match'

    id = Column(String(36), primary_key=True, default=new_id)
    lost_item_id = Column(String(36), ForeignKey('lost_item.id', ondelete='CASCADE'), nullable=False)
    found_item_id = Column(String(36), ForeignKey('found_item.id', ondelete='CASCADE'), nullable=False)

    declined_by = Column(Text, nullable=False)
    reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('lost_item_id', 'found_item_id', name='uq_declined_match_pair'),
        Index('idx_declined_match_lost', 'lost_item_id'),
        Index('idx_declined_match_found', 'found_item_id'),
    )
