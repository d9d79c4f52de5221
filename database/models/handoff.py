from sqlalchemy import Column, Text, String, Boolean, Integer, DateTime, ForeignKey, Enum, Index, func
from sqlalchemy.orm import relationship

from core.handoff import HandoffStatus
from .base import Base
from .item import new_id

handoff_status_enum = Enum(*[s.value for s in HandoffStatus], name='handoff_status')


class HandoffSession(Base):
    """
    Persisted state of a two-party handoff verification.

    Mutated only through HandoffRepository.apply_state, under a row lock.
    A persisted ACTIVE status may already be expired; readers derive that
    from expires_at.
    """
    __tablename__ = 'handoff_session'

    id = Column(String(36), primary_key=True, default=new_id)
    lost_item_id = Column(String(36), ForeignKey('lost_item.id', ondelete='CASCADE'), nullable=False)
    found_item_id = Column(String(36), ForeignKey('found_item.id', ondelete='CASCADE'), nullable=False)

    owner_user_id = Column(Text, nullable=False)
    counterpart_user_id = Column(Text, nullable=False)

    owner_code = Column(String(12), nullable=False)
    counterpart_code = Column(String(12), nullable=False)

    owner_attempts = Column(Integer, nullable=False, default=0)
    counterpart_attempts = Column(Integer, nullable=False, default=0)
    owner_verified_counterpart = Column(Boolean, nullable=False, default=False)
    counterpart_verified_owner = Column(Boolean, nullable=False, default=False)

    locked = Column(Boolean, nullable=False, default=False)
    status = Column(handoff_status_enum, nullable=False, default=HandoffStatus.ACTIVE.value)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    lost_item = relationship("LostItem")
    found_item = relationship("FoundItem")

    __table_args__ = (
        Index('idx_handoff_lost_item', 'lost_item_id'),
        Index('idx_handoff_status', 'status'),
    )
