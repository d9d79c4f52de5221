import uuid

from sqlalchemy import Column, Text, String, Date, DateTime, ForeignKey, Enum, Index, func
from sqlalchemy.orm import relationship

from core.matching import ItemCategory, ItemKind
from .base import Base

ITEM_STATUSES = ('PENDING', 'MATCHED', 'CLAIMED', 'RESOLVED', 'DONATED', 'DISPOSED', 'ARCHIVED')

# Items in this status can still be suggested as match candidates
OPEN_STATUS = 'PENDING'
MATCHED_STATUS = 'MATCHED'
CLAIMED_STATUS = 'CLAIMED'

category_enum = Enum(*[c.value for c in ItemCategory], name='item_category')
status_enum = Enum(*ITEM_STATUSES, name='item_status')


def new_id() -> str:
    return str(uuid.uuid4())


class LostItem(Base):
    """
    A report of something a user lost.

    Location is optional: owners often do not know where they lost it.
    """
    __tablename__ = 'lost_item'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False)  # Reporter, who becomes the handoff owner

    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default='')
    category = Column(category_enum, nullable=False)
    location = Column(Text, nullable=True)
    lost_date = Column(Date, nullable=False)

    status = Column(status_enum, nullable=False, default=OPEN_STATUS)
    matched_found_item_id = Column(String(36), ForeignKey('found_item.id', ondelete='SET NULL'), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    matched_found_item = relationship("FoundItem", foreign_keys=[matched_found_item_id])

    kind = ItemKind.LOST

    @property
    def occurred_on(self):
        return self.lost_date

    __table_args__ = (
        Index('idx_lost_item_status', 'status'),
        Index('idx_lost_item_category', 'category'),
        Index('idx_lost_item_user', 'user_id'),
    )


class FoundItem(Base):
    """A report of something found on campus, usually held by an administrator."""
    __tablename__ = 'found_item'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=True)  # Finder, if they registered the report

    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default='')
    category = Column(category_enum, nullable=False)
    location = Column(Text, nullable=False)
    found_date = Column(Date, nullable=False)

    status = Column(status_enum, nullable=False, default=OPEN_STATUS)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    kind = ItemKind.FOUND

    @property
    def occurred_on(self):
        return self.found_date

    __table_args__ = (
        Index('idx_found_item_status', 'status'),
        Index('idx_found_item_category', 'category'),
    )
