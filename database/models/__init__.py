from .base import Base
from .item import LostItem, FoundItem, ITEM_STATUSES, OPEN_STATUS, MATCHED_STATUS, CLAIMED_STATUS
from .declined import DeclinedMatch
from .handoff import HandoffSession
from .activity import ActivityLog, ACTIVITY_ACTIONS

__all__ = [
    'Base',
    'LostItem',
    'FoundItem',
    'ITEM_STATUSES',
    'OPEN_STATUS',
    'MATCHED_STATUS',
    'CLAIMED_STATUS',
    'DeclinedMatch',
    'HandoffSession',
    'ActivityLog',
    'ACTIVITY_ACTIONS',
]
