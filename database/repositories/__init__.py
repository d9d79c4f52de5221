from database.repositories.base import BaseRepository
from database.repositories.item import ItemRepository, to_item_record
from database.repositories.declined import DeclinedMatchRepository
from database.repositories.handoff import HandoffRepository, to_handoff_state
from database.repositories.activity import ActivityLogRepository

__all__ = [
    'BaseRepository',
    'ItemRepository',
    'to_item_record',
    'DeclinedMatchRepository',
    'HandoffRepository',
    'to_handoff_state',
    'ActivityLogRepository',
]
