"""Business logic services."""

from .match_service import MatchService
from .handoff_service import HandoffService, ClaimItemSink, load_handoff_view
