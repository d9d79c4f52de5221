"""
Handoff Interfaces - seams between the pure state machine and its effects.
"""
from abc import ABC, abstractmethod

from core.handoff.models import HandoffState


class CompletionSink(ABC):
    """
    Receives the side effects of a completed handoff.

    Called exactly once per ACTIVE -> COMPLETED transition, inside the same
    transaction that persists the COMPLETED state.
    """

    @abstractmethod
    def on_completed(self, state: HandoffState, actor_user_id: str) -> None:
        """
        Apply completion effects (mark the lost item claimed, write audit).

        Args:
            state: The session state that just reached COMPLETED
            actor_user_id: User whose submission completed the handoff
        """
        pass

