#!/usr/bin/env python3
"""
Handoff Models - state snapshot, enums and results for the handoff protocol.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class HandoffStatus(str, Enum):
    """Lifecycle of a handoff session."""
    ACTIVE = "ACTIVE"
    LOCKED = "LOCKED"
    EXPIRED = "EXPIRED"
    COMPLETED = "COMPLETED"


class PartyRole(str, Enum):
    """The two verifying parties. Each verifies the other's code."""
    OWNER = "OWNER"
    COUNTERPART = "COUNTERPART"

    @property
    def other(self) -> "PartyRole":
        return PartyRole.COUNTERPART if self is PartyRole.OWNER else PartyRole.OWNER


class SubmitOutcome(str, Enum):
    """Result of a single code submission."""
    VERIFIED = "VERIFIED"
    COMPLETED = "COMPLETED"
    INCORRECT_CODE = "INCORRECT_CODE"
    LOCKED = "LOCKED"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class HandoffState:
    """
    Immutable snapshot of a handoff session.

    The state machine never mutates a snapshot; every transition returns a
    new one which the store adapter writes back.
    """
    id: Optional[str]
    lost_item_id: str
    found_item_id: str
    owner_user_id: str
    counterpart_user_id: str
    owner_code: str
    counterpart_code: str
    expires_at: datetime
    owner_attempts: int = 0
    counterpart_attempts: int = 0
    owner_verified_counterpart: bool = False
    counterpart_verified_owner: bool = False
    locked: bool = False
    status: HandoffStatus = HandoffStatus.ACTIVE

    def code_for(self, role: PartyRole) -> str:
        if role is PartyRole.OWNER:
            return self.owner_code
        return self.counterpart_code

    def attempts_for(self, role: PartyRole) -> int:
        if role is PartyRole.OWNER:
            return self.owner_attempts
        return self.counterpart_attempts

    @property
    def both_verified(self) -> bool:
        return self.owner_verified_counterpart and self.counterpart_verified_owner

    def role_of(self, user_id: str) -> Optional[PartyRole]:
        """Infer which party a user is, or None for outsiders."""
        if str(user_id) == str(self.owner_user_id):
            return PartyRole.OWNER
        if str(user_id) == str(self.counterpart_user_id):
            return PartyRole.COUNTERPART
        return None


@dataclass(frozen=True)
class SubmitResult:
    """New state plus what happened. `state` must always be persisted."""
    state: HandoffState
    outcome: SubmitOutcome

    @property
    def completed(self) -> bool:
        return self.outcome is SubmitOutcome.COMPLETED

    def remaining_attempts(self, role: PartyRole, max_attempts: int) -> int:
        return max(0, max_attempts - self.state.attempts_for(role))


@dataclass(frozen=True)
class HandoffView:
    """What one party may see of a session: never the other party's code."""
    id: Optional[str]
    role: PartyRole
    status: HandoffStatus
    expires_at: datetime
    locked: bool
    my_code: str
    owner_verified_counterpart: bool
    counterpart_verified_owner: bool
    owner_attempts: int
    counterpart_attempts: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'role': self.role.value,
            'status': self.status.value,
            'expires_at': self.expires_at.isoformat(),
            'locked': self.locked,
            'my_code': self.my_code,
            'owner_verified_counterpart': self.owner_verified_counterpart,
            'counterpart_verified_owner': self.counterpart_verified_owner,
            'owner_attempts': self.owner_attempts,
            'counterpart_attempts': self.counterpart_attempts,
        }
