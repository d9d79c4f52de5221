#!/usr/bin/env python3
"""
Handoff State Machine - two-party code exchange confirming an item transfer.

Each party is shown its own one-time code and must type the code shown on
the other party's screen. The machine is pure: it takes a HandoffState and
returns a new one, leaving persistence and side effects to the caller.

    ACTIVE --both verified--> COMPLETED
    ACTIVE --attempt limit reached--> LOCKED
    ACTIVE --now > expires_at--> EXPIRED (derived at read time)
    any    --reset--> ACTIVE
"""

import logging
import secrets
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from core.handoff.models import (
    HandoffState,
    HandoffStatus,
    HandoffView,
    PartyRole,
    SubmitOutcome,
    SubmitResult,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=10)
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_CODE_LENGTH = 6


class InvalidCodeFormat(ValueError):
    """Raised when a submitted code is not `code_length` ASCII digits."""
    pass


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Random numeric code of exactly `length` digits (no leading zero)."""
    lowest = 10 ** (length - 1)
    highest = 10 ** length - 1
    return str(lowest + secrets.randbelow(highest - lowest + 1))


class HandoffStateMachine:
    """Pure transition logic over HandoffState snapshots."""

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        code_length: int = DEFAULT_CODE_LENGTH,
        clock: Callable[[], datetime] = utc_now,
        code_factory: Callable[[int], str] = generate_code,
    ):
        self.ttl = ttl
        self.max_attempts = max_attempts
        self.code_length = code_length
        self._clock = clock
        self._code_factory = code_factory

    def now(self) -> datetime:
        return self._clock()

    def create(
        self,
        lost_item_id: str,
        found_item_id: str,
        owner_user_id: str,
        counterpart_user_id: str,
        session_id: Optional[str] = None,
    ) -> HandoffState:
        """Start a new ACTIVE session with fresh codes and zeroed counters."""
        owner_code, counterpart_code = self._new_code_pair()
        return HandoffState(
            id=session_id,
            lost_item_id=str(lost_item_id),
            found_item_id=str(found_item_id),
            owner_user_id=str(owner_user_id),
            counterpart_user_id=str(counterpart_user_id),
            owner_code=owner_code,
            counterpart_code=counterpart_code,
            expires_at=self.now() + self.ttl,
        )

    def submit(self, state: HandoffState, role: PartyRole, code: str) -> SubmitResult:
        """
        Apply one code submission by `role`.

        The attempt limit is checked before counting: the call that finds the
        counter already at max_attempts locks the session without comparing
        the code. Every evaluated submission increments the counter, right
        or wrong.

        Raises:
            InvalidCodeFormat: If `code` is not a well-formed code.
        """
        self.validate_code(code)

        if state.locked:
            return SubmitResult(state, SubmitOutcome.LOCKED)

        if self.is_expired(state) or state.status is not HandoffStatus.ACTIVE:
            return SubmitResult(state, SubmitOutcome.EXPIRED)

        if state.attempts_for(role) >= self.max_attempts:
            logger.info(f"Handoff {state.id} locked: {role.value} exhausted {self.max_attempts} attempts")
            locked_state = replace(state, locked=True, status=HandoffStatus.LOCKED)
            return SubmitResult(locked_state, SubmitOutcome.LOCKED)

        state = self._count_attempt(state, role)

        if not secrets.compare_digest(code, state.code_for(role.other)):
            return SubmitResult(state, SubmitOutcome.INCORRECT_CODE)

        state = self._mark_verified(state, role)

        if state.both_verified:
            logger.info(f"Handoff {state.id} completed")
            return SubmitResult(replace(state, status=HandoffStatus.COMPLETED), SubmitOutcome.COMPLETED)

        return SubmitResult(state, SubmitOutcome.VERIFIED)

    def reset(self, state: HandoffState) -> HandoffState:
        """Restart the protocol from scratch, whatever the current state."""
        owner_code, counterpart_code = self._new_code_pair()
        return replace(
            state,
            owner_code=owner_code,
            counterpart_code=counterpart_code,
            owner_attempts=0,
            counterpart_attempts=0,
            owner_verified_counterpart=False,
            counterpart_verified_owner=False,
            locked=False,
            status=HandoffStatus.ACTIVE,
            expires_at=self.now() + self.ttl,
        )

    def is_expired(self, state: HandoffState) -> bool:
        return self.now() > state.expires_at

    def effective_status(self, state: HandoffState) -> HandoffStatus:
        """Persisted status, with ACTIVE reported as EXPIRED once past expiry."""
        if state.status is HandoffStatus.ACTIVE and self.is_expired(state):
            return HandoffStatus.EXPIRED
        return state.status

    def view_for(self, state: HandoffState, role: PartyRole) -> HandoffView:
        """Role-scoped snapshot: the caller's own code, never the other's."""
        return HandoffView(
            id=state.id,
            role=role,
            status=self.effective_status(state),
            expires_at=state.expires_at,
            locked=state.locked,
            my_code=state.code_for(role),
            owner_verified_counterpart=state.owner_verified_counterpart,
            counterpart_verified_owner=state.counterpart_verified_owner,
            owner_attempts=state.owner_attempts,
            counterpart_attempts=state.counterpart_attempts,
        )

    def validate_code(self, code: object) -> str:
        if (
            not isinstance(code, str)
            or len(code) != self.code_length
            or not code.isascii()
            or not code.isdigit()
        ):
            raise InvalidCodeFormat(f"Code must be exactly {self.code_length} digits")
        return code

    # Private helpers

    def _new_code_pair(self):
        owner_code = self._code_factory(self.code_length)
        counterpart_code = self._code_factory(self.code_length)
        while counterpart_code == owner_code:
            counterpart_code = self._code_factory(self.code_length)
        return owner_code, counterpart_code

    @staticmethod
    def _count_attempt(state: HandoffState, role: PartyRole) -> HandoffState:
        if role is PartyRole.OWNER:
            return replace(state, owner_attempts=state.owner_attempts + 1)
        if role is PartyRole.COUNTERPART:
            return replace(state, counterpart_attempts=state.counterpart_attempts + 1)
        raise ValueError(f"Unknown role: {role!r}")

    @staticmethod
    def _mark_verified(state: HandoffState, role: PartyRole) -> HandoffState:
        if role is PartyRole.OWNER:
            return replace(state, owner_verified_counterpart=True)
        if role is PartyRole.COUNTERPART:
            return replace(state, counterpart_verified_owner=True)
        raise ValueError(f"Unknown role: {role!r}")
