#!/usr/bin/env python3
"""
Handoff service - persistence, authorization and events around the
handoff state machine.

Every mutation runs as: lock the session row, apply one pure transition,
write the new state back (plus completion effects), commit, then publish
the session id on the event bridge. Rejected submissions are committed too,
so a wrong code always costs an attempt.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, sessionmaker

from core.handoff import (
    CompletionSink,
    HandoffState,
    HandoffStateMachine,
    HandoffStatus,
    HandoffView,
    InvalidCodeFormat,
    PartyRole,
    SubmitOutcome,
    SubmitResult,
)
from database.models import CLAIMED_STATUS, HandoffSession
from database.repository import LostFoundRepository
from database.repositories import to_handoff_state
from database.uow import lostfound_uow
from notification import HandoffEventBridge
from ..dependencies import Caller
from ..models.responses import ActiveHandoffSummary
from ..exceptions import (
    CodeValidationException,
    ForbiddenException,
    HandoffExpiredException,
    HandoffLockedException,
    HandoffNotFoundException,
    IncorrectCodeException,
    ItemNotFoundException,
    PairingConflictException,
)

logger = logging.getLogger(__name__)


class ClaimItemSink(CompletionSink):
    """Marks the lost item CLAIMED and writes the CLAIM audit row."""

    def __init__(self, repo: LostFoundRepository):
        self.repo = repo

    def on_completed(self, state: HandoffState, actor_user_id: str) -> None:
        lost_item = self.repo.items.get_lost_item(state.lost_item_id)
        if lost_item is None:
            logger.warning(f"Handoff {state.id} completed but lost item {state.lost_item_id} is gone")
            return

        if not self.repo.items.mark_claimed(lost_item):
            logger.info(f"Lost item {lost_item.id} already claimed; handoff {state.id} changes nothing")
            return

        self.repo.activity.log(
            actor_user_id, 'CLAIM', 'LOST', lost_item.id, lost_item.title,
            {'handoffSessionId': state.id, 'handoff': 'COMPLETE'}
        )
        logger.info(f"Lost item {lost_item.id} claimed via handoff {state.id}")


def resolve_role(state: HandoffState, caller: Caller) -> PartyRole:
    """
    Which party the caller acts as.

    Administrators who are not the owner act for the counterpart, since the
    counterpart is the front desk holding the item.

    Raises:
        ForbiddenException: If the caller is not a participant.
    """
    role = state.role_of(caller.user_id)
    if role is not None:
        return role
    if caller.is_admin:
        return PartyRole.COUNTERPART
    raise ForbiddenException("Not a participant of this session")


def load_handoff_view(
    session_factory: sessionmaker,
    machine: HandoffStateMachine,
    session_id: str,
    caller: Caller
) -> Optional[HandoffView]:
    """
    Fresh role-scoped view in its own unit of work.

    Returns None when the session is gone or the caller may not see it.
    Used by event streams, which outlive any request-scoped session.
    """
    with lostfound_uow(session_factory) as repo:
        row = repo.handoffs.get_session(session_id)
        if row is None:
            return None
        state = to_handoff_state(row)

    role = state.role_of(caller.user_id)
    if role is None and caller.is_admin:
        role = PartyRole.COUNTERPART
    if role is None:
        return None
    return machine.view_for(state, role)


class HandoffService:
    """Service for creating, reading and advancing handoff sessions."""

    def __init__(
        self,
        db: Session,
        machine: HandoffStateMachine,
        bridge: HandoffEventBridge,
        sink: Optional[CompletionSink] = None
    ):
        self.db = db
        self.repo = LostFoundRepository(db)
        self.machine = machine
        self.bridge = bridge
        self.sink = sink or ClaimItemSink(self.repo)

    def create(self, lost_item_id: str, found_item_id: str, caller: Caller) -> HandoffView:
        """
        Open a session between the lost item's reporter and the caller.

        Returns:
            The caller's (counterpart's) view; the owner's code is not in it.

        Raises:
            ItemNotFoundException: If either item does not exist.
            PairingConflictException: If the item is claimed, the caller owns
                it, or a live session already exists for it.
        """
        lost_item = self.repo.items.get_lost_item(lost_item_id)
        if lost_item is None:
            raise ItemNotFoundException(f"Lost item {lost_item_id} not found")
        found_item = self.repo.items.get_found_item(found_item_id)
        if found_item is None:
            raise ItemNotFoundException(f"Found item {found_item_id} not found")

        if lost_item.status == CLAIMED_STATUS:
            raise PairingConflictException(f"Lost item {lost_item.id} is already claimed")
        if str(lost_item.user_id) == caller.user_id:
            raise PairingConflictException("The owner cannot act as the counterpart")

        existing = self.repo.handoffs.get_latest_active_for_lost_item(lost_item.id)
        if existing is not None:
            existing_state = to_handoff_state(existing)
            if not self.machine.is_expired(existing_state):
                raise PairingConflictException(
                    f"Handoff {existing.id} is already active for lost item {lost_item.id}"
                )
            # Persist the derived status so the stale session stops showing as active
            existing.status = HandoffStatus.EXPIRED.value

        state = self.machine.create(
            lost_item_id=lost_item.id,
            found_item_id=found_item.id,
            owner_user_id=lost_item.user_id,
            counterpart_user_id=caller.user_id,
        )
        row = self.repo.handoffs.add_session(state)
        state = to_handoff_state(row)

        self.repo.activity.log(
            caller.user_id, 'HANDOFF_CREATE', 'LOST', lost_item.id, lost_item.title,
            {'handoffSessionId': row.id, 'foundItemId': found_item.id}
        )
        self.repo.commit()

        logger.info(f"Handoff {row.id} created for lost item {lost_item.id} by {caller.user_id}")
        self.bridge.publish(row.id)

        return self.machine.view_for(state, PartyRole.COUNTERPART)

    def get_view(self, session_id: str, caller: Caller) -> HandoffView:
        """
        Raises:
            HandoffNotFoundException: If the session does not exist.
            ForbiddenException: If the caller is not a participant.
        """
        state = to_handoff_state(self._get_row(session_id))
        return self.machine.view_for(state, resolve_role(state, caller))

    def get_by_lost_item(self, lost_item_id: str, caller: Caller) -> Optional[HandoffView]:
        """Latest ACTIVE session for a lost item, or None."""
        row = self.repo.handoffs.get_latest_active_for_lost_item(lost_item_id)
        if row is None:
            return None
        state = to_handoff_state(row)
        return self.machine.view_for(state, resolve_role(state, caller))

    def list_active(self) -> List[ActiveHandoffSummary]:
        """Code-free summaries of sessions whose persisted status is ACTIVE."""
        summaries = []
        for row in self.repo.handoffs.list_active():
            state = to_handoff_state(row)
            summaries.append(ActiveHandoffSummary(
                id=state.id,
                lost_item_id=state.lost_item_id,
                found_item_id=state.found_item_id,
                owner_user_id=state.owner_user_id,
                counterpart_user_id=state.counterpart_user_id,
                status=self.machine.effective_status(state).value,
                expires_at=state.expires_at.isoformat(),
                owner_verified_counterpart=state.owner_verified_counterpart,
                counterpart_verified_owner=state.counterpart_verified_owner,
            ))
        return summaries

    def submit(self, session_id: str, caller: Caller, role: PartyRole, code: str) -> SubmitResult:
        """
        Apply one code submission.

        Returns:
            The result for VERIFIED and COMPLETED outcomes.

        Raises:
            HandoffNotFoundException: If the session does not exist.
            ForbiddenException: If the caller may not submit as `role`.
            CodeValidationException: If the code is malformed (no attempt used).
            HandoffLockedException: If the session is or becomes locked.
            HandoffExpiredException: If the session expired or is finished.
            IncorrectCodeException: If the code is wrong.
        """
        row = self._get_row(session_id, for_update=True)
        state = to_handoff_state(row)

        if resolve_role(state, caller) is not role:
            self.repo.rollback()
            raise ForbiddenException(f"Caller may not submit as {role.value}")

        try:
            result = self.machine.submit(state, role, code)
        except InvalidCodeFormat as e:
            self.repo.rollback()
            raise CodeValidationException(str(e))

        changed = result.state != state
        if changed:
            self.repo.handoffs.apply_state(row, result.state)
        if result.completed:
            self.sink.on_completed(result.state, caller.user_id)
        self.repo.commit()

        if changed:
            self.bridge.publish(state.id)

        self._raise_for_outcome(result, role)
        return result

    def reset(self, session_id: str, caller: Caller) -> HandoffState:
        """
        Restart a session with fresh codes and a new expiry.

        Raises:
            HandoffNotFoundException: If the session does not exist.
        """
        row = self._get_row(session_id, for_update=True)
        state = self.machine.reset(to_handoff_state(row))
        self.repo.handoffs.apply_state(row, state)

        lost_item = row.lost_item
        self.repo.activity.log(
            caller.user_id, 'HANDOFF_RESET', 'LOST', state.lost_item_id,
            lost_item.title if lost_item is not None else 'Handoff Reset',
            {'handoffSessionId': state.id}
        )
        self.repo.commit()

        logger.info(f"Handoff {state.id} reset by {caller.user_id}")
        self.bridge.publish(state.id)
        return state

    # Private helpers

    def _get_row(self, session_id: str, for_update: bool = False) -> HandoffSession:
        row = self.repo.handoffs.get_session(session_id, for_update=for_update)
        if row is None:
            raise HandoffNotFoundException(f"Handoff session {session_id} not found")
        return row

    def _raise_for_outcome(self, result: SubmitResult, role: PartyRole) -> None:
        session_id = result.state.id

        if result.outcome is SubmitOutcome.LOCKED:
            logger.warning(f"Rejected {role.value} submission on handoff {session_id}: locked")
            raise HandoffLockedException("Attempt limit exceeded; session locked")

        if result.outcome is SubmitOutcome.EXPIRED:
            logger.warning(f"Rejected {role.value} submission on handoff {session_id}: expired")
            raise HandoffExpiredException("Session expired")

        if result.outcome is SubmitOutcome.INCORRECT_CODE:
            remaining = result.remaining_attempts(role, self.machine.max_attempts)
            logger.warning(
                f"Incorrect code from {role.value} on handoff {session_id}, {remaining} attempt(s) left"
            )
            raise IncorrectCodeException("Incorrect code", remaining_attempts=remaining)
