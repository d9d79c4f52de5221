import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select

from core.handoff import HandoffState, HandoffStatus
from database.models import HandoffSession
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # Backends without timezone support hand back naive UTC values
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_handoff_state(row: HandoffSession) -> HandoffState:
    return HandoffState(
        id=str(row.id),
        lost_item_id=str(row.lost_item_id),
        found_item_id=str(row.found_item_id),
        owner_user_id=str(row.owner_user_id),
        counterpart_user_id=str(row.counterpart_user_id),
        owner_code=row.owner_code,
        counterpart_code=row.counterpart_code,
        expires_at=_as_utc(row.expires_at),
        owner_attempts=row.owner_attempts or 0,
        counterpart_attempts=row.counterpart_attempts or 0,
        owner_verified_counterpart=bool(row.owner_verified_counterpart),
        counterpart_verified_owner=bool(row.counterpart_verified_owner),
        locked=bool(row.locked),
        status=HandoffStatus(row.status),
    )


class HandoffRepository(BaseRepository):
    def get_session(self, session_id: str, for_update: bool = False) -> Optional[HandoffSession]:
        """
        Load a session row.

        Args:
            session_id: Session id.
            for_update: Take a row lock (SELECT ... FOR UPDATE) held until
                the surrounding transaction ends.
        """
        stmt = select(HandoffSession).where(HandoffSession.id == str(session_id))
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_latest_active_for_lost_item(self, lost_item_id: str) -> Optional[HandoffSession]:
        stmt = (
            select(HandoffSession)
            .where(
                HandoffSession.lost_item_id == str(lost_item_id),
                HandoffSession.status == HandoffStatus.ACTIVE.value
            )
            .order_by(HandoffSession.created_at.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()

    def list_active(self) -> List[HandoffSession]:
        stmt = (
            select(HandoffSession)
            .where(HandoffSession.status == HandoffStatus.ACTIVE.value)
            .order_by(HandoffSession.created_at.desc())
        )
        return self.db.execute(stmt).scalars().all()

    def add_session(self, state: HandoffState) -> HandoffSession:
        row = HandoffSession(
            lost_item_id=state.lost_item_id,
            found_item_id=state.found_item_id,
            owner_user_id=state.owner_user_id,
            counterpart_user_id=state.counterpart_user_id,
        )
        if state.id is not None:
            row.id = state.id
        self.apply_state(row, state)
        self.db.add(row)
        self.db.flush()
        return row

    def apply_state(self, row: HandoffSession, state: HandoffState) -> HandoffSession:
        """Write the mutable fields of `state` onto `row`."""
        row.owner_code = state.owner_code
        row.counterpart_code = state.counterpart_code
        row.owner_attempts = state.owner_attempts
        row.counterpart_attempts = state.counterpart_attempts
        row.owner_verified_counterpart = state.owner_verified_counterpart
        row.counterpart_verified_owner = state.counterpart_verified_owner
        row.locked = state.locked
        row.status = state.status.value
        row.expires_at = state.expires_at
        return row
