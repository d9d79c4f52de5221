#!/usr/bin/env python3
"""
Handoff endpoints - two-party code verification of an item transfer.
"""

import asyncio
import json
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session, sessionmaker

from core.handoff import HandoffStateMachine, HandoffView
from database.uow import lostfound_uow
from notification import HandoffEventBridge
from ..config import get_config
from ..dependencies import (
    get_db,
    get_current_user,
    require_admin,
    get_event_bridge,
    get_state_machine,
    get_session_factory,
    Caller,
)
from ..services.handoff_service import HandoffService, load_handoff_view
from ..models.requests import CreateHandoffRequest, SubmitCodeRequest
from ..models.responses import (
    HandoffResponse,
    HandoffLookupResponse,
    HandoffSnapshot,
    ActiveHandoffsResponse,
    SubmitCodeResponse,
    ResetHandoffResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/handoff", tags=["handoff"])

SUBMIT_MESSAGES = {
    True: "Handoff complete - item marked as claimed.",
    False: "Code verified. Waiting for the other party.",
}


def _snapshot(view: HandoffView) -> HandoffSnapshot:
    return HandoffSnapshot(**view.to_dict())


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@router.post("", response_model=HandoffResponse)
def create_handoff(
    request: CreateHandoffRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    machine: HandoffStateMachine = Depends(get_state_machine),
    bridge: HandoffEventBridge = Depends(get_event_bridge)
):
    """
    Open a handoff session for a pairing.

    The calling administrator becomes the counterpart; the lost item's
    reporter is the owner. Only the administrator's own code is returned.
    """
    service = HandoffService(db, machine, bridge)
    view = service.create(request.lost_item_id, request.found_item_id, caller)

    return HandoffResponse(success=True, session=_snapshot(view))


@router.get("/active", response_model=ActiveHandoffsResponse)
def get_active_handoffs(
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    machine: HandoffStateMachine = Depends(get_state_machine),
    bridge: HandoffEventBridge = Depends(get_event_bridge)
):
    """List sessions still persisted as ACTIVE, newest first, without codes."""
    service = HandoffService(db, machine, bridge)
    sessions = service.list_active()

    return ActiveHandoffsResponse(success=True, count=len(sessions), sessions=sessions)


@router.get("/by-item/{lost_item_id}", response_model=HandoffLookupResponse)
def get_handoff_by_item(
    lost_item_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user),
    machine: HandoffStateMachine = Depends(get_state_machine),
    bridge: HandoffEventBridge = Depends(get_event_bridge)
):
    """Latest active session for a lost item, or `session: null`."""
    service = HandoffService(db, machine, bridge)
    view = service.get_by_lost_item(lost_item_id, caller)

    return HandoffLookupResponse(
        success=True,
        session=_snapshot(view) if view is not None else None
    )


@router.get("/{session_id}", response_model=HandoffResponse)
def get_handoff(
    session_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user),
    machine: HandoffStateMachine = Depends(get_state_machine),
    bridge: HandoffEventBridge = Depends(get_event_bridge)
):
    """The caller's view of a session. Never includes the other party's code."""
    service = HandoffService(db, machine, bridge)
    view = service.get_view(session_id, caller)

    return HandoffResponse(success=True, session=_snapshot(view))


@router.post("/{session_id}/submit", response_model=SubmitCodeResponse)
def submit_code(
    session_id: str,
    request: SubmitCodeRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user),
    machine: HandoffStateMachine = Depends(get_state_machine),
    bridge: HandoffEventBridge = Depends(get_event_bridge)
):
    """
    Enter the code shown on the other party's screen.

    Wrong, locked and expired submissions come back as 400, 423 and 410.
    A wrong code uses up one of the caller's attempts.
    """
    service = HandoffService(db, machine, bridge)
    result = service.submit(session_id, caller, request.role, request.code)

    return SubmitCodeResponse(
        success=True,
        outcome=result.outcome.value,
        completed=result.completed,
        message=SUBMIT_MESSAGES[result.completed],
        session=_snapshot(machine.view_for(result.state, request.role))
    )


@router.post("/{session_id}/reset", response_model=ResetHandoffResponse)
def reset_handoff(
    session_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    machine: HandoffStateMachine = Depends(get_state_machine),
    bridge: HandoffEventBridge = Depends(get_event_bridge)
):
    """Issue fresh codes, clear attempts and flags, and restart the timer."""
    service = HandoffService(db, machine, bridge)
    state = service.reset(session_id, caller)

    return ResetHandoffResponse(
        success=True,
        id=state.id,
        expires_at=state.expires_at.isoformat(),
        message="Handoff session reset"
    )


def _initial_view(
    session_factory: sessionmaker,
    machine: HandoffStateMachine,
    bridge: HandoffEventBridge,
    session_id: str,
    caller: Caller
) -> HandoffView:
    with lostfound_uow(session_factory) as repo:
        return HandoffService(repo.db, machine, bridge).get_view(session_id, caller)


@router.get("/{session_id}/events")
async def handoff_events(
    session_id: str,
    request: Request,
    caller: Caller = Depends(get_current_user),
    machine: HandoffStateMachine = Depends(get_state_machine),
    bridge: HandoffEventBridge = Depends(get_event_bridge),
    session_factory: sessionmaker = Depends(get_session_factory)
):
    """
    Server-Sent Events stream of the caller's view of a session.

    Sends an `init` snapshot, then an `update` snapshot after every change
    and a heartbeat while idle. The stream stays open through completion,
    since a reset can make the session ACTIVE again; it ends when the client
    disconnects or the session disappears.
    """
    heartbeat_seconds = get_config().handoff.heartbeat_seconds
    loop = asyncio.get_running_loop()
    wakeups: asyncio.Queue = asyncio.Queue()

    def on_change() -> None:
        # Called from whichever thread published
        loop.call_soon_threadsafe(wakeups.put_nowait, None)

    # Subscribe before the first read so no change slips between the two
    unsubscribe = bridge.subscribe(session_id, on_change)
    try:
        initial = await run_in_threadpool(_initial_view, session_factory, machine, bridge, session_id, caller)
    except Exception:
        unsubscribe()
        raise

    async def event_generator():
        try:
            yield _sse({"type": "init", "data": initial.to_dict()})
            while True:
                if await request.is_disconnected():
                    break

                try:
                    await asyncio.wait_for(wakeups.get(), timeout=heartbeat_seconds)
                except asyncio.TimeoutError:
                    yield _sse({"type": "heartbeat"})
                    continue

                # Several publishes may have queued up; one fresh read covers them
                while not wakeups.empty():
                    wakeups.get_nowait()

                view = await run_in_threadpool(load_handoff_view, session_factory, machine, session_id, caller)
                if view is None:
                    break

                yield _sse({"type": "update", "data": view.to_dict()})
        except asyncio.CancelledError:
            logger.info(f"SSE connection cancelled for handoff {session_id}")
        finally:
            unsubscribe()
            logger.info(f"SSE connection closed for handoff {session_id}")

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        }
    )
