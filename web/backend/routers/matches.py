#!/usr/bin/env python3
"""
Match endpoints - ranked suggestions and pairing decisions.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.matching import ItemKind
from ..dependencies import get_db, require_admin, Caller
from ..services.match_service import MatchService
from ..models.requests import DeclineMatchRequest, ConfirmPairingRequest
from ..models.responses import MatchesResponse, MatchCandidate, ActionResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matches", tags=["matches"])


@router.get("", response_model=MatchesResponse)
def get_matches(
    source_item_id: str = Query(..., min_length=1, description="Item to find candidates for"),
    candidate_kind: ItemKind = Query(..., description="Kind of item to suggest: LOST or FOUND"),
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Maximum results to return"),
    min_score: Optional[float] = Query(default=None, ge=0, le=100, description="Minimum score filter"),
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    """
    Rank open items of `candidate_kind` against the source item.

    The source is the item of the opposite kind. Declined pairings are never
    suggested. Limit and score floor default to the configured values.
    """
    service = MatchService(db)
    results = service.find_matches(
        source_item_id,
        candidate_kind,
        limit=limit,
        min_score=min_score
    )

    return MatchesResponse(
        success=True,
        source_item_id=source_item_id,
        candidate_kind=candidate_kind.value,
        count=len(results),
        matches=[MatchCandidate(**result.to_dict()) for result in results]
    )


@router.post("/decline", response_model=ActionResponse)
def decline_match(
    request: DeclineMatchRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    """Stop suggesting this pairing, in either direction."""
    service = MatchService(db)
    service.decline(
        request.lost_item_id,
        request.found_item_id,
        declined_by=caller.user_id,
        reason=request.reason
    )

    return ActionResponse(success=True, message="Match declined")


@router.post("/confirm", response_model=ActionResponse)
def confirm_match(
    request: ConfirmPairingRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    """Link a lost item with a found item. Both become MATCHED."""
    service = MatchService(db)
    result = service.confirm_pairing(
        request.lost_item_id,
        request.found_item_id,
        confirmed_by=caller.user_id
    )

    return ActionResponse(
        success=True,
        message=f"Items matched (score {result.score})"
    )
