#!/usr/bin/env python3
"""
Request models for API endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional

from core.handoff import PartyRole


class ItemPairRequest(BaseModel):
    """A (lost item, found item) pairing."""
    lost_item_id: str = Field(..., min_length=1, description="Lost item id")
    found_item_id: str = Field(..., min_length=1, description="Found item id")


class DeclineMatchRequest(ItemPairRequest):
    """Request to stop suggesting a pairing."""
    reason: Optional[str] = Field(None, max_length=500, description="Why the pairing was rejected")


class ConfirmPairingRequest(ItemPairRequest):
    """Request to link a lost item with a found item."""
    pass


class CreateHandoffRequest(ItemPairRequest):
    """Request to open a handoff session for a pairing."""
    pass


class SubmitCodeRequest(BaseModel):
    """A party entering the code shown on the other party's screen."""
    role: PartyRole = Field(..., description="Submitting party: OWNER or COUNTERPART")
    # Format is checked by the state machine so it gets the standard error body
    code: str = Field(..., max_length=32, description="Code shown to the other party")
