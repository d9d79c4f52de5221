#!/usr/bin/env python3
"""
Response models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict


class MatchCandidate(BaseModel):
    """One ranked candidate for a source item."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "candidate_id": "6ba7b810-9dad-11d1-80b4-00c04fd430c8",
                "score": 87.9,
                "breakdown": {
                    "categoryMatch": 40.0,
                    "titleSimilarity": 18.4,
                    "descriptionSimilarity": 7.5,
                    "crossFieldBonus": 4.0,
                    "combinedSimilarity": 3.2,
                    "dateProximity": 9.0,
                    "locationMatch": 10.0
                }
            }
        }
    )

    candidate_id: str
    score: float = Field(ge=0, le=100)
    breakdown: Dict[str, float]


class MatchesResponse(BaseModel):
    """Response for the match suggestions endpoint."""
    success: bool = True
    source_item_id: str
    candidate_kind: str
    count: int
    matches: List[MatchCandidate]


class ActionResponse(BaseModel):
    """Generic acknowledgement."""
    success: bool = True
    message: str


class HandoffSnapshot(BaseModel):
    """Role-scoped view of a handoff session. Contains only the caller's code."""
    id: Optional[str]
    role: str
    status: str
    expires_at: str
    locked: bool
    my_code: str
    owner_verified_counterpart: bool
    counterpart_verified_owner: bool
    owner_attempts: int
    counterpart_attempts: int


class HandoffResponse(BaseModel):
    """Response wrapping a single session view."""
    success: bool = True
    session: HandoffSnapshot


class HandoffLookupResponse(BaseModel):
    """Response for a lookup that may find nothing."""
    success: bool = True
    session: Optional[HandoffSnapshot] = None


class ActiveHandoffSummary(BaseModel):
    """Code-free summary for the administrator overview."""
    id: str
    lost_item_id: str
    found_item_id: str
    owner_user_id: str
    counterpart_user_id: str
    status: str
    expires_at: str
    owner_verified_counterpart: bool
    counterpart_verified_owner: bool


class ActiveHandoffsResponse(BaseModel):
    success: bool = True
    count: int
    sessions: List[ActiveHandoffSummary]


class SubmitCodeResponse(BaseModel):
    """Result of an accepted code submission."""
    success: bool = True
    outcome: str
    completed: bool
    message: str
    session: HandoffSnapshot


class ResetHandoffResponse(BaseModel):
    success: bool = True
    id: str
    expires_at: str
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
