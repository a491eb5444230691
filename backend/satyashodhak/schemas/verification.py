"""
Pydantic schemas for verification requests, results and votes.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from satyashodhak.schemas.fact_check import Source


class VerifyClaimRequest(BaseModel):
    """Schema for a claim verification request."""
    claim: str = ""
    is_reverification: bool = False
    original_result_id: Optional[UUID] = None


class VerificationPayload(BaseModel):
    """Verdict returned by the pipeline."""
    id: Optional[UUID] = None
    claim: str
    verdict: str
    confidence: int = Field(..., ge=0, le=100)
    explanation: str
    sources: List[Source]


class VerifyClaimResponse(BaseModel):
    """Schema for the claim verification response."""
    success: bool = True
    result: VerificationPayload


class SaveResultRequest(BaseModel):
    """
    Schema for saving a result.

    Either references an existing row through result_id, or carries the full
    verdict payload of a result that was never persisted.
    """
    result_id: Optional[UUID] = None
    make_public: bool = False
    claim: Optional[str] = None
    verdict: Optional[str] = None
    confidence: Optional[Any] = None
    explanation: Optional[str] = None
    sources: Optional[Any] = None


class VisibilityRequest(BaseModel):
    """Schema for toggling public visibility."""
    is_public: bool


class VoteRequest(BaseModel):
    """Schema for a vote. 0 clears the caller's vote."""
    vote: int = Field(..., ge=-1, le=1)


class VoteResponse(BaseModel):
    """Aggregate vote state after a vote was applied."""
    target_id: UUID
    upvotes: int
    downvotes: int
    user_vote: Optional[int] = None


class VerificationResultResponse(BaseModel):
    """Schema for a persisted verification result as seen by one viewer."""
    id: UUID
    user_id: UUID
    claim: str
    verdict: str
    verdict_label: str
    confidence: int
    explanation: str
    sources: List[Source]
    is_public: bool
    is_saved: bool
    upvotes: int
    downvotes: int
    user_vote: Optional[int] = None
    comments_count: int = 0
    share_text: str
    notes: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VerificationResultListResponse(BaseModel):
    """Schema for paginated verification result lists."""
    results: List[VerificationResultResponse]
    total: int
    page: int
    per_page: int
