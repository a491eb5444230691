"""
Pydantic schemas for comment-related API requests and responses.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class CommentCreate(BaseModel):
    """Schema for posting a comment."""
    content: str = ""


class CommentResponse(BaseModel):
    """Schema for a comment annotated with the viewer's vote."""
    id: UUID
    claim_id: UUID
    user_id: UUID
    user_name: str
    user_avatar: Optional[str] = None
    content: str
    upvotes: int
    downvotes: int
    user_vote: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CommentListResponse(BaseModel):
    """Schema for the comments of one verification result."""
    comments: List[CommentResponse]
    total: int
