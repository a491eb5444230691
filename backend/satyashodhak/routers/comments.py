"""
API routes for comments on verification results.
"""

import uuid
from typing import Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from satyashodhak.db.database import get_db
from satyashodhak.models.profile import Profile
from satyashodhak.schemas.comment import CommentCreate, CommentListResponse, CommentResponse
from satyashodhak.schemas.verification import VoteRequest, VoteResponse
from satyashodhak.services.auth_service import get_current_user, get_optional_user
from satyashodhak.services.comment_service import CommentService
from satyashodhak.services.vote_service import VoteService
from satyashodhak.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["comments"])


@router.get("/results/{result_id}/comments", response_model=CommentListResponse)
def list_comments(
    result_id: uuid.UUID,
    viewer: Optional[Profile] = Depends(get_optional_user),
    db: Session = Depends(get_db)
) -> CommentListResponse:
    """List comments on a result with the caller's votes."""
    return CommentService(db).list_comments(result_id, viewer)


@router.post("/results/{result_id}/comments", response_model=CommentResponse)
def add_comment(
    result_id: uuid.UUID,
    request: CommentCreate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> CommentResponse:
    """Post a comment on a result."""
    logger.info("Add comment request", result_id=result_id, user_id=user.id)
    return CommentService(db).add_comment(user, result_id, request.content)


@router.post("/comments/{comment_id}/vote", response_model=VoteResponse)
def vote_on_comment(
    comment_id: uuid.UUID,
    request: VoteRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> VoteResponse:
    """Vote on a comment. Repeating the same vote removes it."""
    return VoteService(db).vote_on_comment(comment_id, user, request.vote)


@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Dict[str, str]:
    """Delete one of the caller's comments."""
    logger.info("Delete comment request", comment_id=comment_id)
    CommentService(db).delete_comment(user, comment_id)
    return {"message": "Comment deleted successfully"}
