"""
API routes for verification results.
Handles history, saved and public listings, save/visibility toggles, votes and deletion.
"""

import uuid
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from satyashodhak.db.database import get_db
from satyashodhak.models.profile import Profile
from satyashodhak.schemas.verification import (
    SaveResultRequest,
    VerificationResultListResponse,
    VerificationResultResponse,
    VisibilityRequest,
    VoteRequest,
    VoteResponse,
)
from satyashodhak.services.auth_service import get_current_user, get_optional_user
from satyashodhak.services.results_service import ResultsService
from satyashodhak.services.vote_service import VoteService
from satyashodhak.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/results", tags=["results"])


@router.get("/history", response_model=VerificationResultListResponse)
def list_history(
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page (max 100)"),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> VerificationResultListResponse:
    """List every result the caller verified, newest first."""
    logger.info("List history request", user_id=user.id, page=page, per_page=per_page)

    results, total = ResultsService(db).list_history(user, skip=(page - 1) * per_page, limit=per_page)
    return VerificationResultListResponse(results=results, total=total, page=page, per_page=per_page)


@router.get("/saved", response_model=VerificationResultListResponse)
def list_saved(
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page (max 100)"),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> VerificationResultListResponse:
    """List the caller's saved results, most recently updated first."""
    logger.info("List saved request", user_id=user.id, page=page, per_page=per_page)

    results, total = ResultsService(db).list_saved(user, skip=(page - 1) * per_page, limit=per_page)
    return VerificationResultListResponse(results=results, total=total, page=page, per_page=per_page)


@router.get("/explore", response_model=VerificationResultListResponse)
def list_public(
    q: Optional[str] = Query(None, description="Case-insensitive claim search"),
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page (max 100)"),
    viewer: Optional[Profile] = Depends(get_optional_user),
    db: Session = Depends(get_db)
) -> VerificationResultListResponse:
    """List public results shared by all users."""
    logger.info("Explore request", has_query=bool(q), page=page, per_page=per_page)

    results, total = ResultsService(db).list_public(
        viewer, search=q, skip=(page - 1) * per_page, limit=per_page
    )
    return VerificationResultListResponse(results=results, total=total, page=page, per_page=per_page)


@router.post("/save", response_model=VerificationResultResponse)
def save_result(
    request: SaveResultRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> VerificationResultResponse:
    """
    Save a result.

    Pass result_id for a stored result, or the full verdict payload for one
    that was never stored. make_public shares it in Explore.
    """
    logger.info("Save result request", user_id=user.id, result_id=request.result_id,
                make_public=request.make_public)
    return ResultsService(db).save_result(user, request)


@router.get("/{result_id}", response_model=VerificationResultResponse)
def get_result(
    result_id: uuid.UUID,
    viewer: Optional[Profile] = Depends(get_optional_user),
    db: Session = Depends(get_db)
) -> VerificationResultResponse:
    """Get one result that is public or owned by the caller."""
    return ResultsService(db).get_result(result_id, viewer)


@router.put("/{result_id}/visibility", response_model=VerificationResultResponse)
def set_visibility(
    result_id: uuid.UUID,
    request: VisibilityRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> VerificationResultResponse:
    """Make a saved result public or private."""
    logger.info("Visibility request", result_id=result_id, is_public=request.is_public)
    return ResultsService(db).set_visibility(user, result_id, request.is_public)


@router.delete("/{result_id}/save", response_model=VerificationResultResponse)
def unsave_result(
    result_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> VerificationResultResponse:
    """Remove a result from the saved list. It stays in history."""
    logger.info("Unsave request", result_id=result_id)
    return ResultsService(db).unsave_result(user, result_id)


@router.delete("/{result_id}")
def delete_result(
    result_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Dict[str, str]:
    """
    Delete a result with its votes and comments.

    Only the owner can delete. This action cannot be undone.
    """
    logger.info("Delete result request", result_id=result_id)
    ResultsService(db).delete_result(user, result_id)
    return {"message": "Verification deleted successfully"}


@router.post("/{result_id}/vote", response_model=VoteResponse)
def vote_on_result(
    result_id: uuid.UUID,
    request: VoteRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> VoteResponse:
    """Vote on a result. Repeating the same vote removes it."""
    return VoteService(db).vote_on_result(result_id, user, request.vote)
