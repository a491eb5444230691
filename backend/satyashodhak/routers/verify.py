"""
API route for claim verification.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from satyashodhak.db.database import get_db
from satyashodhak.schemas.verification import VerifyClaimRequest, VerifyClaimResponse
from satyashodhak.services.verification_pipeline import VerificationPipeline
from satyashodhak.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["verification"])


@router.post("/verify", response_model=VerifyClaimResponse)
def verify_claim(
    request: VerifyClaimRequest,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> VerifyClaimResponse:
    """
    Verify a claim.

    Looks up prior fact checks, asks the reasoning engine for a verdict and
    stores it for the caller. With is_reverification and original_result_id
    the caller's existing result is overwritten in place.
    """
    logger.info("Verify claim request",
                claim_length=len(request.claim or ""),
                is_reverification=request.is_reverification,
                original_result_id=request.original_result_id)

    pipeline = VerificationPipeline(db)
    return pipeline.verify(request, authorization)
