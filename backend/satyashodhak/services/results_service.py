"""
Service layer for verification results.
Handles persistence of verdicts, save/visibility transitions, listing and deletion.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from satyashodhak.config import get_settings
from satyashodhak.exceptions import (
    EmptyClaimError,
    InvalidInputError,
    PermissionDeniedError,
    PersistenceFailedError,
    ResultNotFoundError,
)
from satyashodhak.models.comment import Comment
from satyashodhak.models.profile import Profile
from satyashodhak.models.verification import VerificationResult, VerificationVote
from satyashodhak.schemas.verification import SaveResultRequest, VerificationResultResponse
from satyashodhak.utils.logger import get_logger
from satyashodhak.utils.normalization import (
    SourcesOk,
    build_share_text,
    coerce_confidence,
    coerce_verdict,
    normalize_sources,
    sources_or_empty_list,
    verdict_label,
)

logger = get_logger(__name__)
settings = get_settings()


def fallback_source() -> Dict[str, str]:
    """Source attached when a verdict rests on AI analysis alone."""
    return {
        "title": "AI Analysis",
        "snippet": "This verification was performed using advanced AI reasoning and available information.",
        "url": settings.fallback_source_url,
    }


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def ensure_sources(raw: Any) -> List[Dict[str, str]]:
    """Normalize sources for storage; an empty collection gets the fallback source."""
    result = normalize_sources(raw)
    if isinstance(result, SourcesOk):
        return list(result.sources)
    return [fallback_source()]


class ResultsService:
    """
    Service class for verification result operations.

    Only the owner may save, hide, publish or delete a result. Reads are
    allowed for the owner and, for public results, for everyone.
    """

    def __init__(self, db: Session) -> None:
        """
        Initialize the results service.

        Args:
            db: Database session for operations
        """
        self.db: Session = db

    # Persistence used by the verification pipeline

    def insert_result(self, user_id: uuid.UUID, claim: str, verdict: str, confidence: Any,
                      explanation: str, sources: Any, is_saved: bool = False,
                      is_public: bool = False) -> VerificationResult:
        """
        Insert a new verification result owned by user_id.

        Raises:
            PersistenceFailedError: If the write fails
        """
        now = datetime.utcnow()
        result = VerificationResult(
            user_id=user_id,
            claim=claim,
            verdict=coerce_verdict(verdict),
            confidence=coerce_confidence(confidence),
            explanation=explanation or "",
            sources=ensure_sources(sources),
            is_saved=is_saved,
            is_public=is_public,
            upvotes=0,
            downvotes=0,
            tags=[],
            created_at=now,
            updated_at=now,
        )

        self.db.add(result)
        self._commit("insert verification result", user_id=user_id)
        self.db.refresh(result)

        logger.info("Verification result saved",
                    result_id=result.id,
                    user_id=user_id,
                    verdict=result.verdict,
                    is_saved=is_saved)
        return result

    def update_verdict(self, result_id: uuid.UUID, user_id: uuid.UUID, verdict: str,
                       confidence: Any, explanation: str, sources: Any) -> VerificationResult:
        """
        Overwrite the verdict fields of an existing result in place.

        The statement matches on both id and owner, so a caller can never
        overwrite someone else's result. The claim text is left untouched.

        Raises:
            ResultNotFoundError: If no result with this id belongs to user_id
            PersistenceFailedError: If the write fails
        """
        stmt = (
            update(VerificationResult)
            .where(VerificationResult.id == result_id, VerificationResult.user_id == user_id)
            .values(
                verdict=coerce_verdict(verdict),
                confidence=coerce_confidence(confidence),
                explanation=explanation or "",
                sources=ensure_sources(sources),
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )

        try:
            outcome = self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to update verification result", result_id=result_id, error=str(e))
            raise PersistenceFailedError("Failed to update verification result")

        if outcome.rowcount == 0:
            self.db.rollback()
            logger.warning("Re-verification target not found for user", result_id=result_id, user_id=user_id)
            raise ResultNotFoundError()

        self._commit("update verification result", result_id=result_id)
        result = self.db.get(VerificationResult, result_id)
        self.db.refresh(result)

        logger.info("Verification result updated", result_id=result_id, verdict=result.verdict)
        return result

    # Save / visibility transitions

    def save_result(self, user: Profile, request: SaveResultRequest) -> VerificationResultResponse:
        """
        Save a result, either an existing row or a payload that was never persisted.

        Raises:
            ResultNotFoundError, PermissionDeniedError: For a result_id the caller does not own
            EmptyClaimError, InvalidInputError: For an incomplete payload
        """
        if request.result_id is not None:
            result = self._get_owned(request.result_id, user)
            result.is_saved = True
            result.is_public = request.make_public
            result.updated_at = datetime.utcnow()
            self._commit("save verification result", result_id=result.id)
            self.db.refresh(result)
            logger.info("Verification result saved", result_id=result.id, is_public=result.is_public)
            return self.to_response(result, user)

        claim = (request.claim or "").strip()
        if not claim:
            raise EmptyClaimError()
        if request.verdict is None:
            raise InvalidInputError("Verdict is required to save an unsaved result")

        result = self.insert_result(
            user_id=user.id,
            claim=claim,
            verdict=request.verdict,
            confidence=request.confidence,
            explanation=request.explanation or "",
            sources=request.sources,
            is_saved=True,
            is_public=request.make_public,
        )
        return self.to_response(result, user)

    def set_visibility(self, user: Profile, result_id: uuid.UUID, is_public: bool) -> VerificationResultResponse:
        """
        Make a result public or private.

        Only the visibility flag and updated_at change; a result that was not
        saved yet becomes saved.
        """
        result = self._get_owned(result_id, user)
        result.is_public = is_public
        result.is_saved = True
        result.updated_at = datetime.utcnow()
        self._commit("update visibility", result_id=result_id)
        self.db.refresh(result)

        logger.info("Visibility updated", result_id=result_id, is_public=is_public)
        return self.to_response(result, user)

    def unsave_result(self, user: Profile, result_id: uuid.UUID) -> VerificationResultResponse:
        """
        Remove a result from the caller's saved list.

        The row stays in the caller's history; it also stops being public.
        """
        result = self._get_owned(result_id, user)
        result.is_saved = False
        result.is_public = False
        result.updated_at = datetime.utcnow()
        self._commit("unsave verification result", result_id=result_id)
        self.db.refresh(result)

        logger.info("Verification result unsaved", result_id=result_id)
        return self.to_response(result, user)

    def delete_result(self, user: Profile, result_id: uuid.UUID) -> None:
        """Permanently delete a result with its votes and comments (owner only)."""
        result = self._get_owned(result_id, user)
        self.db.delete(result)
        self._commit("delete verification result", result_id=result_id)
        logger.info("Verification result deleted", result_id=result_id, user_id=user.id)

    # Reads

    def get_result(self, result_id: uuid.UUID, viewer: Optional[Profile] = None) -> VerificationResultResponse:
        """Fetch one result visible to the viewer."""
        result = self.get_visible(result_id, viewer)
        return self.to_response(result, viewer)

    def get_visible(self, result_id: uuid.UUID, viewer: Optional[Profile] = None) -> VerificationResult:
        """
        Load a result that is public or owned by the viewer.

        Raises:
            ResultNotFoundError: If missing or private to someone else
        """
        result = self.db.get(VerificationResult, result_id)
        if not result or not (result.is_public or (viewer is not None and result.user_id == viewer.id)):
            raise ResultNotFoundError()
        return result

    def list_history(self, user: Profile, skip: int = 0, limit: int = 20) -> Tuple[List[VerificationResultResponse], int]:
        """All of the caller's results, newest first."""
        query = (self.db.query(VerificationResult)
                 .filter(VerificationResult.user_id == user.id)
                 .order_by(VerificationResult.created_at.desc()))
        return self._paginate(query, user, skip, limit)

    def list_saved(self, user: Profile, skip: int = 0, limit: int = 20) -> Tuple[List[VerificationResultResponse], int]:
        """The caller's saved results, most recently updated first."""
        query = (self.db.query(VerificationResult)
                 .filter(VerificationResult.user_id == user.id, VerificationResult.is_saved.is_(True))
                 .order_by(VerificationResult.updated_at.desc()))
        return self._paginate(query, user, skip, limit)

    def list_public(self, viewer: Optional[Profile] = None, search: Optional[str] = None,
                    skip: int = 0, limit: int = 20) -> Tuple[List[VerificationResultResponse], int]:
        """Public results for the Explore feed, optionally filtered by claim text."""
        query = self.db.query(VerificationResult).filter(VerificationResult.is_public.is_(True))
        if search and search.strip():
            pattern = f"%{escape_like(search.strip())}%"
            query = query.filter(VerificationResult.claim.ilike(pattern, escape="\\"))
        query = query.order_by(VerificationResult.created_at.desc())
        return self._paginate(query, viewer, skip, limit)

    def to_response(self, result: VerificationResult, viewer: Optional[Profile] = None,
                    user_vote: Optional[int] = None,
                    comments_count: Optional[int] = None) -> VerificationResultResponse:
        """Build the viewer-specific response for one result."""
        if user_vote is None and viewer is not None:
            user_vote = self._user_votes([result.id], viewer).get(result.id)
        if comments_count is None:
            comments_count = self._comment_counts([result.id]).get(result.id, 0)

        return VerificationResultResponse(
            id=result.id,
            user_id=result.user_id,
            claim=result.claim,
            verdict=result.verdict,
            verdict_label=verdict_label(result.verdict),
            confidence=coerce_confidence(result.confidence),
            explanation=result.explanation or "",
            sources=sources_or_empty_list(result.sources),
            is_public=result.is_public,
            is_saved=result.is_saved,
            upvotes=max(result.upvotes or 0, 0),
            downvotes=max(result.downvotes or 0, 0),
            user_vote=user_vote,
            comments_count=comments_count,
            share_text=build_share_text(result.claim, result.verdict, result.confidence),
            notes=result.notes,
            tags=result.tags or [],
            created_at=result.created_at,
            updated_at=result.updated_at,
        )

    # Helpers

    def _get_owned(self, result_id: uuid.UUID, user: Profile) -> VerificationResult:
        result = self.db.get(VerificationResult, result_id)
        if not result:
            raise ResultNotFoundError()
        if result.user_id != user.id:
            if not result.is_public:
                raise ResultNotFoundError()
            raise PermissionDeniedError()
        return result

    def _paginate(self, query, viewer: Optional[Profile], skip: int,
                  limit: int) -> Tuple[List[VerificationResultResponse], int]:
        total = query.count()
        results = query.offset(skip).limit(limit).all()

        ids = [r.id for r in results]
        votes = self._user_votes(ids, viewer) if viewer is not None else {}
        counts = self._comment_counts(ids)

        responses = [
            self.to_response(r, viewer, user_vote=votes.get(r.id), comments_count=counts.get(r.id, 0))
            for r in results
        ]

        logger.info("Listed verification results", count=len(responses), total=total, skip=skip, limit=limit)
        return responses, total

    def _user_votes(self, result_ids: Iterable[uuid.UUID], viewer: Profile) -> Dict[uuid.UUID, int]:
        result_ids = list(result_ids)
        if not result_ids:
            return {}
        rows = (self.db.query(VerificationVote.verification_id, VerificationVote.vote)
                .filter(VerificationVote.user_id == viewer.id,
                        VerificationVote.verification_id.in_(result_ids))
                .all())
        return {verification_id: vote for verification_id, vote in rows}

    def _comment_counts(self, result_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, int]:
        result_ids = list(result_ids)
        if not result_ids:
            return {}
        rows = (self.db.query(Comment.claim_id, func.count(Comment.id))
                .filter(Comment.claim_id.in_(result_ids))
                .group_by(Comment.claim_id)
                .all())
        return {claim_id: count for claim_id, count in rows}

    def _commit(self, action: str, **context: Any) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}", error=str(e), **context)
            raise PersistenceFailedError()
