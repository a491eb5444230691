"""
Service layer for comments on verification results.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from satyashodhak.exceptions import (
    CommentNotFoundError,
    InvalidInputError,
    PermissionDeniedError,
    PersistenceFailedError,
)
from satyashodhak.models.comment import Comment, CommentVote
from satyashodhak.models.profile import Profile
from satyashodhak.schemas.comment import CommentListResponse, CommentResponse
from satyashodhak.services.results_service import ResultsService
from satyashodhak.utils.logger import get_logger

logger = get_logger(__name__)


class CommentService:
    """Posting, listing and deleting comments."""

    def __init__(self, db: Session) -> None:
        self.db: Session = db

    def add_comment(self, user: Profile, claim_id: uuid.UUID, content: str) -> CommentResponse:
        """
        Post a comment on a verification result visible to the user.

        Raises:
            InvalidInputError: If the content is empty after trimming
            ResultNotFoundError: If the result is missing or private to someone else
        """
        content = (content or "").strip()
        if not content:
            raise InvalidInputError("Comment cannot be empty")

        ResultsService(self.db).get_visible(claim_id, user)

        comment = Comment(
            claim_id=claim_id,
            user_id=user.id,
            content=content,
            user_name=user.display_name,
            user_avatar=user.avatar_url,
            upvotes=0,
            downvotes=0,
            created_at=datetime.utcnow(),
        )

        try:
            self.db.add(comment)
            self.db.commit()
            self.db.refresh(comment)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to post comment", claim_id=claim_id, error=str(e))
            raise PersistenceFailedError("Failed to post comment")

        logger.info("Comment posted", comment_id=comment.id, claim_id=claim_id, user_id=user.id)
        return self._to_response(comment, None)

    def list_comments(self, claim_id: uuid.UUID, viewer: Optional[Profile] = None) -> CommentListResponse:
        """Comments on a result, oldest first, annotated with the viewer's votes."""
        ResultsService(self.db).get_visible(claim_id, viewer)

        comments = (self.db.query(Comment)
                    .filter(Comment.claim_id == claim_id)
                    .order_by(Comment.created_at.asc())
                    .all())

        votes: Dict[uuid.UUID, int] = {}
        if viewer is not None and comments:
            rows = (self.db.query(CommentVote.comment_id, CommentVote.vote)
                    .filter(CommentVote.user_id == viewer.id,
                            CommentVote.comment_id.in_([c.id for c in comments]))
                    .all())
            votes = {comment_id: vote for comment_id, vote in rows}

        responses: List[CommentResponse] = [self._to_response(c, votes.get(c.id)) for c in comments]
        return CommentListResponse(comments=responses, total=len(responses))

    def delete_comment(self, user: Profile, comment_id: uuid.UUID) -> None:
        """
        Delete a comment and its votes.

        Raises:
            CommentNotFoundError: If the comment does not exist
            PermissionDeniedError: If the caller is not the author
        """
        comment = self.db.get(Comment, comment_id)
        if not comment:
            raise CommentNotFoundError()
        if comment.user_id != user.id:
            logger.warning("Comment deletion by non-author refused", comment_id=comment_id, user_id=user.id)
            raise PermissionDeniedError("Only the author can delete this comment")

        try:
            self.db.delete(comment)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to delete comment", comment_id=comment_id, error=str(e))
            raise PersistenceFailedError("Failed to delete comment")

        logger.info("Comment deleted", comment_id=comment_id)

    @staticmethod
    def _to_response(comment: Comment, user_vote: Optional[int]) -> CommentResponse:
        return CommentResponse(
            id=comment.id,
            claim_id=comment.claim_id,
            user_id=comment.user_id,
            user_name=comment.user_name,
            user_avatar=comment.user_avatar,
            content=comment.content,
            upvotes=max(comment.upvotes or 0, 0),
            downvotes=max(comment.downvotes or 0, 0),
            user_vote=user_vote,
            created_at=comment.created_at,
        )
