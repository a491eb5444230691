"""
Vote toggling shared by verification results and comments.
"""

import uuid
from typing import Any, Optional, Type

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from satyashodhak.exceptions import (
    CommentNotFoundError,
    InvalidInputError,
    PersistenceFailedError,
)
from satyashodhak.models.comment import Comment, CommentVote
from satyashodhak.models.profile import Profile
from satyashodhak.models.verification import VerificationResult, VerificationVote
from satyashodhak.schemas.verification import VoteResponse
from satyashodhak.services.results_service import ResultsService
from satyashodhak.utils.logger import get_logger

logger = get_logger(__name__)

VALID_VOTES = (-1, 0, 1)


def resolve_vote(existing: Optional[int], desired: int) -> int:
    """
    Apply the toggle rule.

    Re-casting the vote the caller already holds removes it; any other value
    replaces it.

    Args:
        existing: The caller's current vote, None when they have not voted
        desired: Requested vote in {-1, 0, 1}

    Returns:
        The vote the caller ends up with, 0 meaning no vote
    """
    if desired not in VALID_VOTES:
        raise InvalidInputError("Vote must be -1, 0 or 1")
    if existing is not None and desired == existing:
        return 0
    return desired


def _counter_delta(old: int, new: int, side: int) -> int:
    return (1 if new == side else 0) - (1 if old == side else 0)


class VoteService:
    """
    Service class applying votes atomically.

    The caller's vote row is locked, both counters are adjusted with
    in-database arithmetic, and everything is committed in one transaction so
    concurrent votes from different users never lose updates.
    """

    def __init__(self, db: Session) -> None:
        self.db: Session = db

    def vote_on_result(self, result_id: uuid.UUID, user: Profile, vote: int) -> VoteResponse:
        """
        Vote on a verification result the caller can see.

        Raises:
            ResultNotFoundError: If the result is missing or private to someone else
        """
        ResultsService(self.db).get_visible(result_id, user)

        return self._apply_vote(VerificationResult, VerificationVote, "verification_id",
                                result_id, user.id, vote)

    def vote_on_comment(self, comment_id: uuid.UUID, user: Profile, vote: int) -> VoteResponse:
        """
        Vote on a comment under a result the caller can see.

        Raises:
            CommentNotFoundError: If the comment does not exist
            ResultNotFoundError: If its result is private to someone else
        """
        comment = self.db.get(Comment, comment_id)
        if not comment:
            raise CommentNotFoundError()
        ResultsService(self.db).get_visible(comment.claim_id, user)

        return self._apply_vote(Comment, CommentVote, "comment_id", comment_id, user.id, vote)

    def _apply_vote(self, target_model: Type[Any], vote_model: Type[Any], target_fk: str,
                    target_id: uuid.UUID, user_id: uuid.UUID, desired: int) -> VoteResponse:
        fk_column = getattr(vote_model, target_fk)

        try:
            existing_row = self.db.execute(
                select(vote_model)
                .where(fk_column == target_id, vote_model.user_id == user_id)
                .with_for_update()
            ).scalar_one_or_none()

            old = existing_row.vote if existing_row is not None else 0
            new = resolve_vote(existing_row.vote if existing_row is not None else None, desired)

            up_delta = _counter_delta(old, new, 1)
            down_delta = _counter_delta(old, new, -1)
            if up_delta or down_delta:
                self.db.execute(
                    update(target_model)
                    .where(target_model.id == target_id)
                    .values({
                        target_model.upvotes: self._adjusted(target_model.upvotes, up_delta),
                        target_model.downvotes: self._adjusted(target_model.downvotes, down_delta),
                    })
                    .execution_options(synchronize_session=False)
                )

            if new == 0:
                if existing_row is not None:
                    self.db.delete(existing_row)
            elif existing_row is not None:
                existing_row.vote = new
            else:
                self.db.add(vote_model(**{target_fk: target_id, "user_id": user_id, "vote": new}))

            self.db.commit()

        except InvalidInputError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            # Another request from the same user inserted a vote row first
            self.db.rollback()
            logger.warning("Concurrent vote from the same user", target_id=target_id, error=str(e))
            raise PersistenceFailedError("Vote conflicted with another vote, please retry")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to apply vote", target_id=target_id, error=str(e))
            raise PersistenceFailedError("Failed to record vote")

        upvotes, downvotes = self.db.execute(
            select(target_model.upvotes, target_model.downvotes).where(target_model.id == target_id)
        ).one()

        logger.info("Vote applied",
                    target=target_model.__tablename__,
                    target_id=target_id,
                    previous_vote=old,
                    user_vote=new)

        return VoteResponse(
            target_id=target_id,
            upvotes=upvotes,
            downvotes=downvotes,
            user_vote=new or None,
        )

    @staticmethod
    def _adjusted(column: Any, delta: int) -> Any:
        """SQL expression adding delta to a counter, never going below zero."""
        if delta >= 0:
            return column + delta
        return case((column + delta < 0, 0), else_=column + delta)
