"""
SQLAlchemy models for comments on verification results and their votes.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, DateTime, ForeignKey, Integer, SmallInteger, String, Text,
    UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship

from satyashodhak.db.database import Base


class Comment(Base):
    """
    Database model for a flat (non-threaded) comment on a verification result.

    The author's display name and avatar are copied at creation time.
    """

    __tablename__ = "comments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    claim_id = Column(
        Uuid(as_uuid=True), ForeignKey("verification_results.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    user_name = Column(String(255), nullable=False)
    user_avatar = Column(String(500), nullable=True)
    upvotes = Column(Integer, nullable=False, default=0)
    downvotes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=True)

    verification = relationship("VerificationResult", back_populates="comments")
    votes = relationship("CommentVote", back_populates="comment", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, claim_id={self.claim_id}, user_id={self.user_id})>"


class CommentVote(Base):
    """One user's vote (+1 or -1) on a comment."""

    __tablename__ = "comment_votes"
    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_votes_voter"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    comment_id = Column(Uuid(as_uuid=True), ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    vote = Column(SmallInteger, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    comment = relationship("Comment", back_populates="votes")

    def __repr__(self) -> str:
        return f"<CommentVote(comment_id={self.comment_id}, user_id={self.user_id}, vote={self.vote})>"
