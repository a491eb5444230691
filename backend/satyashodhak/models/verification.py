"""
SQLAlchemy models for verification results and their votes.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, JSON, SmallInteger, String,
    Text, UniqueConstraint, Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from satyashodhak.db.database import Base


class VerificationResult(Base):
    """
    Database model for a single fact-check outcome.

    Stores the verdict, confidence score, explanation and evidence sources
    produced by the verification pipeline, plus the owner's save/visibility
    flags and the aggregate vote counters.
    """

    __tablename__ = "verification_results"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    claim = Column(Text, nullable=False)
    verdict = Column(String(32), nullable=False, index=True)  # TRUE, FALSE, MISLEADING, PARTIALLY_TRUE, INCONCLUSIVE
    confidence = Column(Integer, nullable=False)  # 0 to 100
    explanation = Column(Text, nullable=False, default="")
    sources = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)  # Array of {title, snippet, url}
    is_public = Column(Boolean, nullable=False, default=False, index=True)
    is_saved = Column(Boolean, nullable=False, default=False, index=True)
    upvotes = Column(Integer, nullable=False, default=0)
    downvotes = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    tags = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Relationships
    owner = relationship("Profile", back_populates="verification_results")
    votes = relationship("VerificationVote", back_populates="verification", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="verification", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<VerificationResult(id={self.id}, verdict='{self.verdict}', confidence={self.confidence})>"


class VerificationVote(Base):
    """One user's vote (+1 or -1) on a verification result."""

    __tablename__ = "verification_votes"
    __table_args__ = (
        UniqueConstraint("verification_id", "user_id", name="uq_verification_votes_voter"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    verification_id = Column(
        Uuid(as_uuid=True), ForeignKey("verification_results.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    vote = Column(SmallInteger, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    verification = relationship("VerificationResult", back_populates="votes")

    def __repr__(self) -> str:
        return f"<VerificationVote(verification_id={self.verification_id}, user_id={self.user_id}, vote={self.vote})>"
