"""
SQLAlchemy model for user profiles.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship

from satyashodhak.db.database import Base


class Profile(Base):
    """
    Database model for registered users.

    Bearer tokens are issued outside this service; only their SHA-256 hash is
    stored so a presented credential can be resolved to its owner.
    """

    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    verification_results = relationship(
        "VerificationResult", back_populates="owner", cascade="all, delete-orphan"
    )

    @property
    def display_name(self) -> str:
        """Name shown next to the user's comments."""
        if self.full_name:
            return self.full_name
        if self.email:
            return self.email.split("@")[0]
        return "User"

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email='{self.email}')>"
