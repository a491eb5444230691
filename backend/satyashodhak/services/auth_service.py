"""
Resolution of bearer credentials to user profiles.
"""

import hashlib
import secrets
from datetime import datetime
from typing import Optional, Tuple

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from satyashodhak.db.database import get_db
from satyashodhak.exceptions import AuthenticationInvalidError, AuthenticationRequiredError
from satyashodhak.models.profile import Profile
from satyashodhak.utils.logger import get_logger

logger = get_logger(__name__)

BEARER_SCHEME = "bearer"


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a bearer token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an Authorization header.

    Raises:
        AuthenticationRequiredError: If the header is missing or carries no token
    """
    if not authorization or not authorization.strip():
        raise AuthenticationRequiredError()

    scheme, _, rest = authorization.strip().partition(" ")
    value = rest.strip() if scheme.lower() == BEARER_SCHEME else authorization.strip()
    if not value:
        raise AuthenticationRequiredError()
    return value


class AuthService:
    """Looks up and registers users by bearer token."""

    def __init__(self, db: Session) -> None:
        self.db: Session = db

    def resolve_bearer(self, authorization: Optional[str]) -> Profile:
        """
        Resolve the caller identity from an Authorization header.

        Raises:
            AuthenticationRequiredError: If no credential was presented
            AuthenticationInvalidError: If the credential matches no user
        """
        token = extract_bearer_token(authorization)
        profile = self.db.query(Profile).filter(Profile.token_hash == hash_token(token)).first()
        if not profile:
            logger.warning("Invalid bearer credential presented")
            raise AuthenticationInvalidError()
        return profile

    def create_user(self, email: str, full_name: Optional[str] = None,
                    avatar_url: Optional[str] = None) -> Tuple[Profile, str]:
        """
        Register a user and issue a bearer token.

        Returns:
            Tuple of (profile, plaintext token). Only the hash is stored.
        """
        token = secrets.token_urlsafe(32)
        now = datetime.utcnow()
        profile = Profile(
            email=email,
            full_name=full_name,
            avatar_url=avatar_url,
            token_hash=hash_token(token),
            created_at=now,
            updated_at=now,
        )

        try:
            self.db.add(profile)
            self.db.commit()
            self.db.refresh(profile)
        except Exception as e:
            self.db.rollback()
            logger.error("Failed to create user", email=email, error=str(e))
            raise

        logger.info("User created", user_id=profile.id)
        return profile, token


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> Profile:
    """Dependency requiring an authenticated caller."""
    return AuthService(db).resolve_bearer(authorization)


def get_optional_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> Optional[Profile]:
    """Dependency resolving the caller when a credential is presented."""
    if not authorization:
        return None
    return AuthService(db).resolve_bearer(authorization)
