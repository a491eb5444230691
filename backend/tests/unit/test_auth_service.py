"""
Tests for bearer credential resolution.
"""

import pytest
from sqlalchemy.orm import Session

from satyashodhak.exceptions import AuthenticationInvalidError, AuthenticationRequiredError
from satyashodhak.models.profile import Profile
from satyashodhak.services.auth_service import AuthService, extract_bearer_token, hash_token


class TestExtractBearerToken:
    """Test Authorization header parsing."""

    @pytest.mark.parametrize("header", ["Bearer abc", "bearer abc", "  BEARER   abc ", "abc"])
    def test_extracts_token(self, header: str) -> None:
        assert extract_bearer_token(header) == "abc"

    @pytest.mark.parametrize("header", [None, "", "   ", "Bearer ", "Bearer    "])
    def test_missing_token(self, header) -> None:
        with pytest.raises(AuthenticationRequiredError):
            extract_bearer_token(header)


class TestAuthService:
    """Test the AuthService class."""

    def test_create_user_stores_only_hash(self, test_db: Session) -> None:
        profile, token = AuthService(test_db).create_user("meera@example.com", full_name="Meera")

        stored = test_db.get(Profile, profile.id)
        assert stored.token_hash == hash_token(token)
        assert token not in stored.token_hash
        assert stored.display_name == "Meera"

    def test_resolve_bearer(self, test_db: Session, make_user) -> None:
        profile, token = make_user()

        assert AuthService(test_db).resolve_bearer(f"Bearer {token}").id == profile.id

    def test_resolve_unknown_token(self, test_db: Session, make_user) -> None:
        make_user()

        with pytest.raises(AuthenticationInvalidError):
            AuthService(test_db).resolve_bearer("Bearer forged")

    def test_display_name_fallbacks(self) -> None:
        assert Profile(email="sam@example.com").display_name == "sam"
        assert Profile(email=None).display_name == "User"
